"""
URL mappings for the hospital operations API.

Trailing slashes are deliberately omitted (``APPEND_SLASH = False``).
Fixed sub-paths such as ``available/search`` are listed before the
``<int:pk>`` detail routes of the same resource.
"""
from django.urls import path

from .auth_views import jwt_logout_view, jwt_refresh_view, login_view, me_view, register_view
from .views import ambulance_requests, appointments, health, notifications, payments, reports, resources
from .views import room_bookings, users


urlpatterns = [
    path('healthz', health.healthz),
    path('api/health', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/register', register_view, name='register_view'),
    path('api/auth/refresh', jwt_refresh_view),
    path('api/auth/logout', jwt_logout_view),
    path('api/auth/me', me_view, name='me_view'),
    # Accounts
    path('api/users', users.users_list, name='users'),
    path('api/users/<int:pk>', users.user_detail, name='user_detail'),
    path('api/admins', users.admins_list, name='admins'),
    path('api/admins/<int:pk>', users.admin_detail, name='admin_detail'),
    # Doctors, rooms, ambulances
    path('api/doctors', resources.doctors_list, name='doctors'),
    path('api/doctors/<int:pk>', resources.doctor_detail, name='doctor_detail'),
    path('api/rooms', resources.rooms_list, name='rooms'),
    path('api/rooms/available/search', resources.rooms_available, name='rooms_available'),
    path('api/rooms/<int:pk>', resources.room_detail, name='room_detail'),
    path('api/ambulances', resources.ambulances_list, name='ambulances'),
    path('api/ambulances/available/search', resources.ambulances_available, name='ambulances_available'),
    path('api/ambulances/<int:pk>', resources.ambulance_detail, name='ambulance_detail'),
    # Appointments
    path('api/appointments', appointments.appointments_list, name='appointments'),
    path('api/appointments/<int:pk>', appointments.appointment_detail, name='appointment_detail'),
    # Room bookings
    path('api/room-bookings', room_bookings.room_bookings_list, name='room_bookings'),
    path('api/room-bookings/occupancy-report', room_bookings.occupancy_report, name='occupancy_report'),
    path('api/room-bookings/<int:pk>', room_bookings.room_booking_detail, name='room_booking_detail'),
    path('api/room-bookings/<int:pk>/confirm', room_bookings.room_booking_confirm, name='room_booking_confirm'),
    path('api/room-bookings/<int:pk>/checkin', room_bookings.room_booking_checkin, name='room_booking_checkin'),
    path('api/room-bookings/<int:pk>/checkout', room_bookings.room_booking_checkout, name='room_booking_checkout'),
    # Ambulance requests
    path('api/ambulance-requests', ambulance_requests.ambulance_requests_list, name='ambulance_requests'),
    path('api/ambulance-requests/emergency', ambulance_requests.emergency_requests, name='emergency_requests'),
    path('api/ambulance-requests/<int:pk>', ambulance_requests.ambulance_request_detail,
         name='ambulance_request_detail'),
    path('api/ambulance-requests/<int:pk>/dispatch', ambulance_requests.ambulance_request_dispatch,
         name='ambulance_request_dispatch'),
    path('api/ambulance-requests/<int:pk>/status', ambulance_requests.ambulance_request_status,
         name='ambulance_request_status'),
    # Payments
    path('api/payments', payments.payments_list, name='payments'),
    path('api/payments/<int:pk>', payments.payment_detail, name='payment_detail'),
    path('api/payments/<int:pk>/confirm', payments.payment_confirm, name='payment_confirm'),
    # Notifications
    path('api/notifications', notifications.notifications_list, name='notifications'),
    path('api/notifications/unread-count', notifications.notifications_unread_count, name='notifications_unread'),
    path('api/notifications/bulk', notifications.notifications_bulk, name='notifications_bulk'),
    path('api/notifications/mark-all-read/<int:user_id>', notifications.notifications_mark_all_read,
         name='notifications_mark_all_read'),
    path('api/notifications/<int:pk>', notifications.notification_detail, name='notification_detail'),
    path('api/notifications/<int:pk>/mark-read', notifications.notification_mark_read,
         name='notification_mark_read'),
    # Reports & search
    path('api/dashboard', reports.dashboard, name='dashboard'),
    path('api/reports/daily', reports.daily_report, name='daily_report'),
    path('api/search/appointments', reports.search_appointments, name='search_appointments'),
    path('api/search/payments', reports.search_payments, name='search_payments'),
]
