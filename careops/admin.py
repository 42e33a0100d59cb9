"""
Django admin registrations for the operations models.

Status columns are read-only here: a room or ambulance status edited by
hand would drift from the bookings and requests that hold it, and the
workflow statuses must go through the API so every move is recorded.
"""

from django.contrib import admin

from .models import (
    User,
    Doctor,
    Room,
    Ambulance,
    Appointment,
    RoomBooking,
    AmbulanceRequest,
    Payment,
    Notification,
    StatusTransition,
    AuditEvent,
)


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'first_name', 'role', 'nik', 'department', 'is_active')
    list_filter = ('role', 'is_active')
    search_fields = ('username', 'first_name', 'email', 'nik')


@admin.register(Doctor)
class DoctorAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'specialty', 'consultation_fee', 'status')
    list_filter = ('status', 'specialty')
    search_fields = ('name', 'specialty')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('room_number', 'room_type', 'daily_rate', 'status')
    list_filter = ('room_type', 'status')
    search_fields = ('room_number',)
    readonly_fields = ('status',)


@admin.register(Ambulance)
class AmbulanceAdmin(admin.ModelAdmin):
    list_display = ('plate_number', 'ambulance_type', 'base_fare', 'per_km_fare', 'status', 'driver_name')
    list_filter = ('ambulance_type', 'status')
    search_fields = ('plate_number', 'driver_name')
    readonly_fields = ('status',)


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('ticket_number', 'user', 'doctor', 'appointment_date', 'appointment_time', 'status')
    list_filter = ('status', 'service_type', 'coverage')
    search_fields = ('ticket_number', 'user__username', 'doctor__name')
    readonly_fields = ('status',)


@admin.register(RoomBooking)
class RoomBookingAdmin(admin.ModelAdmin):
    list_display = ('booking_number', 'user', 'room', 'checkin_date', 'checkout_date', 'total_cost', 'status')
    list_filter = ('status', 'coverage')
    search_fields = ('booking_number', 'user__username', 'room__room_number')
    readonly_fields = ('status',)


@admin.register(AmbulanceRequest)
class AmbulanceRequestAdmin(admin.ModelAdmin):
    list_display = ('request_number', 'user', 'ambulance', 'request_type', 'request_date', 'status')
    list_filter = ('status', 'request_type')
    search_fields = ('request_number', 'user__username', 'ambulance__plate_number')
    readonly_fields = ('status',)


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ('transaction_id', 'user', 'service_type', 'amount', 'status', 'paid_at')
    list_filter = ('status', 'service_type', 'payment_method')
    search_fields = ('transaction_id', 'gateway_transaction_id', 'user__username')
    readonly_fields = ('status',)


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('id', 'user', 'title', 'type', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')
    search_fields = ('title', 'user__username')


@admin.register(StatusTransition)
class StatusTransitionAdmin(admin.ModelAdmin):
    list_display = ('entity', 'entity_id', 'from_status', 'to_status', 'actor_role', 'actor_id', 'timestamp')
    list_filter = ('entity', 'to_status')
    search_fields = ('entity_id',)


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('action', 'user', 'object_type', 'object_id', 'ip', 'created_at')
    list_filter = ('action',)
    search_fields = ('user__username', 'object_type')
