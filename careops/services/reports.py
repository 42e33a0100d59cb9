"""
Aggregates for the admin dashboard and daily/occupancy reports.

Dashboard and daily payloads are cached; ``refresh_caches`` rebuilds
them ahead of time.
"""
from __future__ import annotations

import datetime
from collections import defaultdict
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.core.cache import cache
from django.db.models import Count, Sum
from django.utils import timezone

from careops.models import (
    Ambulance,
    AmbulanceRequest,
    Appointment,
    Doctor,
    Payment,
    Room,
    RoomBooking,
    User,
)
from careops.services.pricing import quantize, stay_days

DASHBOARD_CACHE_KEY = 'report:dashboard'


def daily_cache_key(day: datetime.date) -> str:
    return f'report:daily:{day:%Y%m%d}'


def _money(value) -> str:
    return str(quantize(value or Decimal('0')))


def _by_status(qs) -> Dict[str, int]:
    return {row['status']: row['n'] for row in qs.values('status').annotate(n=Count('id')).order_by('status')}


def build_dashboard() -> Dict[str, Any]:
    paid = Payment.objects.filter(status='paid').aggregate(total=Sum('amount'))['total']
    return {
        'total_patients': User.objects.filter(role='patient').count(),
        'total_doctors': Doctor.objects.filter(status='active').count(),
        'total_appointments': Appointment.objects.count(),
        'pending_appointments': Appointment.objects.filter(status='pending').count(),
        'active_room_bookings': RoomBooking.objects.filter(status__in=('confirmed', 'checkin')).count(),
        'active_ambulance_requests': AmbulanceRequest.objects.filter(
            status__in=('pending', 'dispatched', 'on_way', 'arrived')).count(),
        'pending_payments': Payment.objects.filter(status='pending').count(),
        'available_rooms': Room.objects.filter(status=Room.STATUS_AVAILABLE).count(),
        'available_ambulances': Ambulance.objects.filter(status=Ambulance.STATUS_AVAILABLE).count(),
        'total_revenue': _money(paid),
    }


def dashboard(refresh: bool = False) -> Dict[str, Any]:
    payload = None if refresh else cache.get(DASHBOARD_CACHE_KEY)
    if payload is None:
        payload = build_dashboard()
        cache.set(DASHBOARD_CACHE_KEY, payload, settings.REPORT_CACHE_SECONDS)
    return payload


def build_daily_report(day: datetime.date) -> Dict[str, Any]:
    paid = Payment.objects.filter(status='paid', paid_at__date=day).aggregate(total=Sum('amount'), n=Count('id'))
    return {
        'date': day.isoformat(),
        'appointments': _by_status(Appointment.objects.filter(appointment_date=day)),
        'room_checkins': RoomBooking.objects.filter(checkin_date=day).exclude(status='cancelled').count(),
        'ambulance_requests': _by_status(AmbulanceRequest.objects.filter(request_date=day)),
        'payments': {'count': paid['n'] or 0, 'total': _money(paid['total'])},
        'rooms': _by_status(Room.objects.all()),
    }


def daily_report(day: Optional[datetime.date] = None, refresh: bool = False) -> Dict[str, Any]:
    day = day or timezone.localdate()
    key = daily_cache_key(day)
    payload = None if refresh else cache.get(key)
    if payload is None:
        payload = build_daily_report(day)
        cache.set(key, payload, settings.REPORT_CACHE_SECONDS)
    return payload


def occupancy_report(start: Optional[datetime.date] = None, end: Optional[datetime.date] = None) -> Dict[str, Any]:
    """Bookings per room type with average stay and revenue, by check-in date."""
    qs = RoomBooking.objects.exclude(status='cancelled').select_related('room')
    if start:
        qs = qs.filter(checkin_date__gte=start)
    if end:
        qs = qs.filter(checkin_date__lte=end)

    buckets: Dict[str, Dict[str, Any]] = defaultdict(lambda: {'bookings': 0, 'nights': 0, 'revenue': Decimal('0')})
    for booking in qs:
        b = buckets[booking.room.room_type]
        b['bookings'] += 1
        b['nights'] += stay_days(booking.checkin_date, booking.checkout_date)
        b['revenue'] += booking.total_cost
    rows = []
    for room_type, _label in Room.TYPE_CHOICES:
        if room_type not in buckets:
            continue
        b = buckets[room_type]
        rows.append({
            'room_type': room_type,
            'total_bookings': b['bookings'],
            'average_stay_days': round(b['nights'] / b['bookings'], 2),
            'total_revenue': _money(b['revenue']),
        })
    return {
        'start_date': start.isoformat() if start else None,
        'end_date': end.isoformat() if end else None,
        'room_types': rows,
    }
