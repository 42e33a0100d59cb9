"""
Overlap detection for room reservations.

Intervals are inclusive: a booking that checks out on the day another
checks in still conflicts.  A booking without a checkout date occupies
its check-in day only.  Pending bookings count, only ``cancelled`` and
``checkout`` reservations are ignored.
"""
from __future__ import annotations

import datetime
from typing import Iterable, Optional

from django.db.models import F, Q, QuerySet
from django.db.models.functions import Coalesce

from careops.models import RoomBooking

INACTIVE_BOOKING_STATUSES = ('cancelled', 'checkout')


def overlapping(queryset: QuerySet, start: datetime.date, end: Optional[datetime.date] = None,
                start_field: str = 'checkin_date', end_field: str = 'checkout_date') -> QuerySet:
    end = end or start
    return (
        queryset
        .annotate(stay_end=Coalesce(end_field, F(start_field)))
        .filter(**{f'{start_field}__lte': end}, stay_end__gte=start)
    )


def has_conflict(queryset: QuerySet, start: datetime.date, end: Optional[datetime.date],
                 exclude_statuses: Iterable[str], exclude_pk=None) -> bool:
    qs = queryset.exclude(status__in=list(exclude_statuses))
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    return overlapping(qs, start, end).exists()


def room_has_conflict(room_id: int, start: datetime.date, end: Optional[datetime.date] = None,
                      exclude_booking_id=None) -> bool:
    return has_conflict(
        RoomBooking.objects.filter(room_id=room_id),
        start, end,
        INACTIVE_BOOKING_STATUSES,
        exclude_pk=exclude_booking_id,
    )


def busy_room_ids(start: datetime.date, end: Optional[datetime.date] = None) -> QuerySet:
    active = RoomBooking.objects.filter(~Q(status__in=INACTIVE_BOOKING_STATUSES))
    return overlapping(active, start, end).values('room_id')
