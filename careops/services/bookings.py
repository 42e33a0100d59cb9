"""
Room booking workflow: create, edit, confirm, check in, check out.

Each command runs in one transaction.  The booking row is locked first,
then the room (inside ``transitions.sync_room_status``), so the
availability check and the room status update can't interleave with
another booking for the same room.
"""
from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from django.db import transaction
from rest_framework.exceptions import ValidationError

from careops.exceptions import ResourceUnavailable
from careops.models import Room, RoomBooking
from careops.services import notifications
from careops.services.conflicts import INACTIVE_BOOKING_STATUSES, busy_room_ids, room_has_conflict
from careops.services.pricing import quantize, room_cost, stay_days
from careops.services.references import ROOM_BOOKING_PREFIX, next_reference
from careops.services.transitions import (
    ActorRef,
    apply_transition,
    ensure_transition,
    record,
    sync_room_status,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('room', 'appointment', 'checkin_date', 'checkout_date', 'special_requests', 'coverage', 'notes')


def default_checkout(checkin: datetime.date) -> datetime.date:
    return checkin + datetime.timedelta(days=1)


def _check_dates(checkin: datetime.date, checkout: Optional[datetime.date], field: str = 'checkout_date') -> None:
    if checkout is not None and checkout <= checkin:
        raise ValidationError({field: ['Must be after the check-in date.']})


def _append_note(existing: str, label: str, text: str) -> str:
    line = f"{label}: {text}" if label else text
    return f"{existing}\n{line}" if existing else line


def _ensure_in_service(room: Room) -> None:
    if room.status == Room.STATUS_MAINTENANCE:
        raise ResourceUnavailable(f"Room {room.room_number} is under maintenance.")


def _ensure_bookable(room: Room, checkin, checkout, exclude_booking_id=None) -> None:
    _ensure_in_service(room)
    if room_has_conflict(room.pk, checkin, checkout, exclude_booking_id=exclude_booking_id):
        raise ResourceUnavailable(f"Room {room.room_number} is not available for the selected dates.")


def create_booking(*, user, room: Room, checkin_date: datetime.date, coverage: str,
                   checkout_date: Optional[datetime.date] = None, appointment=None,
                   special_requests: str = '', notes: str = '', confirm: bool = False,
                   actor: ActorRef) -> RoomBooking:
    checkout_date = checkout_date or default_checkout(checkin_date)
    _check_dates(checkin_date, checkout_date)
    with transaction.atomic():
        # new bookings for one room queue up on the room row
        room = Room.objects.select_for_update().get(pk=room.pk)
        _ensure_bookable(room, checkin_date, checkout_date)
        booking = RoomBooking.objects.create(
            user=user,
            room=room,
            appointment=appointment,
            checkin_date=checkin_date,
            checkout_date=checkout_date,
            special_requests=special_requests,
            coverage=coverage,
            notes=notes,
            total_cost=room_cost(room.daily_rate, checkin_date, checkout_date),
            booking_number=next_reference(ROOM_BOOKING_PREFIX),
        )
        record(booking, None, booking.status, actor, 'created')
        if confirm:
            apply_transition(booking, 'confirmed', actor)
    logger.info("room booking %s created for room %s", booking.booking_number, room.room_number)
    return booking


def update_booking(booking_id: int, changes: Dict[str, Any], *, actor: ActorRef) -> RoomBooking:
    changes = dict(changes)
    new_status = changes.pop('status', None)
    with transaction.atomic():
        booking = RoomBooking.objects.select_for_update().select_related('room').get(pk=booking_id)
        if new_status is not None and new_status != booking.status:
            ensure_transition('room_booking', booking.status, new_status)
        old_room_id = booking.room_id
        old_span = (booking.checkin_date, booking.checkout_date)
        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(booking, field, changes[field])
        if booking.checkout_date is None:
            booking.checkout_date = default_checkout(booking.checkin_date)
        _check_dates(booking.checkin_date, booking.checkout_date)

        room_changed = booking.room_id != old_room_id
        span_changed = (booking.checkin_date, booking.checkout_date) != old_span
        if room_changed or span_changed:
            if booking.status not in INACTIVE_BOOKING_STATUSES:
                room = Room.objects.select_for_update().get(pk=booking.room_id)
                _ensure_bookable(room, booking.checkin_date, booking.checkout_date, exclude_booking_id=booking.pk)
            booking.total_cost = room_cost(booking.room.daily_rate, booking.checkin_date, booking.checkout_date)
        booking.save()
        if room_changed:
            # release the previous room before the new one is derived
            sync_room_status(old_room_id)
        if new_status is not None and new_status != booking.status:
            if new_status == 'confirmed':
                _ensure_in_service(Room.objects.select_for_update().get(pk=booking.room_id))
            apply_transition(booking, new_status, actor, 'updated')
        else:
            sync_room_status(booking.room_id)
    return booking


def confirm_booking(booking_id: int, *, actor: ActorRef, sender=None) -> RoomBooking:
    with transaction.atomic():
        booking = RoomBooking.objects.select_for_update().select_related('room').get(pk=booking_id)
        ensure_transition('room_booking', booking.status, 'confirmed')
        _ensure_in_service(booking.room)
        apply_transition(booking, 'confirmed', actor)
        notifications.notify_status(
            booking, 'Room booking confirmed',
            f"Booking {booking.booking_number} for room {booking.room.room_number} is confirmed.",
            'room_booking', sender=sender,
        )
    return booking


def checkin_booking(booking_id: int, *, actor: ActorRef, notes: str = '') -> RoomBooking:
    with transaction.atomic():
        booking = RoomBooking.objects.select_for_update().get(pk=booking_id)
        ensure_transition('room_booking', booking.status, 'checkin')
        if notes:
            booking.notes = _append_note(booking.notes, 'Check-in', notes)
        apply_transition(booking, 'checkin', actor)
    return booking


def checkout_booking(booking_id: int, *, actor: ActorRef, actual_checkout_date: Optional[datetime.date] = None,
                     additional_charges: Optional[Decimal] = None, notes: str = '') -> RoomBooking:
    """Check the guest out and settle the final cost for the actual stay."""
    with transaction.atomic():
        booking = RoomBooking.objects.select_for_update().select_related('room').get(pk=booking_id)
        ensure_transition('room_booking', booking.status, 'checkout')
        if actual_checkout_date is not None:
            _check_dates(booking.checkin_date, actual_checkout_date, field='actual_checkout_date')
            booking.checkout_date = actual_checkout_date
        total = room_cost(booking.room.daily_rate, booking.checkin_date, booking.checkout_date)
        if additional_charges:
            total = quantize(total + additional_charges)
        booking.total_cost = total
        if notes:
            booking.notes = _append_note(booking.notes, 'Check-out', notes)
        apply_transition(booking, 'checkout', actor)
    return booking


def delete_booking(booking_id: int) -> None:
    with transaction.atomic():
        booking = RoomBooking.objects.select_for_update().get(pk=booking_id)
        room_id = booking.room_id
        booking.delete()
        sync_room_status(room_id)


def available_rooms(checkin_date: datetime.date, checkout_date: Optional[datetime.date] = None,
                    room_type: Optional[str] = None) -> List[Tuple[Room, int, Decimal]]:
    """Rooms free for the whole range, with the estimated stay cost."""
    checkout_date = checkout_date or default_checkout(checkin_date)
    qs = (
        Room.objects
        .exclude(status=Room.STATUS_MAINTENANCE)
        .exclude(id__in=busy_room_ids(checkin_date, checkout_date))
        .order_by('room_type', 'room_number')
    )
    if room_type:
        qs = qs.filter(room_type=room_type)
    days = stay_days(checkin_date, checkout_date)
    return [(room, days, room_cost(room.daily_rate, checkin_date, checkout_date)) for room in qs]
