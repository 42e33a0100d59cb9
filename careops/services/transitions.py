"""
Status transition engine.

All status changes of appointments, room bookings, ambulance requests
and payments go through :func:`apply_transition`.  It checks the move
against ``TRANSITIONS``, persists it, writes a :class:`StatusTransition`
row with the acting user and re-derives the status of the room or
ambulance the entity holds.

Resource status is never set directly by a workflow step.  A room is
``occupied`` while any of its bookings is confirmed or checked in and an
ambulance is ``operating`` while any request assigned to it is
dispatched, on the way or arrived; ``maintenance`` is a manual override
that derivation leaves alone.  Callers must already hold the entity row
lock (``select_for_update``) inside ``transaction.atomic``; the resource
row is locked here, after the entity.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from careops.exceptions import BusinessRuleViolation, InvalidTransition
from careops.models import (
    Ambulance,
    AmbulanceRequest,
    Appointment,
    Payment,
    Room,
    RoomBooking,
    StatusTransition,
)

logger = logging.getLogger(__name__)

TRANSITIONS = {
    'room_booking': {
        'pending': ['confirmed', 'cancelled'],
        'confirmed': ['checkin', 'cancelled'],
        'checkin': ['checkout'],
        'checkout': [],
        'cancelled': [],
    },
    'ambulance_request': {
        'pending': ['dispatched', 'cancelled'],
        'dispatched': ['on_way', 'arrived', 'completed', 'cancelled'],
        'on_way': ['arrived', 'completed', 'cancelled'],
        'arrived': ['completed', 'cancelled'],
        'completed': [],
        'cancelled': [],
    },
    'appointment': {
        'pending': ['confirmed', 'cancelled'],
        'confirmed': ['completed', 'cancelled'],
        'completed': [],
        'cancelled': [],
    },
    'payment': {
        'pending': ['paid', 'failed'],
        'paid': ['refunded'],
        'failed': [],
        'refunded': [],
    },
}

ENTITY_KINDS = {
    RoomBooking: 'room_booking',
    AmbulanceRequest: 'ambulance_request',
    Appointment: 'appointment',
    Payment: 'payment',
}

ROOM_HOLDING_STATUSES = ('confirmed', 'checkin')
AMBULANCE_HOLDING_STATUSES = ('dispatched', 'on_way', 'arrived')


@dataclass(frozen=True)
class ActorRef:
    """Who performed an action: user id plus the role they acted in."""
    actor_id: Optional[int]
    role: str

    @classmethod
    def of(cls, user) -> "ActorRef":
        if user is None or not getattr(user, 'pk', None):
            return SYSTEM
        return cls(actor_id=user.pk, role=getattr(user, 'role', '') or '')


SYSTEM = ActorRef(actor_id=None, role='system')


def entity_kind(obj) -> str:
    return ENTITY_KINDS[type(obj)]


def can_transition(kind: str, current: str, new: str) -> bool:
    return new in TRANSITIONS[kind].get(current, [])


def ensure_transition(kind: str, current: str, new: str) -> None:
    if new not in TRANSITIONS[kind]:
        raise InvalidTransition(f"Unknown status '{new}'.")
    if not can_transition(kind, current, new):
        raise InvalidTransition(f"Cannot change status from {current} to {new}.")


def record(obj, from_status: Optional[str], to_status: str, actor: ActorRef, reason: str = '') -> StatusTransition:
    return StatusTransition.objects.create(
        entity=entity_kind(obj),
        entity_id=obj.pk,
        from_status=from_status,
        to_status=to_status,
        actor_id=actor.actor_id,
        actor_role=actor.role,
        reason=reason[:255],
    )


def history(obj):
    return StatusTransition.objects.filter(entity=entity_kind(obj), entity_id=obj.pk)


def last_actor(obj, to_status: str) -> Optional[ActorRef]:
    """Actor of the most recent move into ``to_status``, if any."""
    row = history(obj).filter(to_status=to_status).order_by('-timestamp', '-id').first()
    if row is None:
        return None
    return ActorRef(actor_id=row.actor_id, role=row.actor_role)


def sync_room_status(room_id: Optional[int]) -> Optional[Room]:
    if room_id is None:
        return None
    room = Room.objects.select_for_update().get(pk=room_id)
    if room.status == Room.STATUS_MAINTENANCE:
        return room
    held = RoomBooking.objects.filter(room_id=room_id, status__in=ROOM_HOLDING_STATUSES).exists()
    derived = Room.STATUS_OCCUPIED if held else Room.STATUS_AVAILABLE
    if room.status != derived:
        logger.info("room %s: %s -> %s", room.room_number, room.status, derived)
        room.status = derived
        room.save(update_fields=['status', 'updated_at'])
    return room


def sync_ambulance_status(ambulance_id: Optional[int]) -> Optional[Ambulance]:
    if ambulance_id is None:
        return None
    ambulance = Ambulance.objects.select_for_update().get(pk=ambulance_id)
    if ambulance.status == Ambulance.STATUS_MAINTENANCE:
        return ambulance
    held = AmbulanceRequest.objects.filter(
        ambulance_id=ambulance_id, status__in=AMBULANCE_HOLDING_STATUSES
    ).exists()
    derived = Ambulance.STATUS_OPERATING if held else Ambulance.STATUS_AVAILABLE
    if ambulance.status != derived:
        logger.info("ambulance %s: %s -> %s", ambulance.plate_number, ambulance.status, derived)
        ambulance.status = derived
        ambulance.save(update_fields=['status', 'updated_at'])
    return ambulance


def sync_resources(obj) -> None:
    """Re-derive the status of whatever physical resource ``obj`` holds."""
    if isinstance(obj, RoomBooking):
        sync_room_status(obj.room_id)
    elif isinstance(obj, AmbulanceRequest):
        sync_ambulance_status(obj.ambulance_id)


def delete_account(user) -> None:
    """Delete ``user`` and release whatever their cascaded reservations held.

    Bookings and requests go with the user (``on_delete=CASCADE``), so the
    rooms and ambulances they pointed at are collected first and
    re-derived once the rows are gone.  Run inside ``transaction.atomic``.
    """
    room_ids = set(
        RoomBooking.objects.select_for_update().filter(user=user).values_list('room_id', flat=True)
    )
    ambulance_ids = set(
        AmbulanceRequest.objects.select_for_update()
        .filter(user=user, ambulance__isnull=False)
        .values_list('ambulance_id', flat=True)
    )
    user.delete()
    for room_id in sorted(room_ids):
        sync_room_status(room_id)
    for ambulance_id in sorted(ambulance_ids):
        sync_ambulance_status(ambulance_id)


def apply_transition(obj, new_status: str, actor: ActorRef, reason: str = ''):
    """Move ``obj`` to ``new_status`` and save every pending field change."""
    kind = entity_kind(obj)
    current = obj.status
    ensure_transition(kind, current, new_status)
    if (kind == 'ambulance_request' and new_status in AMBULANCE_HOLDING_STATUSES
            and obj.ambulance_id is None):
        raise BusinessRuleViolation('An ambulance must be assigned first.')
    obj.status = new_status
    obj.save()
    record(obj, current, new_status, actor, reason)
    sync_resources(obj)
    logger.info("%s #%s: %s -> %s by %s", kind, obj.pk, current, new_status, actor.actor_id or actor.role)
    return obj
