"""
Ambulance request workflow: intake, dispatch, live tracking.

Emergency requests are dispatched at intake.  Without an explicit
choice the first available emergency-type ambulance by id is taken;
there is no distance ranking.  Scheduled requests wait in ``pending``
until an operator dispatches them.
"""
from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from careops.exceptions import BusinessRuleViolation, ResourceUnavailable
from careops.models import Ambulance, AmbulanceRequest
from careops.services import notifications
from careops.services.pricing import ambulance_cost
from careops.services.references import AMBULANCE_PREFIX, next_reference
from careops.services.transitions import (
    AMBULANCE_HOLDING_STATUSES,
    ActorRef,
    apply_transition,
    ensure_transition,
    record,
    sync_ambulance_status,
)

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'ambulance', 'pickup_location', 'destination', 'patient_condition',
    'request_date', 'request_time', 'coverage', 'distance_km', 'notes',
)
ACTIVE_STATUSES = ('pending',) + AMBULANCE_HOLDING_STATUSES


def _lock_available(ambulance_id: int) -> Ambulance:
    ambulance = Ambulance.objects.select_for_update().get(pk=ambulance_id)
    if ambulance.status != Ambulance.STATUS_AVAILABLE:
        raise ResourceUnavailable(f"Ambulance {ambulance.plate_number} is not available.")
    return ambulance


def _enters_hold(current: str, new: str) -> bool:
    return current not in AMBULANCE_HOLDING_STATUSES and new in AMBULANCE_HOLDING_STATUSES


def first_available_emergency() -> Optional[Ambulance]:
    return (
        Ambulance.objects.select_for_update()
        .filter(ambulance_type='emergency', status=Ambulance.STATUS_AVAILABLE)
        .order_by('id')
        .first()
    )


def _quote(ambulance: Optional[Ambulance], distance_km) -> Optional[Decimal]:
    if ambulance is None:
        return None
    return ambulance_cost(ambulance.base_fare, ambulance.per_km_fare, distance_km)


def _timestamped(existing: str, text: str) -> str:
    line = f"[{timezone.localtime():%Y-%m-%d %H:%M}] {text}"
    return f"{existing}\n{line}" if existing else line


def create_request(*, user, request_type: str, pickup_location: str, destination: str,
                   request_date: datetime.date, request_time: datetime.time, coverage: str,
                   patient_condition: str = '', distance_km: Optional[Decimal] = None,
                   total_cost: Optional[Decimal] = None, ambulance: Optional[Ambulance] = None,
                   notes: str = '', actor: ActorRef) -> AmbulanceRequest:
    with transaction.atomic():
        if request_type == 'emergency':
            if ambulance is None:
                ambulance = first_available_emergency()
                if ambulance is None:
                    raise ResourceUnavailable('No emergency ambulance is available right now.')
            else:
                ambulance = _lock_available(ambulance.pk)
            if distance_km is None:
                distance_km = settings.EMERGENCY_DEFAULT_DISTANCE_KM
        else:
            if request_date <= timezone.localdate():
                raise BusinessRuleViolation('Scheduled requests must be for a date after today.')

        req = AmbulanceRequest.objects.create(
            user=user,
            ambulance=ambulance,
            request_type=request_type,
            pickup_location=pickup_location,
            destination=destination,
            patient_condition=patient_condition,
            request_date=request_date,
            request_time=request_time,
            coverage=coverage,
            distance_km=distance_km,
            total_cost=total_cost if total_cost is not None else _quote(ambulance, distance_km),
            notes=notes,
            request_number=next_reference(AMBULANCE_PREFIX),
        )
        record(req, None, req.status, actor, 'created')
        if request_type == 'emergency':
            apply_transition(req, 'dispatched', actor, 'emergency auto-dispatch')
    logger.info("ambulance request %s created (%s, ambulance=%s)", req.request_number, request_type, req.ambulance_id)
    return req


def update_request(request_id: int, changes: Dict[str, Any], *, actor: ActorRef) -> AmbulanceRequest:
    changes = dict(changes)
    new_status = changes.pop('status', None)
    with transaction.atomic():
        req = AmbulanceRequest.objects.select_for_update().get(pk=request_id)
        status_changes = new_status is not None and new_status != req.status
        if status_changes:
            ensure_transition('ambulance_request', req.status, new_status)
        old_ambulance_id = req.ambulance_id
        old_distance = req.distance_km
        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(req, field, changes[field])

        ambulance_changed = req.ambulance_id != old_ambulance_id
        target_status = new_status if status_changes else req.status
        entering_hold = status_changes and _enters_hold(req.status, new_status)
        if (req.ambulance_id is not None and target_status in AMBULANCE_HOLDING_STATUSES
                and (ambulance_changed or entering_hold)):
            _lock_available(req.ambulance_id)
        if 'total_cost' in changes:
            req.total_cost = changes['total_cost']
        elif ambulance_changed or req.distance_km != old_distance or target_status == 'completed':
            req.total_cost = _quote(req.ambulance, req.distance_km) if req.ambulance_id else req.total_cost
        req.save()
        if ambulance_changed:
            sync_ambulance_status(old_ambulance_id)
        if status_changes:
            apply_transition(req, new_status, actor, 'updated')
        else:
            sync_ambulance_status(req.ambulance_id)
    return req


def dispatch_request(request_id: int, *, actor: ActorRef, ambulance_id: Optional[int] = None,
                     distance_km: Optional[Decimal] = None, sender=None) -> AmbulanceRequest:
    with transaction.atomic():
        req = AmbulanceRequest.objects.select_for_update().get(pk=request_id)
        ensure_transition('ambulance_request', req.status, 'dispatched')
        target_id = ambulance_id or req.ambulance_id
        if target_id is None:
            raise BusinessRuleViolation('Select an ambulance to dispatch.')
        ambulance = _lock_available(target_id)
        old_ambulance_id = req.ambulance_id
        req.ambulance = ambulance
        if distance_km is not None:
            req.distance_km = distance_km
        req.total_cost = _quote(ambulance, req.distance_km)
        req.save()
        if old_ambulance_id and old_ambulance_id != ambulance.pk:
            sync_ambulance_status(old_ambulance_id)
        apply_transition(req, 'dispatched', actor)
        notifications.notify_status(
            req, 'Ambulance dispatched',
            f"Ambulance {ambulance.plate_number} is on its way for request {req.request_number}.",
            'ambulance', sender=sender,
        )
    return req


def update_tracking(request_id: int, *, actor: ActorRef, status: str, notes: str = '',
                    actual_distance_km: Optional[Decimal] = None,
                    current_location: str = '') -> AmbulanceRequest:
    """Field update from the crew: progress, distance travelled, position."""
    with transaction.atomic():
        req = AmbulanceRequest.objects.select_for_update().get(pk=request_id)
        moving = status != req.status
        if moving:
            ensure_transition('ambulance_request', req.status, status)
            if req.ambulance_id is not None and _enters_hold(req.status, status):
                _lock_available(req.ambulance_id)
        if actual_distance_km is not None:
            req.distance_km = actual_distance_km
        if actual_distance_km is not None or (moving and status == 'completed'):
            req.total_cost = _quote(req.ambulance, req.distance_km) if req.ambulance_id else req.total_cost
        if notes:
            req.notes = _timestamped(req.notes, notes)
        if moving:
            apply_transition(req, status, actor, 'tracking')
        else:
            req.save()
        if current_location and req.ambulance_id:
            ambulance = Ambulance.objects.select_for_update().get(pk=req.ambulance_id)
            ambulance.current_location = current_location
            ambulance.save(update_fields=['current_location', 'updated_at'])
    return req


def delete_request(request_id: int) -> None:
    with transaction.atomic():
        req = AmbulanceRequest.objects.select_for_update().get(pk=request_id)
        ambulance_id = req.ambulance_id
        req.delete()
        sync_ambulance_status(ambulance_id)


def available_ambulances(ambulance_type: Optional[str] = None, location: Optional[str] = None) -> QuerySet:
    qs = Ambulance.objects.filter(status=Ambulance.STATUS_AVAILABLE)
    if ambulance_type:
        qs = qs.filter(ambulance_type=ambulance_type)
    if location:
        qs = qs.filter(current_location__icontains=location)
    return qs.order_by('base_fare', 'id')


def emergency_board() -> QuerySet:
    """Emergency requests still being handled, newest first."""
    return (
        AmbulanceRequest.objects.filter(request_type='emergency', status__in=ACTIVE_STATUSES)
        .select_related('ambulance', 'user')
        .order_by('-created_at', '-id')
    )
