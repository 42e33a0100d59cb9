from __future__ import annotations

import datetime
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction

from careops.exceptions import ResourceUnavailable
from careops.models import Appointment, Doctor
from careops.services.references import APPOINTMENT_PREFIX, next_reference
from careops.services.transitions import ActorRef, apply_transition, ensure_transition, record

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'doctor', 'service_type', 'appointment_date', 'appointment_time',
    'complaint', 'coverage', 'total_cost', 'notes',
)


def create_appointment(*, user, doctor: Doctor, appointment_date: datetime.date,
                       appointment_time: datetime.time, coverage: str, service_type: str = 'outpatient',
                       complaint: str = '', total_cost: Optional[Decimal] = None, notes: str = '',
                       actor: ActorRef) -> Appointment:
    if doctor.status != 'active':
        raise ResourceUnavailable(f"Dr. {doctor.name} is not taking appointments.")
    with transaction.atomic():
        appt = Appointment.objects.create(
            user=user,
            doctor=doctor,
            service_type=service_type,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            complaint=complaint,
            coverage=coverage,
            total_cost=total_cost if total_cost is not None else doctor.consultation_fee,
            notes=notes,
            ticket_number=next_reference(APPOINTMENT_PREFIX),
        )
        record(appt, None, appt.status, actor, 'created')
    logger.info("appointment %s booked with doctor %s", appt.ticket_number, doctor.pk)
    return appt


def update_appointment(appointment_id: int, changes: Dict[str, Any], *, actor: ActorRef) -> Appointment:
    changes = dict(changes)
    new_status = changes.pop('status', None)
    with transaction.atomic():
        appt = Appointment.objects.select_for_update().get(pk=appointment_id)
        if new_status is not None and new_status != appt.status:
            ensure_transition('appointment', appt.status, new_status)
        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(appt, field, changes[field])
        if new_status is not None and new_status != appt.status:
            apply_transition(appt, new_status, actor, 'updated')
        else:
            appt.save()
    return appt
