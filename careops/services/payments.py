"""
Payments for appointments, room bookings and ambulance rides.

A payment settles exactly one service.  :class:`PaymentReference` is the
only way to name that service, so "no reference" and "two references"
are rejected before anything touches the database.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from careops.exceptions import AlreadyConfirmed, BusinessRuleViolation
from careops.models import AmbulanceRequest, Appointment, Payment, RoomBooking
from careops.services import notifications
from careops.services.references import new_transaction_id
from careops.services.transitions import ActorRef, apply_transition, ensure_transition, record

logger = logging.getLogger(__name__)

# service_type -> (model, foreign key on Payment, id field in requests)
REFERENCE_KINDS = {
    Payment.SERVICE_APPOINTMENT: (Appointment, 'appointment', 'appointment_id'),
    Payment.SERVICE_ROOM_BOOKING: (RoomBooking, 'room_booking', 'room_booking_id'),
    Payment.SERVICE_AMBULANCE: (AmbulanceRequest, 'ambulance_request', 'ambulance_request_id'),
}

EDITABLE_FIELDS = ('amount', 'coverage', 'payment_method', 'gateway_transaction_id', 'receipt_url', 'notes')


@dataclass(frozen=True)
class PaymentReference:
    kind: str
    target_id: int

    @classmethod
    def from_ids(cls, *, appointment_id: Optional[int] = None, room_booking_id: Optional[int] = None,
                 ambulance_request_id: Optional[int] = None) -> "PaymentReference":
        given = [
            (kind, value)
            for kind, value in (
                (Payment.SERVICE_APPOINTMENT, appointment_id),
                (Payment.SERVICE_ROOM_BOOKING, room_booking_id),
                (Payment.SERVICE_AMBULANCE, ambulance_request_id),
            )
            if value is not None
        ]
        if len(given) != 1:
            raise BusinessRuleViolation(
                'A payment must reference exactly one of appointment_id, room_booking_id or ambulance_request_id.'
            )
        return cls(*given[0])

    @property
    def field(self) -> str:
        return REFERENCE_KINDS[self.kind][1]

    def resolve(self):
        model, _, id_field = REFERENCE_KINDS[self.kind]
        try:
            return model.objects.get(pk=self.target_id)
        except model.DoesNotExist:
            raise ValidationError({id_field: [f'Invalid pk "{self.target_id}" - object does not exist.']}) from None


def create_payment(*, reference: PaymentReference, coverage: str, payment_method: str, user=None,
                   amount: Optional[Decimal] = None, notes: str = '', actor: ActorRef) -> Payment:
    target = reference.resolve()
    user = user or target.user
    if user.pk != target.user_id:
        raise ValidationError({'user_id': ['Does not match the patient of the referenced service.']})
    if amount is None:
        amount = target.total_cost
    if amount is None:
        raise ValidationError({'amount': ['This service has no cost yet; an amount is required.']})
    with transaction.atomic():
        payment = Payment.objects.create(
            user=user,
            service_type=reference.kind,
            **{reference.field: target},
            amount=amount,
            coverage=coverage,
            payment_method=payment_method,
            notes=notes,
            transaction_id=new_transaction_id(),
        )
        record(payment, None, payment.status, actor, 'created')
    logger.info("payment %s created for %s #%s", payment.transaction_id, reference.kind, reference.target_id)
    return payment


def _mark_paid(payment: Payment) -> None:
    if payment.paid_at is None:
        payment.paid_at = timezone.now()


def update_payment(payment_id: int, changes: Dict[str, Any], *, actor: ActorRef) -> Payment:
    changes = dict(changes)
    new_status = changes.pop('status', None)
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment_id)
        moving = new_status is not None and new_status != payment.status
        if moving:
            ensure_transition('payment', payment.status, new_status)
        for field in EDITABLE_FIELDS:
            if field in changes:
                setattr(payment, field, changes[field])
        if moving:
            if new_status == 'paid':
                _mark_paid(payment)
            apply_transition(payment, new_status, actor, 'updated')
        else:
            payment.save()
    return payment


def confirm_payment(payment_id: int, *, actor: ActorRef, gateway_transaction_id: str = '',
                    receipt_url: str = '', sender=None) -> Payment:
    """Record that the money arrived.  Confirming twice is an error."""
    with transaction.atomic():
        payment = Payment.objects.select_for_update().get(pk=payment_id)
        if payment.status == 'paid':
            raise AlreadyConfirmed()
        ensure_transition('payment', payment.status, 'paid')
        _mark_paid(payment)
        if gateway_transaction_id:
            payment.gateway_transaction_id = gateway_transaction_id
        if receipt_url:
            payment.receipt_url = receipt_url
        apply_transition(payment, 'paid', actor, 'confirmed')
        notifications.notify_status(
            payment, 'Payment received',
            f"Payment {payment.transaction_id} of {payment.amount} has been confirmed.",
            'payment', sender=sender,
        )
    return payment
