"""
JSON shapes returned by the API.

Money is rendered as a string with two decimals, dates as ISO strings
and timestamps in local time.
"""
from __future__ import annotations

from typing import Optional

from django.utils import timezone

from careops.models import (
    Ambulance,
    AmbulanceRequest,
    Appointment,
    Doctor,
    Notification,
    Payment,
    Room,
    RoomBooking,
    StatusTransition,
    User,
)
from careops.services.transitions import history, last_actor


def _money(value) -> Optional[str]:
    return None if value is None else str(value)


def _date(value) -> Optional[str]:
    return value.isoformat() if value else None


def _time(value) -> Optional[str]:
    return value.strftime('%H:%M') if value else None


def _dt(value) -> Optional[str]:
    return timezone.localtime(value).strftime('%Y-%m-%d %H:%M:%S') if value else None


def _actor(ref) -> Optional[dict]:
    if ref is None:
        return None
    return {'id': ref.actor_id, 'role': ref.role}


def user(u: User) -> dict:
    return {
        'id': u.id,
        'username': u.username,
        'name': u.get_full_name() or u.username,
        'email': u.email,
        'role': u.role,
        'nik': u.nik,
        'phone': u.phone,
        'birth_date': _date(u.birth_date),
        'address': u.address,
        'gender': u.gender,
        'bpjs_number': u.bpjs_number,
        'insurance': u.insurance,
        'department': u.department,
        'is_active': u.is_active,
        'created_at': _dt(u.date_joined),
    }


def doctor(d: Doctor) -> dict:
    return {
        'id': d.id,
        'name': d.name,
        'specialty': d.specialty,
        'phone': d.phone,
        'email': d.email,
        'schedule': d.schedule,
        'consultation_fee': _money(d.consultation_fee),
        'status': d.status,
        'created_by': d.created_by_id,
        'created_at': _dt(d.created_at),
    }


def room(r: Room) -> dict:
    return {
        'id': r.id,
        'room_number': r.room_number,
        'room_type': r.room_type,
        'daily_rate': _money(r.daily_rate),
        'facilities': r.facilities,
        'status': r.status,
    }


def ambulance(a: Ambulance) -> dict:
    return {
        'id': a.id,
        'plate_number': a.plate_number,
        'ambulance_type': a.ambulance_type,
        'base_fare': _money(a.base_fare),
        'per_km_fare': _money(a.per_km_fare),
        'status': a.status,
        'driver_name': a.driver_name,
        'driver_phone': a.driver_phone,
        'current_location': a.current_location,
    }


def appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'ticket_number': a.ticket_number,
        'user_id': a.user_id,
        'doctor_id': a.doctor_id,
        'doctor_name': a.doctor.name,
        'service_type': a.service_type,
        'appointment_date': _date(a.appointment_date),
        'appointment_time': _time(a.appointment_time),
        'complaint': a.complaint,
        'coverage': a.coverage,
        'total_cost': _money(a.total_cost),
        'status': a.status,
        'notes': a.notes,
        'created_at': _dt(a.created_at),
    }


def room_booking(b: RoomBooking) -> dict:
    return {
        'id': b.id,
        'booking_number': b.booking_number,
        'user_id': b.user_id,
        'room_id': b.room_id,
        'room_number': b.room.room_number,
        'appointment_id': b.appointment_id,
        'checkin_date': _date(b.checkin_date),
        'checkout_date': _date(b.checkout_date),
        'special_requests': b.special_requests,
        'coverage': b.coverage,
        'total_cost': _money(b.total_cost),
        'status': b.status,
        'notes': b.notes,
        'created_at': _dt(b.created_at),
    }


def ambulance_request(r: AmbulanceRequest) -> dict:
    return {
        'id': r.id,
        'request_number': r.request_number,
        'user_id': r.user_id,
        'ambulance_id': r.ambulance_id,
        'ambulance': ambulance(r.ambulance) if r.ambulance_id else None,
        'request_type': r.request_type,
        'pickup_location': r.pickup_location,
        'destination': r.destination,
        'patient_condition': r.patient_condition,
        'request_date': _date(r.request_date),
        'request_time': _time(r.request_time),
        'coverage': r.coverage,
        'distance_km': _money(r.distance_km),
        'total_cost': _money(r.total_cost),
        'status': r.status,
        'notes': r.notes,
        'created_at': _dt(r.created_at),
    }


def payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'transaction_id': p.transaction_id,
        'user_id': p.user_id,
        'service_type': p.service_type,
        'appointment_id': p.appointment_id,
        'room_booking_id': p.room_booking_id,
        'ambulance_request_id': p.ambulance_request_id,
        'amount': _money(p.amount),
        'coverage': p.coverage,
        'payment_method': p.payment_method,
        'status': p.status,
        'gateway_transaction_id': p.gateway_transaction_id,
        'receipt_url': p.receipt_url,
        'paid_at': _dt(p.paid_at),
        'notes': p.notes,
        'created_at': _dt(p.created_at),
    }


def notification(n: Notification) -> dict:
    return {
        'id': n.id,
        'user_id': n.user_id,
        'sender_id': n.sender_id,
        'title': n.title,
        'message': n.message,
        'type': n.type,
        'is_read': n.is_read,
        'created_at': _dt(n.created_at),
    }


def transition(t: StatusTransition) -> dict:
    return {
        'from_status': t.from_status,
        'to_status': t.to_status,
        'actor': {'id': t.actor_id, 'role': t.actor_role},
        'reason': t.reason,
        'timestamp': _dt(t.timestamp),
    }


# status -> key under which its actor is shown on detail views
ACTORS = {
    'room_booking': {'confirmed': 'confirmed_by'},
    'ambulance_request': {'dispatched': 'dispatched_by'},
    'appointment': {'confirmed': 'confirmed_by'},
    'payment': {'paid': 'processed_by'},
}


def with_history(data: dict, obj, kind: str) -> dict:
    """Detail view: add the transition trail and who performed key steps."""
    for status, key in ACTORS[kind].items():
        data[key] = _actor(last_actor(obj, status))
    data['history'] = [transition(t) for t in history(obj)]
    return data
