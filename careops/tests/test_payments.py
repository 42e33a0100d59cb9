import re

import pytest
from rest_framework.test import APIClient

from careops.models import Notification, Payment

pytestmark = pytest.mark.django_db


@pytest.fixture
def appointment(patient_client, doctor, tomorrow):
    r = patient_client.post('/api/appointments', {
        'doctor_id': doctor.pk,
        'appointment_date': tomorrow.isoformat(),
        'appointment_time': '10:00',
        'coverage': 'self_pay',
        'complaint': 'Headache',
    }, format='json')
    assert r.status_code == 201, r.data
    return r.data['data']


def pay(client, **refs):
    return client.post('/api/payments', {'coverage': 'self_pay', 'payment_method': 'bank_transfer', **refs},
                       format='json')


def test_payment_amount_defaults_to_service_cost(patient_client, patient, appointment):
    r = pay(patient_client, appointment_id=appointment['id'])
    assert r.status_code == 201, r.data
    data = r.data['data']
    assert data['service_type'] == 'appointment'
    assert data['appointment_id'] == appointment['id']
    assert data['room_booking_id'] is None and data['ambulance_request_id'] is None
    assert data['amount'] == '150.00'
    assert data['user_id'] == patient.pk
    assert data['status'] == 'pending'
    assert re.fullmatch(r'TRX\d{17}', data['transaction_id'])


def test_payment_needs_exactly_one_reference(staff_client, appointment, patient, room, today):
    booking = staff_client.post('/api/room-bookings', {
        'user_id': patient.pk, 'room_id': room.pk, 'checkin_date': today.isoformat(), 'coverage': 'bpjs',
    }, format='json').data['data']

    r = pay(staff_client)
    assert r.status_code == 400
    assert 'exactly one' in r.data['message']

    r = pay(staff_client, appointment_id=appointment['id'], room_booking_id=booking['id'])
    assert r.status_code == 400
    assert Payment.objects.count() == 0


def test_unknown_reference_is_a_validation_error(staff_client):
    r = pay(staff_client, room_booking_id=9999)
    assert r.status_code == 422
    assert 'room_booking_id' in r.data['errors']


def test_payment_user_must_match_service(staff_client, other_patient, appointment):
    r = pay(staff_client, appointment_id=appointment['id'], user_id=other_patient.pk)
    assert r.status_code == 422
    assert 'user_id' in r.data['errors']


def test_patient_cannot_pay_for_someone_elses_service(appointment, other_patient):
    c = APIClient()
    c.force_authenticate(user=other_patient)
    r = pay(c, appointment_id=appointment['id'])
    assert r.status_code == 422


def test_confirm_payment(patient_client, staff_client, patient, receptionist, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    r = staff_client.post(f'/api/payments/{pk}/confirm', {'gateway_transaction_id': 'GW-123'}, format='json')
    assert r.status_code == 200
    data = r.data['data']
    assert data['status'] == 'paid'
    assert data['paid_at'] is not None
    assert data['gateway_transaction_id'] == 'GW-123'
    assert Notification.objects.filter(user=patient, type='payment').count() == 1

    detail = patient_client.get(f'/api/payments/{pk}').data['data']
    assert detail['processed_by'] == {'id': receptionist.pk, 'role': 'receptionist'}


def test_confirming_twice_fails(patient_client, staff_client, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    assert staff_client.post(f'/api/payments/{pk}/confirm').status_code == 200
    paid_at = Payment.objects.get(pk=pk).paid_at
    r = staff_client.post(f'/api/payments/{pk}/confirm')
    assert r.status_code == 400
    assert r.data['message'] == 'Payment already confirmed.'
    assert Payment.objects.get(pk=pk).paid_at == paid_at


def test_patient_cannot_confirm(patient_client, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    assert patient_client.post(f'/api/payments/{pk}/confirm').status_code == 403
    assert Payment.objects.get(pk=pk).status == 'pending'


def test_failed_payment_cannot_be_confirmed(patient_client, staff_client, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    assert staff_client.put(f'/api/payments/{pk}', {'status': 'failed'}, format='json').status_code == 200
    assert staff_client.post(f'/api/payments/{pk}/confirm').status_code == 400


def test_refund_after_payment(patient_client, staff_client, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    staff_client.put(f'/api/payments/{pk}', {'status': 'paid'}, format='json')
    payment = Payment.objects.get(pk=pk)
    assert payment.paid_at is not None
    r = staff_client.put(f'/api/payments/{pk}', {'status': 'refunded', 'notes': 'Doctor unavailable'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'refunded'
    assert staff_client.put(f'/api/payments/{pk}', {'status': 'paid'}, format='json').status_code == 400


def test_patient_cannot_edit_payment(patient_client, appointment):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    r = patient_client.put(f'/api/payments/{pk}', {'amount': '1.00'}, format='json')
    assert r.status_code == 403


def test_ambulance_payment_requires_an_amount_until_dispatch(patient_client, tomorrow):
    req = patient_client.post('/api/ambulance-requests', {
        'request_type': 'scheduled', 'pickup_location': 'Home', 'destination': 'Hospital',
        'request_date': tomorrow.isoformat(), 'request_time': '08:00', 'coverage': 'insurance',
    }, format='json').data['data']
    r = pay(patient_client, ambulance_request_id=req['id'])
    assert r.status_code == 422
    assert 'amount' in r.data['errors']
    r = pay(patient_client, ambulance_request_id=req['id'], amount='75.00')
    assert r.status_code == 201
    assert r.data['data']['service_type'] == 'ambulance'


def test_payment_search(patient_client, staff_client, appointment):
    pay(patient_client, appointment_id=appointment['id'])
    trx = Payment.objects.get().transaction_id
    r = staff_client.get('/api/search/payments', {'q': trx[:10], 'status': 'pending'})
    assert r.status_code == 200
    assert [p['transaction_id'] for p in r.data['data']] == [trx]
    r = staff_client.get('/api/search/payments', {'status': 'paid'})
    assert r.data['data'] == []


def test_dashboard_revenue_counts_paid_only(patient_client, staff_client, appointment, today):
    pk = pay(patient_client, appointment_id=appointment['id']).data['data']['id']
    staff_client.post(f'/api/payments/{pk}/confirm')
    r = staff_client.get('/api/dashboard')
    assert r.data['data']['total_revenue'] == '150.00'
    assert staff_client.get('/api/reports/daily', {'date': today.isoformat()}).status_code == 200
