import datetime
import re
from decimal import Decimal

import pytest

from careops.models import Notification, Room, RoomBooking

pytestmark = pytest.mark.django_db


def days(n):
    return datetime.timedelta(days=n)


def book(client, room, checkin, checkout=None, **extra):
    body = {'room_id': room.pk, 'checkin_date': checkin.isoformat(), 'coverage': 'bpjs', **extra}
    if checkout is not None:
        body['checkout_date'] = checkout.isoformat()
    return client.post('/api/room-bookings', body, format='json')


def test_patient_books_a_room(patient_client, patient, room, today):
    r = book(patient_client, room, today + days(1), today + days(4))
    assert r.status_code == 201, r.data
    data = r.data['data']
    assert data['status'] == 'pending'
    assert data['user_id'] == patient.pk
    assert data['total_cost'] == '300.00'
    assert re.fullmatch(rf'ROOM{today:%Y%m%d}\d{{3}}', data['booking_number'])
    # a pending booking does not hold the room yet
    room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE


def test_checkout_defaults_to_next_day(patient_client, room, today):
    r = book(patient_client, room, today)
    assert r.status_code == 201
    assert r.data['data']['checkout_date'] == (today + days(1)).isoformat()
    assert r.data['data']['total_cost'] == '100.00'


def test_overlapping_booking_is_rejected(patient_client, staff_client, patient, room, today):
    assert book(patient_client, room, today + days(1), today + days(3)).status_code == 201
    # staff must name the patient
    r = book(staff_client, room, today + days(3), today + days(5), user_id=patient.pk)
    assert r.status_code == 400
    assert r.data['success'] is False
    assert 'not available' in r.data['message']
    assert RoomBooking.objects.count() == 1


def test_cancelled_booking_frees_the_dates(patient_client, room, today):
    first = book(patient_client, room, today + days(1), today + days(3)).data['data']
    r = patient_client.put(f"/api/room-bookings/{first['id']}", {'status': 'cancelled'}, format='json')
    assert r.status_code == 200
    assert book(patient_client, room, today + days(2), today + days(4)).status_code == 201


def test_checkout_must_follow_checkin(patient_client, room, today):
    r = book(patient_client, room, today + days(2), today + days(2))
    assert r.status_code == 422
    assert 'checkout_date' in r.data['errors']


def test_checkin_in_the_past_is_rejected(patient_client, room, today):
    r = book(patient_client, room, today - days(1), today + days(1))
    assert r.status_code == 422
    assert 'checkin_date' in r.data['errors']


def test_maintenance_room_cannot_be_booked(patient_client, room, today):
    Room.objects.filter(pk=room.pk).update(status=Room.STATUS_MAINTENANCE)
    r = book(patient_client, room, today + days(1))
    assert r.status_code == 400


def test_full_stay_lifecycle(patient_client, staff_client, patient, receptionist, room, today):
    booking = book(patient_client, room, today, today + days(2)).data['data']
    pk = booking['id']

    r = staff_client.post(f'/api/room-bookings/{pk}/confirm')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'confirmed'
    room.refresh_from_db()
    assert room.status == Room.STATUS_OCCUPIED
    assert Notification.objects.filter(user=patient, type='room_booking').count() == 1

    r = staff_client.post(f'/api/room-bookings/{pk}/checkin', {'notes': 'Arrived by car'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'checkin'
    assert 'Arrived by car' in r.data['data']['notes']

    r = staff_client.post(f'/api/room-bookings/{pk}/checkout', {
        'actual_checkout_date': (today + days(3)).isoformat(),
        'additional_charges': '25.50',
    }, format='json')
    assert r.status_code == 200
    data = r.data['data']
    assert data['status'] == 'checkout'
    assert data['checkout_date'] == (today + days(3)).isoformat()
    assert data['total_cost'] == '325.50'
    room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE

    detail = patient_client.get(f'/api/room-bookings/{pk}').data['data']
    assert detail['confirmed_by'] == {'id': receptionist.pk, 'role': 'receptionist'}
    assert [h['to_status'] for h in detail['history']] == ['pending', 'confirmed', 'checkin', 'checkout']


def test_checkin_requires_confirmation(patient_client, staff_client, room, today):
    pk = book(patient_client, room, today).data['data']['id']
    r = staff_client.post(f'/api/room-bookings/{pk}/checkin')
    assert r.status_code == 400
    assert 'pending to checkin' in r.data['message']


def test_confirm_twice_is_rejected(patient_client, staff_client, room, today):
    pk = book(patient_client, room, today).data['data']['id']
    assert staff_client.post(f'/api/room-bookings/{pk}/confirm').status_code == 200
    assert staff_client.post(f'/api/room-bookings/{pk}/confirm').status_code == 400


def test_cancelling_a_confirmed_booking_releases_the_room(patient_client, staff_client, room, today):
    pk = book(patient_client, room, today).data['data']['id']
    staff_client.post(f'/api/room-bookings/{pk}/confirm')
    r = patient_client.put(f'/api/room-bookings/{pk}', {'status': 'cancelled'}, format='json')
    assert r.status_code == 200
    room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE


def test_moving_a_confirmed_booking_to_another_room(staff_client, patient, room, second_room, today):
    pk = book(staff_client, room, today, today + days(2), user_id=patient.pk, auto_confirm=True).data['data']['id']
    room.refresh_from_db()
    assert room.status == Room.STATUS_OCCUPIED

    r = staff_client.put(f'/api/room-bookings/{pk}', {'room_id': second_room.pk}, format='json')
    assert r.status_code == 200
    assert r.data['data']['total_cost'] == '160.00'
    room.refresh_from_db()
    second_room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE
    assert second_room.status == Room.STATUS_OCCUPIED


def test_room_stays_occupied_while_another_booking_holds_it(staff_client, patient, room, today):
    a = book(staff_client, room, today, today + days(1), user_id=patient.pk, auto_confirm=True).data['data']
    b = book(staff_client, room, today + days(5), today + days(6), user_id=patient.pk, auto_confirm=True).data['data']
    staff_client.put(f"/api/room-bookings/{a['id']}", {'status': 'cancelled'}, format='json')
    room.refresh_from_db()
    assert room.status == Room.STATUS_OCCUPIED
    staff_client.put(f"/api/room-bookings/{b['id']}", {'status': 'cancelled'}, format='json')
    room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE


def test_patient_cannot_auto_confirm(patient_client, room, today):
    r = book(patient_client, room, today, auto_confirm=True)
    assert r.status_code == 201
    assert r.data['data']['status'] == 'pending'


def test_available_room_search(patient_client, patient, room, second_room, today):
    book(patient_client, room, today + days(1), today + days(3))
    r = patient_client.get('/api/rooms/available/search', {
        'checkin_date': (today + days(2)).isoformat(),
        'checkout_date': (today + days(4)).isoformat(),
    })
    assert r.status_code == 200
    rows = r.data['data']
    assert [row['room_number'] for row in rows] == ['102']
    assert rows[0]['estimated_days'] == 2
    assert rows[0]['estimated_total_cost'] == '160.00'


def test_occupancy_report(staff_client, patient, room, second_room, today):
    book(staff_client, room, today, today + days(2), user_id=patient.pk)
    book(staff_client, room, today + days(3), today + days(7), user_id=patient.pk)
    book(staff_client, second_room, today, today + days(1), user_id=patient.pk)
    r = staff_client.get('/api/room-bookings/occupancy-report')
    assert r.status_code == 200
    rows = {row['room_type']: row for row in r.data['data']['room_types']}
    assert rows['vip']['total_bookings'] == 2
    assert rows['vip']['average_stay_days'] == 3.0
    assert rows['vip']['total_revenue'] == '600.00'
    assert rows['class_1']['total_revenue'] == '80.00'


def test_booking_total_is_recomputed_when_dates_change(staff_client, patient, room, today):
    pk = book(staff_client, room, today, today + days(1), user_id=patient.pk).data['data']['id']
    r = staff_client.put(f'/api/room-bookings/{pk}', {'checkout_date': (today + days(5)).isoformat()}, format='json')
    assert r.status_code == 200
    assert Decimal(r.data['data']['total_cost']) == Decimal('500.00')


def test_clearing_the_checkout_date_falls_back_to_next_day(staff_client, patient, room, today):
    pk = book(staff_client, room, today, today + days(3), user_id=patient.pk).data['data']['id']
    r = staff_client.put(f'/api/room-bookings/{pk}', {'checkout_date': None}, format='json')
    assert r.status_code == 200
    assert r.data['data']['checkout_date'] == (today + days(1)).isoformat()
    assert r.data['data']['total_cost'] == '100.00'
    assert RoomBooking.objects.get(pk=pk).checkout_date == today + days(1)


def test_confirming_through_update_respects_maintenance(staff_client, patient, room, today):
    pk = book(staff_client, room, today, user_id=patient.pk).data['data']['id']
    Room.objects.filter(pk=room.pk).update(status=Room.STATUS_MAINTENANCE)
    r = staff_client.put(f'/api/room-bookings/{pk}', {'status': 'confirmed'}, format='json')
    assert r.status_code == 400
    assert RoomBooking.objects.get(pk=pk).status == 'pending'
    room.refresh_from_db()
    assert room.status == Room.STATUS_MAINTENANCE


def test_deleting_a_patient_releases_their_room(staff_client, patient, room, today):
    book(staff_client, room, today, today + days(2), user_id=patient.pk, auto_confirm=True)
    room.refresh_from_db()
    assert room.status == Room.STATUS_OCCUPIED

    r = staff_client.delete(f'/api/users/{patient.pk}')
    assert r.status_code == 200
    assert not RoomBooking.objects.exists()
    room.refresh_from_db()
    assert room.status == Room.STATUS_AVAILABLE
