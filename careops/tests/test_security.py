import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from careops.models import AuditEvent, RoomBooking, User

pytestmark = pytest.mark.django_db

REGISTRATION = {
    'nik': '3171999900000001',
    'name': 'Joko Susilo',
    'email': 'joko@example.com',
    'phone': '081234567890',
    'birth_date': '1990-05-17',
    'address': 'Jl. Merdeka No. 1',
    'gender': 'M',
    'password': 'Str0ngPass!2024',
}


def login(client, username, password):
    return client.post(reverse('login_view'), {'username': username, 'password': password}, format='json')


def test_anonymous_requests_are_rejected(api_client):
    r = api_client.get('/api/room-bookings')
    assert r.status_code == 401
    assert r.data['success'] is False


def test_login_returns_token_and_jwt(api_client, patient):
    r = login(api_client, patient.username, 'P@ssw0rd1')
    assert r.status_code == 200
    data = r.data['data']
    assert data['token'] and data['jwt_access'] and data['jwt_refresh']
    assert data['role'] == 'patient'
    assert AuditEvent.objects.filter(user=patient, action='login').exists()

    api_client.credentials(HTTP_AUTHORIZATION=f"Token {data['token']}")
    me = api_client.get('/api/auth/me')
    assert me.status_code == 200
    assert me.data['data']['nik'] == patient.nik

    jwt_client = APIClient()
    jwt_client.credentials(HTTP_AUTHORIZATION=f"Bearer {data['jwt_access']}")
    assert jwt_client.get('/api/auth/me').status_code == 200


def test_wrong_password(api_client, patient):
    r = login(api_client, patient.username, 'nope')
    assert r.status_code == 401
    assert r.data['success'] is False
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_login_ignores_role_in_body(api_client, patient):
    r = api_client.post(reverse('login_view'),
                        {'username': patient.username, 'password': 'P@ssw0rd1', 'role': 'super_admin'},
                        format='json')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.role == 'patient'


def test_register_creates_patient(api_client):
    r = api_client.post(reverse('register_view'), REGISTRATION, format='json')
    assert r.status_code == 201, r.data
    user = User.objects.get(nik=REGISTRATION['nik'])
    assert user.role == 'patient'
    assert user.username == REGISTRATION['nik']
    assert r.data['data']['token']


def test_register_validation(api_client, patient):
    body = dict(REGISTRATION, nik=patient.nik, email='not-an-email', password='123')
    r = api_client.post(reverse('register_view'), body, format='json')
    assert r.status_code == 422
    assert r.data['message'] == 'Validation Error'
    assert {'nik', 'email', 'password'} <= set(r.data['errors'])


def test_register_rejects_weak_password(api_client):
    r = api_client.post(reverse('register_view'), dict(REGISTRATION, password='password'), format='json')
    assert r.status_code == 422
    assert 'password' in r.data['errors']


def test_logout_blacklists_refresh_token(api_client, patient):
    data = login(api_client, patient.username, 'P@ssw0rd1').data['data']
    api_client.credentials(HTTP_AUTHORIZATION=f"Token {data['token']}")
    r = api_client.post('/api/auth/logout', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['data']['blacklisted'] == 1
    r = APIClient().post('/api/auth/refresh', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 401
    # the DRF token is gone as well
    assert api_client.get('/api/auth/me').status_code == 401


def test_refresh_issues_new_access_token(api_client, patient):
    data = login(api_client, patient.username, 'P@ssw0rd1').data['data']
    r = APIClient().post('/api/auth/refresh', {'refresh': data['jwt_refresh']}, format='json')
    assert r.status_code == 200
    assert r.data['data']['jwt_access']


def test_login_is_throttled(api_client, patient):
    codes = [login(api_client, patient.username, 'wrong').status_code for _ in range(11)]
    assert codes[:10] == [401] * 10
    assert codes[10] == 429


def test_patients_only_see_their_own_records(patient_client, other_patient, room, today):
    foreign = RoomBooking.objects.create(user=other_patient, room=room, checkin_date=today, coverage='bpjs',
                                         booking_number='ROOM-OTHER')
    assert patient_client.get('/api/room-bookings').data['data'] == []
    assert patient_client.get(f'/api/room-bookings/{foreign.pk}').status_code == 404
    r = patient_client.put(f'/api/room-bookings/{foreign.pk}', {'status': 'cancelled'}, format='json')
    assert r.status_code == 404
    foreign.refresh_from_db()
    assert foreign.status == 'pending'


def test_patient_may_only_cancel(patient_client, patient, room, today, tomorrow):
    booking = RoomBooking.objects.create(user=patient, room=room, checkin_date=today, coverage='bpjs',
                                         booking_number='ROOM-MINE')
    r = patient_client.put(f'/api/room-bookings/{booking.pk}', {'status': 'confirmed'}, format='json')
    assert r.status_code == 403
    r = patient_client.put(f'/api/room-bookings/{booking.pk}', {'checkin_date': tomorrow.isoformat()}, format='json')
    assert r.status_code == 403
    assert patient_client.delete(f'/api/room-bookings/{booking.pk}').status_code == 403


def test_patient_profile_access(patient_client, patient, other_patient):
    assert patient_client.get(f'/api/users/{patient.pk}').status_code == 200
    assert patient_client.get(f'/api/users/{other_patient.pk}').status_code == 403
    assert patient_client.get('/api/users').status_code == 403
    r = patient_client.put(f'/api/users/{patient.pk}', {'phone': '0899', 'is_active': False}, format='json')
    assert r.status_code == 200
    patient.refresh_from_db()
    assert patient.phone == '0899'
    assert patient.is_active is True


def test_staff_manage_patients(staff_client, patient):
    r = staff_client.get('/api/users', {'q': 'Ahmad'})
    assert [u['id'] for u in r.data['data']] == [patient.pk]
    r = staff_client.post('/api/users', dict(REGISTRATION, nik='3171999900000002', email='new@example.com'),
                          format='json')
    assert r.status_code == 201
    assert User.objects.get(nik='3171999900000002').check_password(REGISTRATION['password'])


def test_only_super_admin_manages_staff(staff_client, super_admin, receptionist):
    body = {'username': 'finance2', 'name': 'Fina', 'email': 'fina@hospital.local', 'password': 'Str0ngPass!2024',
            'role': 'finance'}
    assert staff_client.get('/api/admins').status_code == 200
    assert staff_client.post('/api/admins', body, format='json').status_code == 403

    c = APIClient()
    c.force_authenticate(user=super_admin)
    r = c.post('/api/admins', body, format='json')
    assert r.status_code == 201
    assert User.objects.get(username='finance2').role == 'finance'
    assert c.delete(f'/api/admins/{super_admin.pk}').status_code == 400
    assert c.delete(f'/api/admins/{receptionist.pk}').status_code == 200


def test_patient_cannot_write_resources(patient_client, room):
    assert patient_client.get('/api/rooms').status_code == 200
    r = patient_client.post('/api/rooms', {'room_number': '999', 'room_type': 'vip', 'daily_rate': '1.00'},
                            format='json')
    assert r.status_code == 403
    assert patient_client.put(f'/api/rooms/{room.pk}', {'status': 'maintenance'}, format='json').status_code == 403


def test_html_is_stripped_from_text(patient_client, doctor, tomorrow):
    r = patient_client.post('/api/appointments', {
        'doctor_id': doctor.pk, 'appointment_date': tomorrow.isoformat(), 'appointment_time': '09:00',
        'coverage': 'bpjs', 'complaint': '<script>alert(1)</script>Fever',
    }, format='json')
    assert r.status_code == 201
    assert '<script>' not in r.data['data']['complaint']
    assert r.data['data']['complaint'].endswith('Fever')
