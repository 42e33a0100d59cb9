import datetime
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from careops.models import Ambulance, Doctor, Room, User


@pytest.fixture(autouse=True)
def _clear_cache():
    # throttle counters and report payloads live in the cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def today():
    return timezone.localdate()


@pytest.fixture
def tomorrow(today):
    return today + datetime.timedelta(days=1)


@pytest.fixture
def patient(db):
    return User.objects.create_user(
        username='3171000000000001', password='P@ssw0rd1', role='patient', nik='3171000000000001',
        first_name='Ahmad Fauzi', email='ahmad@example.com',
    )


@pytest.fixture
def other_patient(db):
    return User.objects.create_user(
        username='3171000000000002', password='P@ssw0rd1', role='patient', nik='3171000000000002',
        first_name='Dewi Sartika', email='dewi@example.com',
    )


@pytest.fixture
def receptionist(db):
    return User.objects.create_user(username='reception1', password='P@ssw0rd1', role='receptionist',
                                    first_name='Rina', email='rina@hospital.local')


@pytest.fixture
def super_admin(db):
    return User.objects.create_user(username='superadmin', password='P@ssw0rd1', role='super_admin',
                                    first_name='Super', email='super@hospital.local')


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def staff_client(receptionist):
    c = APIClient()
    c.force_authenticate(user=receptionist)
    return c


@pytest.fixture
def patient_client(patient):
    c = APIClient()
    c.force_authenticate(user=patient)
    return c


@pytest.fixture
def room(db):
    return Room.objects.create(room_number='101', room_type='vip', daily_rate=Decimal('100.00'))


@pytest.fixture
def second_room(db):
    return Room.objects.create(room_number='102', room_type='class_1', daily_rate=Decimal('80.00'))


@pytest.fixture
def doctor(db):
    return Doctor.objects.create(name='dr. Siti Rahma', specialty='Internal Medicine',
                                 consultation_fee=Decimal('150.00'))


def make_ambulance(plate, ambulance_type='emergency', base='50.00', per_km='5.00', **extra):
    return Ambulance.objects.create(
        plate_number=plate, ambulance_type=ambulance_type, base_fare=Decimal(base), per_km_fare=Decimal(per_km),
        driver_name='Budi', driver_phone='081200000000', **extra,
    )


@pytest.fixture
def ambulance(db):
    return make_ambulance('B 1101 AMB')
