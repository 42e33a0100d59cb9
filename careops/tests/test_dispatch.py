import datetime
from decimal import Decimal

import pytest

from careops.models import Ambulance, AmbulanceRequest, Notification

from .conftest import make_ambulance

pytestmark = pytest.mark.django_db


def request_body(request_type, day, **extra):
    return {
        'request_type': request_type,
        'pickup_location': 'Jl. Sudirman No. 5',
        'destination': 'Main hospital',
        'patient_condition': 'Chest pain',
        'request_date': day.isoformat(),
        'request_time': '09:30',
        'coverage': 'bpjs',
        **extra,
    }


def test_emergency_is_dispatched_to_first_available_unit(patient_client, today):
    transport = make_ambulance('B 0001 TRN', ambulance_type='transport')
    busy = make_ambulance('B 0002 EMG', status=Ambulance.STATUS_MAINTENANCE)
    first = make_ambulance('B 0003 EMG')
    make_ambulance('B 0004 EMG')

    r = patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    assert r.status_code == 201, r.data
    data = r.data['data']
    assert data['status'] == 'dispatched'
    assert data['ambulance_id'] == first.pk
    assert r.data['message'] == 'Ambulance dispatched'
    # base 50 + 5/km over the default 10 km
    assert data['total_cost'] == '100.00'
    assert Decimal(data['distance_km']) == Decimal('10')

    first.refresh_from_db()
    transport.refresh_from_db()
    busy.refresh_from_db()
    assert first.status == Ambulance.STATUS_OPERATING
    assert transport.status == Ambulance.STATUS_AVAILABLE
    assert busy.status == Ambulance.STATUS_MAINTENANCE


def test_emergency_without_free_unit_fails(patient_client, today):
    make_ambulance('B 0001 TRN', ambulance_type='transport')
    r = patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    assert r.status_code == 400
    assert r.data['success'] is False
    assert AmbulanceRequest.objects.count() == 0


def test_two_emergencies_take_two_units(patient_client, today):
    a = make_ambulance('B 0001 EMG')
    b = make_ambulance('B 0002 EMG')
    first = patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    second = patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    assert first.data['data']['ambulance_id'] == a.pk
    assert second.data['data']['ambulance_id'] == b.pk
    third = patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    assert third.status_code == 400


def test_scheduled_request_must_be_in_the_future(patient_client, ambulance, today):
    r = patient_client.post('/api/ambulance-requests', request_body('scheduled', today), format='json')
    assert r.status_code == 400
    assert 'after today' in r.data['message']


def test_scheduled_request_waits_for_dispatch(patient_client, staff_client, patient, ambulance, tomorrow):
    r = patient_client.post('/api/ambulance-requests', request_body('scheduled', tomorrow), format='json')
    assert r.status_code == 201
    data = r.data['data']
    assert data['status'] == 'pending'
    assert data['ambulance_id'] is None
    assert data['total_cost'] is None
    assert data['request_number'].startswith('AMB')

    r = staff_client.post(f"/api/ambulance-requests/{data['id']}/dispatch",
                          {'ambulance_id': ambulance.pk, 'distance_km': '4'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'dispatched'
    assert r.data['data']['total_cost'] == '70.00'
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_OPERATING
    assert Notification.objects.filter(user=patient, type='ambulance').exists()


def test_dispatch_needs_an_ambulance(patient_client, staff_client, tomorrow):
    pk = patient_client.post('/api/ambulance-requests', request_body('scheduled', tomorrow),
                             format='json').data['data']['id']
    r = staff_client.post(f'/api/ambulance-requests/{pk}/dispatch', {}, format='json')
    assert r.status_code == 400


def test_dispatch_to_a_busy_unit_fails(patient_client, staff_client, ambulance, today, tomorrow):
    patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    pk = patient_client.post('/api/ambulance-requests', request_body('scheduled', tomorrow),
                             format='json').data['data']['id']
    r = staff_client.post(f'/api/ambulance-requests/{pk}/dispatch', {'ambulance_id': ambulance.pk}, format='json')
    assert r.status_code == 400
    assert AmbulanceRequest.objects.get(pk=pk).status == 'pending'


def test_tracking_to_completion_frees_the_unit(patient_client, staff_client, receptionist, ambulance, today):
    pk = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                             format='json').data['data']['id']

    r = staff_client.post(f'/api/ambulance-requests/{pk}/status',
                          {'status': 'on_way', 'current_location': 'Jl. Thamrin'}, format='json')
    assert r.status_code == 200
    ambulance.refresh_from_db()
    assert ambulance.current_location == 'Jl. Thamrin'
    assert ambulance.status == Ambulance.STATUS_OPERATING

    r = staff_client.post(f'/api/ambulance-requests/{pk}/status', {'status': 'arrived', 'notes': 'Patient stable'},
                          format='json')
    assert r.status_code == 200
    assert 'Patient stable' in r.data['data']['notes']

    r = staff_client.post(f'/api/ambulance-requests/{pk}/status',
                          {'status': 'completed', 'actual_distance_km': '12.5'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'completed'
    assert r.data['data']['total_cost'] == '112.50'
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_AVAILABLE

    detail = staff_client.get(f'/api/ambulance-requests/{pk}').data['data']
    assert detail['dispatched_by']['id'] is not None
    assert [h['to_status'] for h in detail['history']] == ['pending', 'dispatched', 'on_way', 'arrived', 'completed']


def test_tracking_cannot_go_backwards(patient_client, staff_client, ambulance, today):
    pk = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                             format='json').data['data']['id']
    staff_client.post(f'/api/ambulance-requests/{pk}/status', {'status': 'arrived'}, format='json')
    r = staff_client.post(f'/api/ambulance-requests/{pk}/status', {'status': 'on_way'}, format='json')
    assert r.status_code == 400
    assert AmbulanceRequest.objects.get(pk=pk).status == 'arrived'


def test_repeated_status_is_a_position_update(patient_client, staff_client, ambulance, today):
    pk = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                             format='json').data['data']['id']
    r = staff_client.post(f'/api/ambulance-requests/{pk}/status',
                          {'status': 'dispatched', 'current_location': 'Km 3'}, format='json')
    assert r.status_code == 200
    ambulance.refresh_from_db()
    assert ambulance.current_location == 'Km 3'


def test_patient_cancellation_frees_the_unit(patient_client, ambulance, today):
    pk = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                             format='json').data['data']['id']
    r = patient_client.put(f'/api/ambulance-requests/{pk}', {'status': 'cancelled'}, format='json')
    assert r.status_code == 200
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_AVAILABLE


def test_patient_cannot_dispatch(patient_client, ambulance, tomorrow):
    pk = patient_client.post('/api/ambulance-requests', request_body('scheduled', tomorrow),
                             format='json').data['data']['id']
    r = patient_client.post(f'/api/ambulance-requests/{pk}/dispatch', {'ambulance_id': ambulance.pk}, format='json')
    assert r.status_code == 403


def test_emergency_board_lists_active_emergencies(patient_client, staff_client, ambulance, today, tomorrow):
    patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    patient_client.post('/api/ambulance-requests', request_body('scheduled', tomorrow), format='json')
    r = staff_client.get('/api/ambulance-requests/emergency')
    assert r.status_code == 200
    assert [row['request_type'] for row in r.data['data']] == ['emergency']
    assert r.data['data'][0]['ambulance']['plate_number'] == ambulance.plate_number


def test_available_ambulance_search(patient_client, today):
    make_ambulance('B 0001 ICU', ambulance_type='icu', base='200.00', current_location='North garage')
    make_ambulance('B 0002 EMG', base='80.00', current_location='South garage')
    make_ambulance('B 0003 EMG', base='60.00', current_location='North garage')
    r = patient_client.get('/api/ambulances/available/search', {'location': 'north'})
    assert [row['plate_number'] for row in r.data['data']] == ['B 0003 EMG', 'B 0001 ICU']
    r = patient_client.get('/api/ambulances/available/search', {'ambulance_type': 'emergency'})
    assert [row['plate_number'] for row in r.data['data']] == ['B 0003 EMG', 'B 0002 EMG']


def test_delete_request_releases_unit(patient_client, staff_client, ambulance, today):
    pk = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                             format='json').data['data']['id']
    r = staff_client.delete(f'/api/ambulance-requests/{pk}')
    assert r.status_code == 200
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_AVAILABLE
    assert not AmbulanceRequest.objects.filter(pk=pk).exists()


def test_scheduled_date_parsing_is_validated(patient_client):
    r = patient_client.post('/api/ambulance-requests', request_body('scheduled', datetime.date(2030, 1, 1),
                                                                    request_date='01/01/2030'), format='json')
    assert r.status_code == 422
    assert 'request_date' in r.data['errors']


def test_deleting_a_patient_releases_their_ambulance(patient_client, staff_client, patient, ambulance, today):
    patient_client.post('/api/ambulance-requests', request_body('emergency', today), format='json')
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_OPERATING

    assert staff_client.delete(f'/api/users/{patient.pk}').status_code == 200
    assert not AmbulanceRequest.objects.exists()
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_AVAILABLE


def test_busy_unit_cannot_be_taken_through_status_or_update(patient_client, staff_client, ambulance,
                                                            today, tomorrow):
    emergency = patient_client.post('/api/ambulance-requests', request_body('emergency', today),
                                    format='json').data['data']['id']
    r = patient_client.post('/api/ambulance-requests',
                            request_body('scheduled', tomorrow, ambulance_id=ambulance.pk), format='json')
    assert r.status_code == 201
    pk = r.data['data']['id']

    r = staff_client.post(f'/api/ambulance-requests/{pk}/status', {'status': 'dispatched'}, format='json')
    assert r.status_code == 400
    r = staff_client.put(f'/api/ambulance-requests/{pk}', {'status': 'dispatched'}, format='json')
    assert r.status_code == 400
    assert AmbulanceRequest.objects.get(pk=pk).status == 'pending'
    assert AmbulanceRequest.objects.filter(ambulance=ambulance, status__in=['dispatched', 'on_way', 'arrived']
                                           ).count() == 1

    # once the unit is free the same move goes through
    staff_client.post(f'/api/ambulance-requests/{emergency}/status', {'status': 'completed'}, format='json')
    r = staff_client.post(f'/api/ambulance-requests/{pk}/status', {'status': 'dispatched'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'dispatched'
    ambulance.refresh_from_db()
    assert ambulance.status == Ambulance.STATUS_OPERATING
