"""
Doctors, rooms and ambulances: CRUD plus availability search.

Room and ambulance ``status`` can only be toggled between the
maintenance override and "in service"; whether an in-service resource
is occupied / operating is always derived from its bookings / requests.
"""
from __future__ import annotations

from django.db import transaction
from django.shortcuts import get_object_or_404
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import Ambulance, Doctor, Room
from careops.permissions import StaffOrReadOnly
from careops.responses import created, ok
from careops.serializers.resources import (
    AmbulanceSearchSerializer,
    AmbulanceSerializer,
    DoctorSerializer,
    RoomSearchSerializer,
    RoomSerializer,
)
from careops.services.audit import log_action
from careops.services.bookings import available_rooms
from careops.services.dispatch import available_ambulances
from careops.services.transitions import sync_ambulance_status, sync_room_status
from careops.views.common import paginate


# ---------------------------------------------------------------------
# Doctors
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def doctors_list(request):
    if request.method == 'GET':
        qs = Doctor.objects.order_by('name')
        specialty = request.query_params.get('specialty')
        if specialty:
            qs = qs.filter(specialty__icontains=specialty)
        doctor_status = request.query_params.get('status')
        if doctor_status:
            qs = qs.filter(status=doctor_status)
        return ok([presenters.doctor(d) for d in paginate(qs, request.query_params)])

    s = DoctorSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    with transaction.atomic():
        doctor = Doctor.objects.create(created_by=request.user, **s.validated_data)
        log_action(user=request.user, action='doctor_create', object_type='doctor', object_id=doctor.id,
                   request=request)
    return created(presenters.doctor(doctor), 'Doctor created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def doctor_detail(request, pk: int):
    doctor = get_object_or_404(Doctor, pk=pk)
    if request.method == 'GET':
        return ok(presenters.doctor(doctor))
    if request.method == 'PUT':
        s = DoctorSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for field, value in s.validated_data.items():
            setattr(doctor, field, value)
        doctor.save()
        return ok(presenters.doctor(doctor), 'Doctor updated successfully')
    with transaction.atomic():
        log_action(user=request.user, action='doctor_delete', object_type='doctor', object_id=doctor.id,
                   request=request)
        doctor.delete()
    return ok(message='Doctor deleted successfully')


# ---------------------------------------------------------------------
# Rooms
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def rooms_list(request):
    if request.method == 'GET':
        qs = Room.objects.order_by('room_number')
        for param in ('room_type', 'status'):
            value = request.query_params.get(param)
            if value:
                qs = qs.filter(**{param: value})
        return ok([presenters.room(r) for r in paginate(qs, request.query_params)])

    s = RoomSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    room = Room.objects.create(**s.validated_data)
    return created(presenters.room(room), 'Room created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def room_detail(request, pk: int):
    room = get_object_or_404(Room, pk=pk)
    if request.method == 'GET':
        return ok(presenters.room(room))
    if request.method == 'PUT':
        s = RoomSerializer(data=request.data, partial=True, context={'instance': room})
        s.is_valid(raise_exception=True)
        with transaction.atomic():
            room = Room.objects.select_for_update().get(pk=pk)
            for field, value in s.validated_data.items():
                setattr(room, field, value)
            room.save()
            if 'status' in s.validated_data:
                log_action(user=request.user, action='room_status', object_type='room', object_id=room.id,
                           detail={'status': room.status}, request=request)
            room = sync_room_status(room.pk)
        return ok(presenters.room(room), 'Room updated successfully')
    with transaction.atomic():
        log_action(user=request.user, action='room_delete', object_type='room', object_id=room.id, request=request)
        room.delete()
    return ok(message='Room deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def rooms_available(request):
    q = RoomSearchSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    rows = available_rooms(v['checkin_date'], v.get('checkout_date'), v.get('room_type'))
    data = [
        {**presenters.room(room), 'estimated_days': days, 'estimated_total_cost': str(cost)}
        for room, days, cost in rows
    ]
    return ok(data)


# ---------------------------------------------------------------------
# Ambulances
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def ambulances_list(request):
    if request.method == 'GET':
        qs = Ambulance.objects.order_by('id')
        for param in ('ambulance_type', 'status'):
            value = request.query_params.get(param)
            if value:
                qs = qs.filter(**{param: value})
        return ok([presenters.ambulance(a) for a in paginate(qs, request.query_params)])

    s = AmbulanceSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ambulance = Ambulance.objects.create(**s.validated_data)
    return created(presenters.ambulance(ambulance), 'Ambulance created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, StaffOrReadOnly])
def ambulance_detail(request, pk: int):
    ambulance = get_object_or_404(Ambulance, pk=pk)
    if request.method == 'GET':
        return ok(presenters.ambulance(ambulance))
    if request.method == 'PUT':
        s = AmbulanceSerializer(data=request.data, partial=True, context={'instance': ambulance})
        s.is_valid(raise_exception=True)
        with transaction.atomic():
            ambulance = Ambulance.objects.select_for_update().get(pk=pk)
            for field, value in s.validated_data.items():
                setattr(ambulance, field, value)
            ambulance.save()
            if 'status' in s.validated_data:
                log_action(user=request.user, action='ambulance_status', object_type='ambulance',
                           object_id=ambulance.id, detail={'status': ambulance.status}, request=request)
            ambulance = sync_ambulance_status(ambulance.pk)
        return ok(presenters.ambulance(ambulance), 'Ambulance updated successfully')
    with transaction.atomic():
        log_action(user=request.user, action='ambulance_delete', object_type='ambulance', object_id=ambulance.id,
                   request=request)
        ambulance.delete()
    return ok(message='Ambulance deleted successfully')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def ambulances_available(request):
    q = AmbulanceSearchSerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    v = q.validated_data
    qs = available_ambulances(v.get('ambulance_type'), v.get('location'))
    return ok([presenters.ambulance(a) for a in qs])
