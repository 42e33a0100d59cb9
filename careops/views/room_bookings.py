"""
Room booking endpoints: CRUD plus the confirm / check-in / check-out
actions and the occupancy report.
"""
from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import RoomBooking
from careops.permissions import IsAdminRole, is_staff_user
from careops.responses import created, ok
from careops.serializers.reports import DateRangeQuerySerializer
from careops.serializers.workflow import CheckinSerializer, CheckoutSerializer, RoomBookingSerializer
from careops.services import bookings, reports
from careops.services.audit import log_action
from careops.views.common import (
    actor,
    check_patient_update,
    get_scoped_or_404,
    owner_for_create,
    paginate,
    require_staff,
    scoped,
)


def _bookings():
    return RoomBooking.objects.select_related('room')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def room_bookings_list(request):
    if request.method == 'GET':
        qs = scoped(_bookings(), request.user).order_by('-checkin_date', '-id')
        booking_status = request.query_params.get('status')
        if booking_status:
            qs = qs.filter(status=booking_status)
        return ok([presenters.room_booking(b) for b in paginate(qs, request.query_params)])

    s = RoomBookingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)
    v.pop('status', None)
    confirm = v.pop('auto_confirm', False) and is_staff_user(request.user)
    v['user'] = owner_for_create(request, v)
    booking = bookings.create_booking(actor=actor(request), confirm=confirm, **v)
    return created(presenters.room_booking(booking), 'Room booking created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def room_booking_detail(request, pk: int):
    booking = get_scoped_or_404(_bookings(), request.user, pk)
    if request.method == 'GET':
        return ok(presenters.with_history(presenters.room_booking(booking), booking, 'room_booking'))

    if request.method == 'PUT':
        check_patient_update(request, request.data)
        s = RoomBookingSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        changes = dict(s.validated_data)
        changes.pop('user', None)
        changes.pop('auto_confirm', None)
        booking = bookings.update_booking(booking.pk, changes, actor=actor(request))
        return ok(presenters.room_booking(booking), 'Room booking updated successfully')

    require_staff(request)
    with transaction.atomic():
        log_action(user=request.user, action='room_booking_delete', object_type='room_booking',
                   object_id=booking.id, detail={'booking_number': booking.booking_number}, request=request)
        bookings.delete_booking(booking.pk)
    return ok(message='Room booking deleted successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_booking_confirm(request, pk: int):
    booking = get_scoped_or_404(_bookings(), request.user, pk)
    booking = bookings.confirm_booking(booking.pk, actor=actor(request), sender=request.user)
    return ok(presenters.room_booking(booking), 'Room booking confirmed')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_booking_checkin(request, pk: int):
    booking = get_scoped_or_404(_bookings(), request.user, pk)
    s = CheckinSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = bookings.checkin_booking(booking.pk, actor=actor(request), **s.validated_data)
    return ok(presenters.room_booking(booking), 'Checked in')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def room_booking_checkout(request, pk: int):
    booking = get_scoped_or_404(_bookings(), request.user, pk)
    s = CheckoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    booking = bookings.checkout_booking(booking.pk, actor=actor(request), **s.validated_data)
    return ok(presenters.room_booking(booking), 'Checked out')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def occupancy_report(request):
    q = DateRangeQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return ok(reports.occupancy_report(q.validated_data.get('start_date'), q.validated_data.get('end_date')))
