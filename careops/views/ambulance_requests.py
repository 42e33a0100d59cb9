"""
Ambulance request endpoints: CRUD, dispatch, crew status updates and
the emergency board.
"""
from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import AmbulanceRequest
from careops.permissions import IsAdminRole
from careops.responses import created, ok
from careops.serializers.workflow import AmbulanceRequestSerializer, DispatchSerializer, TrackingSerializer
from careops.services import dispatch
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


def _requests():
    return AmbulanceRequest.objects.select_related('ambulance')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def ambulance_requests_list(request):
    if request.method == 'GET':
        qs = scoped(_requests(), request.user).order_by('-created_at', '-id')
        for param in ('status', 'request_type'):
            value = request.query_params.get(param)
            if value:
                qs = qs.filter(**{param: value})
        return ok([presenters.ambulance_request(r) for r in paginate(qs, request.query_params)])

    s = AmbulanceRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = dict(s.validated_data)
    v.pop('status', None)
    v['user'] = owner_for_create(request, v)
    req = dispatch.create_request(actor=actor(request), **v)
    message = 'Ambulance dispatched' if req.status == 'dispatched' else 'Ambulance request created successfully'
    return created(presenters.ambulance_request(req), message)


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def ambulance_request_detail(request, pk: int):
    req = get_scoped_or_404(_requests(), request.user, pk)
    if request.method == 'GET':
        return ok(presenters.with_history(presenters.ambulance_request(req), req, 'ambulance_request'))

    if request.method == 'PUT':
        check_patient_update(request, request.data)
        s = AmbulanceRequestSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        changes = dict(s.validated_data)
        changes.pop('user', None)
        changes.pop('request_type', None)
        req = dispatch.update_request(req.pk, changes, actor=actor(request))
        return ok(presenters.ambulance_request(req), 'Ambulance request updated successfully')

    require_staff(request)
    with transaction.atomic():
        log_action(user=request.user, action='ambulance_request_delete', object_type='ambulance_request',
                   object_id=req.id, detail={'request_number': req.request_number}, request=request)
        dispatch.delete_request(req.pk)
    return ok(message='Ambulance request deleted successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def ambulance_request_dispatch(request, pk: int):
    req = get_scoped_or_404(_requests(), request.user, pk)
    s = DispatchSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    ambulance = s.validated_data.get('ambulance_id')
    req = dispatch.dispatch_request(
        req.pk,
        actor=actor(request),
        ambulance_id=ambulance.pk if ambulance else None,
        distance_km=s.validated_data.get('distance_km'),
        sender=request.user,
    )
    return ok(presenters.ambulance_request(req), 'Ambulance dispatched')


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def ambulance_request_status(request, pk: int):
    req = get_scoped_or_404(_requests(), request.user, pk)
    s = TrackingSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    req = dispatch.update_tracking(req.pk, actor=actor(request), **s.validated_data)
    return ok(presenters.ambulance_request(req), 'Status updated')


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def emergency_requests(request):
    return ok([presenters.ambulance_request(r) for r in dispatch.emergency_board()])
