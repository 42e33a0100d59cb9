"""
Helpers shared by the resource views: record scoping, ownership on
create, the patient cancel rule and simple page slicing.
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework.exceptions import PermissionDenied, ValidationError

from careops.permissions import is_staff_user
from careops.serializers.reports import PageQuerySerializer
from careops.services.transitions import ActorRef


def actor(request) -> ActorRef:
    return ActorRef.of(request.user)


def scoped(qs, user):
    """Staff see everything; patients only their own records."""
    if is_staff_user(user):
        return qs
    return qs.filter(user=user)


def get_scoped_or_404(qs, user, pk):
    return get_object_or_404(scoped(qs, user), pk=pk)


def owner_for_create(request, validated: dict, required: bool = True):
    """Patients always act for themselves; staff must name the patient."""
    if not is_staff_user(request.user):
        return request.user
    owner = validated.get('user')
    if owner is None and required:
        raise ValidationError({'user_id': ['This field is required.']})
    return owner


def require_staff(request) -> None:
    if not is_staff_user(request.user):
        raise PermissionDenied('Staff role required.')


def check_patient_update(request, data: dict) -> None:
    """Patients may only cancel their own records through PUT."""
    if is_staff_user(request.user):
        return
    if set(data.keys()) != {'status'} or data['status'] != 'cancelled':
        raise PermissionDenied('Patients can only cancel their own records.')


def paginate(qs, params):
    q = PageQuerySerializer(data=params)
    q.is_valid(raise_exception=True)
    page = q.validated_data.get('page') or 1
    page_size = q.validated_data.get('page_size') or 0
    if page_size:
        start = (page - 1) * page_size
        return qs[start:start + page_size]
    return qs