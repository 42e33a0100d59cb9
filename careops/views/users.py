"""
Patient and staff account management.

``/api/users`` manages patient accounts (staff only, patients may read
and edit their own profile).  ``/api/admins`` manages staff accounts;
only a super admin may create, change or remove them.
"""
from __future__ import annotations

from django.db import transaction
from django.db.models import Q
from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from careops import presenters
from careops.models import STAFF_ROLES, User
from careops.permissions import IsAdminRole, SuperAdminOrReadOnly, is_staff_user
from careops.responses import created, ok
from careops.serializers.users import AdminWriteSerializer, PatientWriteSerializer
from careops.services.audit import log_action
from careops.services.transitions import delete_account
from careops.views.common import paginate

PATIENT_FIELDS = ('nik', 'email', 'phone', 'birth_date', 'address', 'gender', 'bpjs_number', 'insurance', 'is_active')
ADMIN_FIELDS = ('username', 'email', 'role', 'phone', 'department', 'is_active')


def _apply(user: User, v: dict, fields) -> None:
    for field in fields:
        if field in v:
            setattr(user, field, v[field])
    if 'name' in v:
        user.first_name = v['name']
    if 'password' in v:
        user.set_password(v['password'])


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def users_list(request):
    if request.method == 'GET':
        qs = User.objects.filter(role='patient').order_by('-id')
        q = (request.query_params.get('q') or '').strip()
        if q:
            qs = qs.filter(Q(first_name__icontains=q) | Q(nik__icontains=q) | Q(email__icontains=q))
        return ok([presenters.user(u) for u in paginate(qs, request.query_params)])

    s = PatientWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        user = User(username=v['nik'], role='patient')
        _apply(user, v, PATIENT_FIELDS)
        user.save()
        log_action(user=request.user, action='user_create', object_type='user', object_id=user.id, request=request)
    return created(presenters.user(user), 'User created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def user_detail(request, pk: int):
    staff = is_staff_user(request.user)
    if not staff and request.user.pk != pk:
        raise PermissionDenied('You can only access your own profile.')
    user = get_object_or_404(User, pk=pk, role='patient')
    if request.method == 'GET':
        return ok(presenters.user(user))

    if request.method == 'PUT':
        s = PatientWriteSerializer(data=request.data, partial=True, context={'instance': user})
        s.is_valid(raise_exception=True)
        v = dict(s.validated_data)
        if not staff:
            v.pop('is_active', None)
        with transaction.atomic():
            _apply(user, v, PATIENT_FIELDS)
            if 'nik' in v:
                user.username = v['nik']
            user.save()
            log_action(user=request.user, action='user_update', object_type='user', object_id=user.id,
                       detail={'fields': sorted(k for k in v if k != 'password')}, request=request)
        return ok(presenters.user(user), 'User updated successfully')

    if not staff:
        raise PermissionDenied('Staff role required.')
    with transaction.atomic():
        log_action(user=request.user, action='user_delete', object_type='user', object_id=user.id, request=request)
        delete_account(user)
    return ok(message='User deleted successfully')


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, SuperAdminOrReadOnly])
def admins_list(request):
    if request.method == 'GET':
        qs = User.objects.filter(role__in=STAFF_ROLES).order_by('id')
        role = request.query_params.get('role')
        if role:
            qs = qs.filter(role=role)
        return ok([presenters.user(u) for u in paginate(qs, request.query_params)])

    s = AdminWriteSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        admin = User(is_staff=True)
        _apply(admin, v, ADMIN_FIELDS)
        admin.save()
        log_action(user=request.user, action='admin_create', object_type='user', object_id=admin.id,
                   detail={'role': admin.role}, request=request)
    return created(presenters.user(admin), 'Admin created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, SuperAdminOrReadOnly])
def admin_detail(request, pk: int):
    admin = get_object_or_404(User, pk=pk, role__in=STAFF_ROLES)
    if request.method == 'GET':
        return ok(presenters.user(admin))

    if request.method == 'PUT':
        s = AdminWriteSerializer(data=request.data, partial=True, context={'instance': admin})
        s.is_valid(raise_exception=True)
        with transaction.atomic():
            _apply(admin, s.validated_data, ADMIN_FIELDS)
            admin.save()
            log_action(user=request.user, action='admin_update', object_type='user', object_id=admin.id,
                       request=request)
        return ok(presenters.user(admin), 'Admin updated successfully')

    if admin.pk == request.user.pk:
        return Response({'success': False, 'message': 'You cannot delete your own account.'},
                        status=status.HTTP_400_BAD_REQUEST)
    with transaction.atomic():
        log_action(user=request.user, action='admin_delete', object_type='user', object_id=admin.id, request=request)
        delete_account(admin)
    return ok(message='Admin deleted successfully')
