"""
Authentication views.

Login hands out both a DRF token (``Authorization: Token <key>``) and a
JWT pair; logout blacklists refresh tokens.  Patients can sign up on
their own with their national id (NIK) as username.  Kept apart from
``careops.authentication`` so DRF can load the authentication class
without importing views.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from django.db import transaction
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken
from rest_framework_simplejwt.views import TokenRefreshView

from careops import presenters
from careops.exceptions import BusinessRuleViolation
from careops.models import User
from careops.responses import created, ok
from careops.serializers.auth import LoginSerializer, RegisterSerializer
from careops.services.audit import log_action

logger = logging.getLogger(__name__)


def _token_payload(user: User) -> dict:
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return {
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': presenters.user(user),
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """Username (or NIK) + password login."""
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']

    user = authenticate(request, username=username, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'username': username}, request=request)
        logger.info("failed login for %s", username)
        return Response({'success': False, 'message': 'Invalid username or password.'}, status=401)

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok'}, request=request)
    return ok(_token_payload(user), 'Login successful')

# ScopedRateThrottle reads throttle_scope from the APIView instance, not the function
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def register_view(request):
    """Patient self sign-up."""
    s = RegisterSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        user = User.objects.create_user(
            username=v['nik'],
            password=v['password'],
            email=v['email'],
            first_name=v['name'],
            role='patient',
            nik=v['nik'],
            phone=v['phone'],
            birth_date=v['birth_date'],
            address=v['address'],
            gender=v['gender'],
            bpjs_number=v.get('bpjs_number', ''),
            insurance=v.get('insurance', ''),
        )
        log_action(user=user, action='register', object_type='user', object_id=user.id, request=request)
    return created(_token_payload(user), 'Registration successful')

register_view.cls.throttle_scope = 'register'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return ok(presenters.user(request.user))


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    resp = TokenRefreshView.as_view()(request._request)
    if resp.status_code != 200:
        return Response({'success': False, 'message': 'Refresh token is invalid or expired.'}, status=401)
    data = dict(resp.data)
    return ok({'jwt_access': data.pop('access'), **({'jwt_refresh': data['refresh']} if 'refresh' in data else {})})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the user's tokens."""
    refresh = request.data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
            token.blacklist()
        except TokenError as exc:
            raise BusinessRuleViolation(str(exc))
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, was_created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(was_created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count}, request=request)
    return ok({'blacklisted': count}, 'Logged out')
