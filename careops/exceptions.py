"""
Domain exceptions and the DRF exception handler.

Every failure leaves the API as ``{"success": false, "message": ...}``;
validation failures add a field-keyed ``errors`` map and use HTTP 422.
"""
from __future__ import annotations

import logging

from django.db import IntegrityError
from django.db.models import ProtectedError
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler, set_rollback

logger = logging.getLogger(__name__)


class BusinessRuleViolation(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Business rule violated.'
    default_code = 'business_rule'


class InvalidTransition(BusinessRuleViolation):
    default_detail = 'Status transition not allowed.'
    default_code = 'invalid_transition'


class ResourceUnavailable(BusinessRuleViolation):
    default_detail = 'Resource is not available.'
    default_code = 'resource_unavailable'


class AlreadyConfirmed(BusinessRuleViolation):
    default_detail = 'Payment already confirmed.'
    default_code = 'already_confirmed'


def _message(data) -> str:
    if isinstance(data, dict):
        detail = data.get('detail')
        if detail is not None:
            return str(detail)
    if isinstance(data, list) and data:
        return str(data[0])
    return str(data)


def api_exception_handler(exc, context):
    if isinstance(exc, ValidationError):
        errors = exc.detail if isinstance(exc.detail, dict) else {'non_field_errors': exc.detail}
        return Response(
            {'success': False, 'message': 'Validation Error', 'errors': errors},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )
    if isinstance(exc, ProtectedError):
        set_rollback()
        return Response(
            {'success': False, 'message': 'Record is still referenced and cannot be deleted.'},
            status=status.HTTP_400_BAD_REQUEST,
        )
    if isinstance(exc, IntegrityError):
        set_rollback()
        logger.warning("integrity error: %s", exc)
        return Response(
            {'success': False, 'message': 'Validation Error', 'errors': {'non_field_errors': [str(exc)]}},
            status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.exception("unhandled error in %s", view.__class__.__name__ if view else 'view', exc_info=exc)
        return Response({'success': False, 'message': 'Internal server error'}, status=500)
    headers = {k: resp[k] for k in ('WWW-Authenticate', 'Retry-After') if resp.has_header(k)}
    return Response({'success': False, 'message': _message(resp.data)}, status=resp.status_code, headers=headers)
