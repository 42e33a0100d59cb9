from __future__ import annotations

from rest_framework.response import Response


def ok(data=None, message: str = 'Success', status: int = 200) -> Response:
    """Successful API envelope."""
    body = {'success': True, 'message': message}
    if data is not None:
        body['data'] = data
    return Response(body, status=status)


def created(data, message: str = 'Created successfully') -> Response:
    return ok(data, message, status=201)
