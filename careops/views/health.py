import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse
from django.utils import timezone

logger = logging.getLogger(__name__)


def healthz(request):
    try:
        with connections['default'].cursor() as c:
            c.execute('SELECT 1')
            row = c.fetchone()
    except DatabaseError as e:
        logger.error("health check failed: %s", e)
        return JsonResponse({'success': False, 'message': 'database unavailable', 'errors': {'db': str(e)}},
                            status=503)
    return JsonResponse({
        'success': True,
        'message': 'API is running',
        'data': {'db': bool(row and row[0] == 1), 'timestamp': timezone.localtime().isoformat()},
    })
