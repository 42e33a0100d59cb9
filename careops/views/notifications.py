from __future__ import annotations

from django.db import transaction
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated

from careops import presenters
from careops.models import Notification
from careops.permissions import IsAdminRole, is_staff_user
from careops.responses import created, ok
from careops.serializers.notifications import BulkNotificationSerializer, NotificationSerializer
from careops.services import notifications
from careops.views.common import get_scoped_or_404, paginate, require_staff, scoped


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def notifications_list(request):
    if request.method == 'GET':
        qs = scoped(Notification.objects.all(), request.user).order_by('-created_at', '-id')
        user_id = request.query_params.get('user_id')
        if user_id and is_staff_user(request.user):
            qs = qs.filter(user_id=user_id)
        is_read = request.query_params.get('is_read')
        if is_read in ('true', 'false', '1', '0'):
            qs = qs.filter(is_read=is_read in ('true', '1'))
        return ok([presenters.notification(n) for n in paginate(qs, request.query_params)])

    require_staff(request)
    s = NotificationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        n = notifications.notify(user=v['user'], title=v['title'], message=v['message'], type=v['type'],
                                 sender=request.user)
    return created(presenters.notification(n), 'Notification sent')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def notification_detail(request, pk: int):
    n = get_scoped_or_404(Notification.objects.all(), request.user, pk)
    if request.method == 'GET':
        return ok(presenters.notification(n))
    if request.method == 'PUT':
        if not is_staff_user(request.user) and set(request.data.keys()) - {'is_read'}:
            raise PermissionDenied('Only the read flag can be changed.')
        s = NotificationSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)
        for field, value in s.validated_data.items():
            setattr(n, field, value)
        n.save()
        return ok(presenters.notification(n), 'Notification updated successfully')
    n.delete()
    return ok(message='Notification deleted successfully')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notification_mark_read(request, pk: int):
    n = get_scoped_or_404(Notification.objects.all(), request.user, pk)
    notifications.mark_read(n)
    return ok(presenters.notification(n), 'Notification marked as read')


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def notifications_mark_all_read(request, user_id: int):
    if not is_staff_user(request.user) and request.user.pk != user_id:
        raise PermissionDenied('You can only update your own notifications.')
    updated = notifications.mark_all_read(user_id)
    return ok({'updated_count': updated}, 'All notifications marked as read')


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def notifications_unread_count(request):
    user_id = request.user.pk
    requested = request.query_params.get('user_id')
    if requested and requested.isdigit() and is_staff_user(request.user):
        user_id = int(requested)
    return ok({'unread_count': notifications.unread_count(user_id)})


@api_view(['POST'])
@permission_classes([IsAuthenticated, IsAdminRole])
def notifications_bulk(request):
    s = BulkNotificationSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    v = s.validated_data
    with transaction.atomic():
        sent = notifications.send_bulk(user_ids=v['user_ids'], title=v['title'], message=v['message'],
                                       type=v['type'], sender=request.user)
    return ok({'sent_count': sent}, 'Notifications sent')
