"""
In-app notifications.

Rows are written inside the caller's transaction; the websocket push to
``notifications.<user_id>`` is deferred until the transaction commits so
clients never hear about a notification that was rolled back.
"""
from __future__ import annotations

import logging
from typing import Iterable, Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.utils import timezone

from careops import presenters
from careops.models import Notification, User

logger = logging.getLogger(__name__)


def group_name(user_id: int) -> str:
    return f"notifications.{user_id}"


def push(notifications: Iterable[Notification]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    send = async_to_sync(channel_layer.group_send)
    for n in notifications:
        send(group_name(n.user_id), {"type": "notification.created", "notification": presenters.notification(n)})


def notify(*, user, title: str, message: str, type: str = 'general', sender=None) -> Notification:
    n = Notification.objects.create(user=user, sender=sender, title=title, message=message, type=type)
    transaction.on_commit(lambda: push([n]))
    return n


def send_bulk(*, user_ids: Iterable[int], title: str, message: str, type: str = 'general',
              sender=None) -> int:
    users = list(User.objects.filter(id__in=set(user_ids), is_active=True).order_by('id'))
    created = Notification.objects.bulk_create([
        Notification(user=u, sender=sender, title=title, message=message, type=type) for u in users
    ])
    # MySQL does not return primary keys from bulk_create
    pushable = [n for n in created if n.id is not None]
    if pushable:
        transaction.on_commit(lambda: push(pushable))
    logger.info("bulk notification '%s' sent to %d users", title, len(users))
    return len(users)


def mark_read(notification: Notification) -> Notification:
    if not notification.is_read:
        notification.is_read = True
        notification.save(update_fields=['is_read', 'updated_at'])
    return notification


def mark_all_read(user_id: int) -> int:
    return Notification.objects.filter(user_id=user_id, is_read=False).update(is_read=True, updated_at=timezone.now())


def unread_count(user_id: int) -> int:
    return Notification.objects.filter(user_id=user_id, is_read=False).count()


def notify_status(obj, title: str, message: str, type: str, sender: Optional[User] = None) -> Notification:
    """Tell the owner of a booking, request, appointment or payment what changed."""
    return notify(user=obj.user, title=title, message=message, type=type, sender=sender)
