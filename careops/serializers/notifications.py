from rest_framework import serializers

from careops.models import Notification, User
from careops.serializers.fields import clean_text

TYPES = [c for c, _ in Notification.TYPE_CHOICES]


class NotificationSerializer(serializers.Serializer):
    user_id = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all())
    title = clean_text(required=True, max_length=255)
    message = clean_text(required=True)
    type = serializers.ChoiceField(choices=TYPES, default='general')
    is_read = serializers.BooleanField(required=False)


class BulkNotificationSerializer(serializers.Serializer):
    user_ids = serializers.ListField(child=serializers.IntegerField(min_value=1), allow_empty=False)
    title = clean_text(required=True, max_length=255)
    message = clean_text(required=True)
    type = serializers.ChoiceField(choices=TYPES, default='general')
