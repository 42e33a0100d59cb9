from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from careops.models import STAFF_ROLES, User
from careops.serializers.auth import PatientProfileSerializer
from careops.serializers.fields import clean_text


def _check_password(value, user):
    try:
        validate_password(value, user=user)
    except DjangoValidationError as exc:
        raise serializers.ValidationError({'password': list(exc.messages)})


class PatientWriteSerializer(PatientProfileSerializer):
    """Staff-side create / update of patient accounts."""
    password = serializers.CharField(min_length=6, write_only=True)
    is_active = serializers.BooleanField(required=False)

    def validate(self, attrs):
        if 'password' in attrs:
            instance = self.context.get('instance')
            _check_password(attrs['password'], instance or User(username=attrs.get('nik', '')))
        return attrs


class AdminWriteSerializer(serializers.Serializer):
    username = clean_text(required=True, max_length=150)
    name = clean_text(required=True, max_length=150)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    role = serializers.ChoiceField(choices=sorted(STAFF_ROLES))
    phone = clean_text(max_length=20)
    department = clean_text(max_length=100)
    is_active = serializers.BooleanField(required=False)

    def validate_username(self, v):
        qs = User.objects.filter(username=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('This username is taken.')
        return v

    def validate_email(self, v):
        qs = User.objects.filter(email__iexact=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('This email is already registered.')
        return v

    def validate(self, attrs):
        if 'password' in attrs:
            instance = self.context.get('instance')
            _check_password(attrs['password'], instance or User(username=attrs.get('username', '')))
        return attrs
