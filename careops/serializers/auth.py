from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from careops.models import User
from careops.serializers.fields import clean_text


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField()

    def validate_username(self, v):
        v = (v or '').strip()
        if not v:
            raise serializers.ValidationError('Username is required.')
        return v

    def validate_password(self, v):
        if not v:
            raise serializers.ValidationError('Password is required.')
        return v


class PatientProfileSerializer(serializers.Serializer):
    """Fields a patient record carries; shared by self sign-up and staff."""
    nik = serializers.RegexField(r'^\d{16}$', error_messages={'invalid': 'NIK must be 16 digits.'})
    name = clean_text(required=True, max_length=150)
    email = serializers.EmailField()
    phone = clean_text(required=True, max_length=20)
    birth_date = serializers.DateField()
    address = clean_text(required=True)
    gender = serializers.ChoiceField(choices=['M', 'F'])
    bpjs_number = clean_text(max_length=20)
    insurance = clean_text(max_length=100)

    def validate_nik(self, v):
        qs = User.objects.filter(nik=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('This NIK is already registered.')
        return v

    def validate_email(self, v):
        qs = User.objects.filter(email__iexact=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('This email is already registered.')
        return v


class RegisterSerializer(PatientProfileSerializer):
    password = serializers.CharField(min_length=6, write_only=True)

    def validate(self, attrs):
        candidate = User(username=attrs['nik'], email=attrs['email'], first_name=attrs['name'])
        try:
            validate_password(attrs['password'], user=candidate)
        except DjangoValidationError as exc:
            raise serializers.ValidationError({"password": list(exc.messages)})
        return attrs
