import bleach
from django.utils import timezone
from rest_framework import serializers

from careops.models import COVERAGE_CHOICES


class CleanCharField(serializers.CharField):
    """CharField that strips any HTML from the submitted text."""

    def to_internal_value(self, data):
        value = super().to_internal_value(data)
        return bleach.clean(value, tags=[], strip=True).strip()


def clean_text(required: bool = False, **kwargs) -> CleanCharField:
    kwargs.setdefault('allow_blank', not required)
    if not required:
        kwargs.setdefault('default', '')
    return CleanCharField(required=required, **kwargs)


def money(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, **kwargs)


def coverage(**kwargs) -> serializers.ChoiceField:
    return serializers.ChoiceField(choices=[c for c, _ in COVERAGE_CHOICES], **kwargs)


def not_in_past(value):
    if value < timezone.localdate():
        raise serializers.ValidationError('Must be today or later.')
    return value
