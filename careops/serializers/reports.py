from rest_framework import serializers

from careops.models import Appointment, Payment


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1)
    page_size = serializers.IntegerField(required=False, min_value=1, max_value=200)


class DateRangeQuerySerializer(serializers.Serializer):
    start_date = serializers.DateField(required=False)
    end_date = serializers.DateField(required=False)

    def validate(self, attrs):
        start, end = attrs.get('start_date'), attrs.get('end_date')
        if start and end and end < start:
            raise serializers.ValidationError({'end_date': 'Must not be before start_date.'})
        return attrs


class DailyReportQuerySerializer(serializers.Serializer):
    date = serializers.DateField(required=False)


class AppointmentSearchSerializer(DateRangeQuerySerializer, PageQuerySerializer):
    q = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES], required=False)
    doctor_id = serializers.IntegerField(required=False, min_value=1)
    user_id = serializers.IntegerField(required=False, min_value=1)


class PaymentSearchSerializer(DateRangeQuerySerializer, PageQuerySerializer):
    q = serializers.CharField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=[c for c, _ in Payment.STATUS_CHOICES], required=False)
    service_type = serializers.ChoiceField(choices=[c for c, _ in Payment.SERVICE_CHOICES], required=False)
    user_id = serializers.IntegerField(required=False, min_value=1)
