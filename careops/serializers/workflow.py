"""
Input validation for appointments, room bookings, ambulance requests
and payments, including the action endpoints (confirm, checkout,
dispatch, status).
"""
from rest_framework import serializers

from careops.models import (
    Ambulance,
    AmbulanceRequest,
    Appointment,
    Doctor,
    Payment,
    Room,
    RoomBooking,
    User,
)
from careops.serializers.fields import clean_text, coverage, money, not_in_past


def _statuses(model):
    return [c for c, _ in model.STATUS_CHOICES]


class AppointmentSerializer(serializers.Serializer):
    user_id = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all(), required=False)
    doctor_id = serializers.PrimaryKeyRelatedField(source='doctor', queryset=Doctor.objects.all())
    service_type = serializers.ChoiceField(choices=[c for c, _ in Appointment.SERVICE_CHOICES], default='outpatient')
    appointment_date = serializers.DateField(validators=[not_in_past])
    appointment_time = serializers.TimeField()
    complaint = clean_text()
    coverage = coverage()
    total_cost = money(required=False, allow_null=True)
    notes = clean_text()
    status = serializers.ChoiceField(choices=_statuses(Appointment), required=False)


class RoomBookingSerializer(serializers.Serializer):
    user_id = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all(), required=False)
    room_id = serializers.PrimaryKeyRelatedField(source='room', queryset=Room.objects.all())
    appointment_id = serializers.PrimaryKeyRelatedField(
        source='appointment', queryset=Appointment.objects.all(), required=False, allow_null=True
    )
    checkin_date = serializers.DateField(validators=[not_in_past])
    checkout_date = serializers.DateField(required=False, allow_null=True)
    special_requests = clean_text()
    coverage = coverage()
    notes = clean_text()
    status = serializers.ChoiceField(choices=_statuses(RoomBooking), required=False)
    # staff only: confirm straight away
    auto_confirm = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        checkin = attrs.get('checkin_date')
        checkout = attrs.get('checkout_date')
        if checkin and checkout and checkout <= checkin:
            raise serializers.ValidationError({'checkout_date': 'Must be after the check-in date.'})
        return attrs


class CheckinSerializer(serializers.Serializer):
    notes = clean_text()


class CheckoutSerializer(serializers.Serializer):
    actual_checkout_date = serializers.DateField(required=False, allow_null=True)
    additional_charges = money(required=False, allow_null=True)
    notes = clean_text()


class AmbulanceRequestSerializer(serializers.Serializer):
    user_id = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all(), required=False)
    ambulance_id = serializers.PrimaryKeyRelatedField(
        source='ambulance', queryset=Ambulance.objects.all(), required=False, allow_null=True
    )
    request_type = serializers.ChoiceField(choices=[c for c, _ in AmbulanceRequest.TYPE_CHOICES])
    pickup_location = clean_text(required=True)
    destination = clean_text(required=True)
    patient_condition = clean_text()
    request_date = serializers.DateField()
    request_time = serializers.TimeField()
    coverage = coverage()
    distance_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False,
                                           allow_null=True)
    total_cost = money(required=False, allow_null=True)
    notes = clean_text()
    status = serializers.ChoiceField(choices=_statuses(AmbulanceRequest), required=False)


class DispatchSerializer(serializers.Serializer):
    ambulance_id = serializers.PrimaryKeyRelatedField(queryset=Ambulance.objects.all(), required=False,
                                                      allow_null=True)
    distance_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False,
                                           allow_null=True)


class TrackingSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=['dispatched', 'on_way', 'arrived', 'completed'])
    notes = clean_text()
    actual_distance_km = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False,
                                                  allow_null=True)
    current_location = clean_text(max_length=255)


class PaymentSerializer(serializers.Serializer):
    user_id = serializers.PrimaryKeyRelatedField(source='user', queryset=User.objects.all(), required=False)
    appointment_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    room_booking_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    ambulance_request_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    amount = money(required=False, allow_null=True)
    coverage = coverage()
    payment_method = clean_text(required=True, max_length=50)
    notes = clean_text()


class PaymentUpdateSerializer(serializers.Serializer):
    amount = money(required=False)
    coverage = coverage(required=False)
    payment_method = clean_text(required=True, max_length=50)
    gateway_transaction_id = clean_text(max_length=100)
    receipt_url = serializers.URLField(required=False, allow_blank=True)
    notes = clean_text()
    status = serializers.ChoiceField(choices=_statuses(Payment), required=False)


class ConfirmPaymentSerializer(serializers.Serializer):
    gateway_transaction_id = clean_text(max_length=100)
    receipt_url = serializers.URLField(required=False, allow_blank=True, default='')
