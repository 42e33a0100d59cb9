"""Input validation for doctors, rooms and ambulances."""
from rest_framework import serializers

from careops.models import Ambulance, Doctor, Room
from careops.serializers.fields import clean_text, money

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


class ScheduleSlotSerializer(serializers.Serializer):
    day = serializers.ChoiceField(choices=WEEKDAYS)
    start = serializers.TimeField(format='%H:%M')
    end = serializers.TimeField(format='%H:%M')

    def validate(self, attrs):
        if attrs['end'] <= attrs['start']:
            raise serializers.ValidationError({'end': 'Must be after start.'})
        # stored as JSON
        return {'day': attrs['day'], 'start': attrs['start'].strftime('%H:%M'), 'end': attrs['end'].strftime('%H:%M')}


class DoctorSerializer(serializers.Serializer):
    name = clean_text(required=True, max_length=255)
    specialty = clean_text(required=True, max_length=255)
    phone = clean_text(max_length=20)
    email = serializers.EmailField(required=False, allow_blank=True, default='')
    schedule = ScheduleSlotSerializer(many=True, required=False, default=list)
    consultation_fee = money(required=False, default=0)
    status = serializers.ChoiceField(choices=[c for c, _ in Doctor.STATUS_CHOICES], default='active')


class RoomSerializer(serializers.Serializer):
    room_number = clean_text(required=True, max_length=20)
    room_type = serializers.ChoiceField(choices=[c for c, _ in Room.TYPE_CHOICES])
    daily_rate = money()
    facilities = clean_text()
    # occupancy is derived from bookings; only the maintenance flag is set by hand
    status = serializers.ChoiceField(choices=[Room.STATUS_AVAILABLE, Room.STATUS_MAINTENANCE], required=False)

    def validate_room_number(self, v):
        qs = Room.objects.filter(room_number=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Room number already exists.')
        return v


class AmbulanceSerializer(serializers.Serializer):
    plate_number = clean_text(required=True, max_length=20)
    ambulance_type = serializers.ChoiceField(choices=[c for c, _ in Ambulance.TYPE_CHOICES])
    base_fare = money()
    per_km_fare = money()
    driver_name = clean_text(required=True, max_length=255)
    driver_phone = clean_text(required=True, max_length=20)
    current_location = clean_text(max_length=255)
    status = serializers.ChoiceField(
        choices=[Ambulance.STATUS_AVAILABLE, Ambulance.STATUS_MAINTENANCE], required=False
    )

    def validate_plate_number(self, v):
        qs = Ambulance.objects.filter(plate_number=v)
        instance = self.context.get('instance')
        if instance is not None:
            qs = qs.exclude(pk=instance.pk)
        if qs.exists():
            raise serializers.ValidationError('Plate number already exists.')
        return v


class RoomSearchSerializer(serializers.Serializer):
    checkin_date = serializers.DateField()
    checkout_date = serializers.DateField(required=False, allow_null=True)
    room_type = serializers.ChoiceField(choices=[c for c, _ in Room.TYPE_CHOICES], required=False)

    def validate(self, attrs):
        checkout = attrs.get('checkout_date')
        if checkout is not None and checkout <= attrs['checkin_date']:
            raise serializers.ValidationError({'checkout_date': 'Must be after the check-in date.'})
        return attrs


class AmbulanceSearchSerializer(serializers.Serializer):
    ambulance_type = serializers.ChoiceField(choices=[c for c, _ in Ambulance.TYPE_CHOICES], required=False)
    location = serializers.CharField(required=False, allow_blank=True)
