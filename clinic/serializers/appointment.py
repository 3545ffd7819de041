import bleach
from rest_framework import serializers

from clinic.exceptions import InvalidInput
from clinic.models import Appointment
from clinic.services.queue import URGENCY_WEIGHT, parse_time_slot


def _clean(v):
    return bleach.clean((v or '').strip(), tags=set(), strip=True)


class TimeSlotField(serializers.CharField):
    def to_internal_value(self, data):
        v = super().to_internal_value(data)
        try:
            minutes = parse_time_slot(v)
        except InvalidInput:
            raise serializers.ValidationError('time slot must be HH:MM on the 24-hour clock')
        return f"{minutes // 60:02d}:{minutes % 60:02d}"


class AppointmentBookSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    age = serializers.IntegerField(min_value=0, max_value=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=32)
    issue = serializers.CharField(max_length=2000)
    preferredDoctor = serializers.CharField(required=False, allow_blank=True, max_length=20)
    timeSlot = TimeSlotField(max_length=5)
    urgency = serializers.ChoiceField(choices=list(URGENCY_WEIGHT), default='medium')

    def validate_name(self, v):
        v = _clean(v)
        if len(v) < 2:
            raise serializers.ValidationError('name must be at least 2 characters')
        return v

    def validate_issue(self, v):
        v = _clean(v)
        if not v:
            raise serializers.ValidationError('issue cannot be empty')
        return v

    def validate_phone(self, v):
        return _clean(v)


class AppointmentStatusSerializer(serializers.Serializer):
    id = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES])
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class AppointmentListQuerySerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=[c for c, _ in Appointment.STATUS_CHOICES], required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    pageSize = serializers.IntegerField(required=False, min_value=1, max_value=200)


class ScorePreviewSerializer(serializers.Serializer):
    # urgency and timeSlot are checked by the scorer
    age = serializers.IntegerField(min_value=0)
    urgency = serializers.CharField(max_length=20)
    timeSlot = serializers.CharField(max_length=8)
