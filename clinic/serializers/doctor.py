from rest_framework import serializers


class DoctorListQuerySerializer(serializers.Serializer):
    q = serializers.CharField(max_length=64, required=False)
    availableOnly = serializers.BooleanField(required=False, default=False)
    page = serializers.IntegerField(min_value=1, required=False)
    pageSize = serializers.IntegerField(min_value=1, max_value=100, required=False)
