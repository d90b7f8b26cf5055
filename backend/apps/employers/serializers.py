from rest_framework import serializers
from .models import EmployerProfile


class EmployerProfileSerializer(serializers.ModelSerializer):
    phone = serializers.CharField(source="user.phone", read_only=True)
    name = serializers.CharField(source="user.full_name", read_only=True)

    class Meta:
        model = EmployerProfile
        fields = (
            "id", "phone", "name", "status", "vehicle_type",
            "is_online", "is_available", "created_at",
        )
        read_only_fields = fields


class EmployerAvailabilitySerializer(serializers.Serializer):
    is_online = serializers.BooleanField()


class EmployerStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=EmployerProfile.STATUS_CHOICES)
