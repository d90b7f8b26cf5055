from rest_framework import serializers
from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    action_label = serializers.CharField(source="get_action_display", read_only=True)
    actor_phone = serializers.CharField(source="user.phone", read_only=True, default=None)

    class Meta:
        model = AuditLog
        fields = (
            "id",
            "action",
            "action_label",
            "reference_id",
            "user",
            "actor_phone",
            "metadata",
            "created_at",
        )
        read_only_fields = fields
