from rest_framework import serializers

from apps.orders import lifecycle

DRIVER_STATUS_CHOICES = tuple(
    (value, label) for value, label in lifecycle.STATUS_CHOICES if value != lifecycle.PENDING
)


class DriverStatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DRIVER_STATUS_CHOICES)


class LocationUpdateSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class DashboardStatsSerializer(serializers.Serializer):
    total_orders = serializers.IntegerField()
    active_orders = serializers.IntegerField()
    completed_orders = serializers.IntegerField()
    cancelled_orders = serializers.IntegerField()


class PerformanceStatsSerializer(serializers.Serializer):
    total_deliveries = serializers.IntegerField()
    completion_rate = serializers.FloatField()
    average_delivery_minutes = serializers.IntegerField(allow_null=True)
    total_assigned_orders = serializers.IntegerField()
