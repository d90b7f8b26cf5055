# apps/orders/serializers.py
from rest_framework import serializers

from . import lifecycle
from .models import Order, OrderItem, Rating

PAYMENT_METHODS_WATER_TANK = (
    ("cash_on_delivery", "Cash on Delivery"),
    ("online", "Online"),
)


# ---------------------------------------------------------------------------
# Input
# ---------------------------------------------------------------------------

class BaseCreateOrderSerializer(serializers.Serializer):
    delivery_fee = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, default=0)
    # Informational; the server recomputes both
    subtotal = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    total = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    payment_method = serializers.CharField(max_length=50)
    phone = serializers.CharField(max_length=20)
    notes = serializers.CharField(max_length=1000, required=False, allow_blank=True, default="")


class StoreOrderItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    custom_name = serializers.CharField(max_length=255, required=False, allow_blank=True)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")

    def validate(self, attrs):
        has_product = bool(attrs.get("product_id"))
        has_name = bool((attrs.get("custom_name") or "").strip())

        if has_product == has_name:
            raise serializers.ValidationError(
                "Each item needs either a product_id or a custom_name, not both."
            )
        if has_name and attrs.get("price") is None:
            raise serializers.ValidationError({"price": ["Price is required for custom items."]})
        return attrs


class CreateStoreOrderSerializer(BaseCreateOrderSerializer):
    store_id = serializers.IntegerField(min_value=1)
    address = serializers.CharField(max_length=500)
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)
    items = StoreOrderItemSerializer(many=True, allow_empty=False)


class CustomItemSerializer(serializers.Serializer):
    custom_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False, allow_null=True)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")

    def to_internal_value(self, data):
        # Older clients send the item text as "description"
        if isinstance(data, dict) and "custom_name" not in data and "description" in data:
            data = {**data, "custom_name": data["description"]}
        return super().to_internal_value(data)


class CreateCustomDeliverySerializer(BaseCreateOrderSerializer):
    pickup_address = serializers.CharField(max_length=500)
    pickup_latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    pickup_longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)

    delivery_address = serializers.CharField(max_length=500)
    delivery_latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    delivery_longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)

    distance = serializers.FloatField(min_value=0, required=False, allow_null=True)
    items = CustomItemSerializer(many=True, allow_empty=False)


class WaterTankItemSerializer(serializers.Serializer):
    custom_name = serializers.CharField(max_length=255)
    quantity = serializers.IntegerField(min_value=1)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class CreateWaterTankOrderSerializer(BaseCreateOrderSerializer):
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHODS_WATER_TANK)

    delivery_address = serializers.CharField(max_length=500)
    delivery_latitude = serializers.FloatField(min_value=-90, max_value=90)
    delivery_longitude = serializers.FloatField(min_value=-180, max_value=180)

    water_station_address = serializers.CharField(max_length=500)
    water_station_latitude = serializers.FloatField(min_value=-90, max_value=90, required=False, allow_null=True)
    water_station_longitude = serializers.FloatField(min_value=-180, max_value=180, required=False, allow_null=True)

    distance = serializers.FloatField(min_value=0, required=False, allow_null=True)
    items = WaterTankItemSerializer(many=True, allow_empty=False)


class CancelOrderSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True)


class RateOrderSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    review = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")


class StatusUpdateSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=lifecycle.STATUS_CHOICES)


class AdminAssignSerializer(serializers.Serializer):
    employer_id = serializers.IntegerField(min_value=1)


class OrderItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, required=False)
    price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)
    special_instructions = serializers.CharField(max_length=500, required=False, allow_blank=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError("Nothing to update.")
        return attrs


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class OrderItemSerializer(serializers.ModelSerializer):
    name = serializers.CharField(source="display_name", read_only=True)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = (
            "id", "product", "custom_name", "name", "type",
            "quantity", "price", "line_total", "special_instructions",
        )


class RatingSerializer(serializers.ModelSerializer):
    class Meta:
        model = Rating
        fields = ("id", "order", "store", "rating", "review", "created_at")


class OrderListSerializer(serializers.ModelSerializer):
    items_count = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = (
            "id", "order_type", "status", "address", "pickup_address",
            "total", "employer", "items_count", "created_at",
        )

    def get_items_count(self, obj):
        return len(obj.items.all())


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    store_name = serializers.CharField(source="store.name", read_only=True, default=None)
    employer_name = serializers.SerializerMethodField()
    employer_phone = serializers.CharField(source="employer.phone", read_only=True, default=None)
    is_rated = serializers.BooleanField(read_only=True)
    rating = serializers.SerializerMethodField()
    tracking = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = (
            "id", "order_type", "status", "user", "store", "store_name",
            "employer", "employer_name", "employer_phone",
            "address", "latitude", "longitude",
            "pickup_address", "pickup_latitude", "pickup_longitude", "distance_km",
            "subtotal", "delivery_fee", "total", "payment_method", "phone", "notes",
            "assigned_at", "confirmed_at", "preparing_at", "on_the_way_at",
            "delivered_at", "canceled_at",
            "is_rated", "rating", "tracking", "items",
            "created_at", "updated_at",
        )
        read_only_fields = fields

    def get_employer_name(self, obj):
        if not obj.employer_id:
            return None
        return obj.employer.full_name or obj.employer.phone

    def get_rating(self, obj):
        if not obj.is_rated:
            return None
        return {"rating": obj.rating.rating, "review": obj.rating.review, "rated_at": obj.rating.created_at}

    def get_tracking(self, obj):
        if obj.delivery_updated_at is None:
            return None
        return {
            "latitude": obj.delivery_current_lat,
            "longitude": obj.delivery_current_lng,
            "updated_at": obj.delivery_updated_at,
        }
