# apps/orders/policies.py
"""
Per-type order creation rules.

Each policy turns validated request data into the common Order shape: the
order-level fields it owns (addresses, coordinates, store, distance) and a list
of unsaved OrderItem rows. Pricing and persistence are shared by
OrderService.create_order.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from apps.catalog.models import Store, Product
from apps.locations.services import distance_km
from apps.utils.exceptions import (
    DistanceExceededError,
    DomainValidationError,
    NotFoundError,
)
from .models import Order, OrderItem
from .serializers import (
    CreateStoreOrderSerializer,
    CreateCustomDeliverySerializer,
    CreateWaterTankOrderSerializer,
)

logger = logging.getLogger(__name__)

COORD_PLACES = Decimal("0.0000001")
MONEY_PLACES = Decimal("0.01")


def to_coordinate(value):
    if value is None:
        return None
    return Decimal(str(value)).quantize(COORD_PLACES, rounding=ROUND_HALF_UP)


def to_distance(value):
    if value is None:
        return None
    return Decimal(str(value)).quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


class OrderDraft:
    def __init__(self, fields, items):
        self.fields = fields
        self.items = items


class OrderTypePolicy:
    order_type = None
    item_type = OrderItem.TYPE_CUSTOM
    input_serializer = None

    def prepare(self, data) -> OrderDraft:
        raise NotImplementedError

    def free_form_item(self, item, default_price=Decimal("0.00")):
        price = item.get("price")
        return OrderItem(
            custom_name=item["custom_name"],
            type=self.item_type,
            quantity=item["quantity"],
            price=default_price if price is None else price,
            special_instructions=item.get("special_instructions", ""),
        )


class StoreOrderPolicy(OrderTypePolicy):
    order_type = Order.TYPE_REGULAR
    input_serializer = CreateStoreOrderSerializer

    def prepare(self, data):
        store = Store.objects.filter(pk=data["store_id"], is_active=True).first()
        if store is None:
            raise NotFoundError("Store not found.", code="store_not_found")

        if not store.has_location:
            raise DomainValidationError(
                "Store location is not available.",
                errors={"store_id": ["Store location is not available."]},
            )

        raw_distance = distance_km(data["latitude"], data["longitude"], store.latitude, store.longitude)
        distance = round(raw_distance, 2)
        max_distance = settings.STORE_DELIVERY_RADIUS_KM
        if raw_distance > max_distance:
            logger.warning(
                f"Store order rejected: distance {raw_distance:.3f} km to store {store.id} exceeds {max_distance} km"
            )
            raise DistanceExceededError(distance, max_distance)

        return OrderDraft(
            fields={
                "store": store,
                "address": data["address"],
                "latitude": to_coordinate(data["latitude"]),
                "longitude": to_coordinate(data["longitude"]),
                "distance_km": to_distance(distance),
            },
            items=self._build_items(store, data["items"]),
        )

    def _build_items(self, store, items):
        product_ids = {i["product_id"] for i in items if i.get("product_id")}
        products = Product.objects.filter(store=store, is_available=True).in_bulk(product_ids)

        errors = {}
        rows = []
        for index, item in enumerate(items):
            product_id = item.get("product_id")
            if not product_id:
                rows.append(self.free_form_item(item))
                continue

            product = products.get(product_id)
            if product is None:
                errors[f"items.{index}.product_id"] = ["Product is not available in this store."]
                continue

            if item.get("price") is not None and item["price"] != product.price:
                logger.info(
                    f"Client price {item['price']} for product {product.id} replaced by catalog price {product.price}"
                )
            rows.append(OrderItem(
                product=product,
                type=OrderItem.TYPE_PRODUCT,
                quantity=item["quantity"],
                price=product.price,
                special_instructions=item.get("special_instructions", ""),
            ))

        if errors:
            raise DomainValidationError("The given data was invalid.", errors=errors)
        return rows


class CustomDeliveryPolicy(OrderTypePolicy):
    order_type = Order.TYPE_CUSTOM_DELIVERY
    item_type = OrderItem.TYPE_CUSTOM
    input_serializer = CreateCustomDeliverySerializer

    def prepare(self, data):
        return OrderDraft(
            fields={
                "address": data["delivery_address"],
                "latitude": to_coordinate(data.get("delivery_latitude")),
                "longitude": to_coordinate(data.get("delivery_longitude")),
                "pickup_address": data["pickup_address"],
                "pickup_latitude": to_coordinate(data.get("pickup_latitude")),
                "pickup_longitude": to_coordinate(data.get("pickup_longitude")),
                "distance_km": to_distance(data.get("distance")),
            },
            items=[self.free_form_item(item) for item in data["items"]],
        )


class WaterTankPolicy(OrderTypePolicy):
    order_type = Order.TYPE_WATER_TANK
    item_type = OrderItem.TYPE_WATER_TANK
    input_serializer = CreateWaterTankOrderSerializer

    def prepare(self, data):
        return OrderDraft(
            fields={
                "address": data["delivery_address"],
                "latitude": to_coordinate(data["delivery_latitude"]),
                "longitude": to_coordinate(data["delivery_longitude"]),
                "pickup_address": data["water_station_address"],
                "pickup_latitude": to_coordinate(data.get("water_station_latitude")),
                "pickup_longitude": to_coordinate(data.get("water_station_longitude")),
                "distance_km": to_distance(data.get("distance")),
            },
            # Water-tank lines always carry an explicit price
            items=[self.free_form_item(item) for item in data["items"]],
        )


POLICIES = {
    policy.order_type: policy
    for policy in (StoreOrderPolicy(), CustomDeliveryPolicy(), WaterTankPolicy())
}


def get_policy(order_type) -> OrderTypePolicy:
    try:
        return POLICIES[order_type]
    except KeyError:
        raise DomainValidationError(
            "Unknown order type.",
            errors={"order_type": [f"Must be one of: {', '.join(POLICIES)}"]},
        )
