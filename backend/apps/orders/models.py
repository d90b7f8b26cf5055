from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from . import lifecycle

User = settings.AUTH_USER_MODEL


class Order(models.Model):
    TYPE_REGULAR = "regular"
    TYPE_CUSTOM_DELIVERY = "custom_delivery"
    TYPE_WATER_TANK = "water_tank"

    ORDER_TYPE_CHOICES = (
        (TYPE_REGULAR, "Store Order"),
        (TYPE_CUSTOM_DELIVERY, "Custom Delivery"),
        (TYPE_WATER_TANK, "Water Tank"),
    )

    STATUS_CHOICES = lifecycle.STATUS_CHOICES

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="orders")
    store = models.ForeignKey(
        "catalog.Store", on_delete=models.PROTECT, null=True, blank=True, related_name="orders"
    )
    employer = models.ForeignKey(
        User, on_delete=models.SET_NULL, null=True, blank=True, related_name="assigned_orders"
    )

    order_type = models.CharField(max_length=20, choices=ORDER_TYPE_CHOICES, default=TYPE_REGULAR)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=lifecycle.PENDING)

    # Destination
    address = models.TextField()
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)

    # Origin for custom and water-tank orders
    pickup_address = models.TextField(blank=True)
    pickup_latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    pickup_longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    distance_km = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True)

    subtotal = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    # Stored as a label only
    payment_method = models.CharField(max_length=50)
    phone = models.CharField(max_length=20)
    notes = models.TextField(blank=True)

    # Milestones, each written once
    assigned_at = models.DateTimeField(null=True, blank=True)
    confirmed_at = models.DateTimeField(null=True, blank=True)
    preparing_at = models.DateTimeField(null=True, blank=True)
    on_the_way_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    canceled_at = models.DateTimeField(null=True, blank=True)

    # Last known driver position
    delivery_current_lat = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    delivery_current_lng = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    delivery_updated_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            # "My Orders" history
            models.Index(fields=["user", "-created_at"], name="order_user_created_idx"),
            # Driver pool and driver dashboards
            models.Index(fields=["status", "employer"], name="order_status_employer_idx"),
            models.Index(fields=["employer", "status"], name="order_employer_status_idx"),
            models.Index(fields=["order_type", "status"], name="order_type_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(subtotal__gte=0) & Q(delivery_fee__gte=0) & Q(total__gte=0),
                name="order_amounts_non_negative",
            ),
        ]

    def __str__(self):
        return f"Order #{self.id} ({self.status})"

    @property
    def is_terminal(self):
        return self.status in lifecycle.TERMINAL_STATUSES

    @property
    def is_rated(self):
        return hasattr(self, "rating")


class OrderItem(models.Model):
    TYPE_PRODUCT = "product"
    TYPE_CUSTOM = "custom"
    TYPE_WATER_TANK = "water_tank"

    TYPE_CHOICES = (
        (TYPE_PRODUCT, "Catalog Product"),
        (TYPE_CUSTOM, "Custom Item"),
        (TYPE_WATER_TANK, "Water Tank"),
    )

    order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(
        "catalog.Product", on_delete=models.PROTECT, null=True, blank=True, related_name="order_items"
    )
    custom_name = models.CharField(max_length=255, blank=True)
    type = models.CharField(max_length=20, choices=TYPE_CHOICES, default=TYPE_PRODUCT)

    quantity = models.PositiveIntegerField()
    # Snapshot at order time
    price = models.DecimalField(max_digits=10, decimal_places=2)
    special_instructions = models.CharField(max_length=500, blank=True)

    class Meta:
        ordering = ["id"]
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gte=1), name="order_item_quantity_positive"),
            models.CheckConstraint(condition=Q(price__gte=0), name="order_item_price_non_negative"),
            models.CheckConstraint(
                condition=(
                    (Q(product__isnull=False) & Q(custom_name=""))
                    | (Q(product__isnull=True) & ~Q(custom_name=""))
                ),
                name="order_item_product_xor_custom_name",
            ),
        ]

    def __str__(self):
        return f"{self.display_name} x {self.quantity}"

    @property
    def display_name(self):
        if self.product_id:
            return self.product.name
        return self.custom_name

    @property
    def line_total(self):
        return self.price * self.quantity


class Rating(models.Model):
    """
    Store rating left by the customer once an order is delivered. One per order.
    """
    order = models.OneToOneField(Order, on_delete=models.CASCADE, related_name="rating")
    customer = models.ForeignKey(User, on_delete=models.CASCADE, related_name="ratings")
    store = models.ForeignKey("catalog.Store", on_delete=models.CASCADE, related_name="ratings")

    rating = models.PositiveSmallIntegerField()
    review = models.TextField(blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(rating__gte=1) & Q(rating__lte=5),
                name="rating_between_1_and_5",
            ),
        ]

    def __str__(self):
        return f"{self.rating}/5 for Order #{self.order_id}"
