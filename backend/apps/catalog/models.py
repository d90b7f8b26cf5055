from django.db import models


class Store(models.Model):
    """
    Pickup point for store orders. Managed by the catalog back-office; the order
    core only reads its coordinates.
    """
    name = models.CharField(max_length=150)
    address = models.TextField(blank=True)
    latitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    longitude = models.DecimalField(max_digits=10, decimal_places=7, null=True, blank=True)
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return self.name

    @property
    def has_location(self):
        return self.latitude is not None and self.longitude is not None


class Product(models.Model):
    store = models.ForeignKey(Store, on_delete=models.CASCADE, related_name="products")
    name = models.CharField(max_length=255)
    price = models.DecimalField(max_digits=10, decimal_places=2)
    is_available = models.BooleanField(default=True)

    class Meta:
        indexes = [
            models.Index(fields=["store", "is_available"], name="product_store_avail_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.store.name})"
