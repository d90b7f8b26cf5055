# apps/notifications/models.py
from django.db import models
from django.conf import settings


class Notification(models.Model):
    """
    Per-user inbox entry. Push delivery happens asynchronously from this row.
    """
    EVENT_CHOICES = (
        ("order_created", "Order Created"),
        ("order_assigned", "Order Assigned"),
        ("order_accepted", "Order Accepted"),
        ("status_changed", "Status Changed"),
        ("order_cancelled", "Order Cancelled"),
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )
    order = models.ForeignKey(
        "orders.Order",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="notifications",
    )

    event = models.CharField(max_length=30, choices=EVENT_CHOICES)
    title = models.CharField(max_length=100)
    message = models.TextField()

    is_read = models.BooleanField(default=False)
    pushed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["user", "is_read", "-created_at"], name="notif_user_read_idx"),
        ]

    def __str__(self):
        return f"{self.event} -> {self.user_id}"
