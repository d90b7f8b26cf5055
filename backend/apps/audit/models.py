from django.db import models
from django.conf import settings
from django.utils import timezone


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise RuntimeError("Audit logs are immutable (bulk update blocked)")

    def delete(self):
        raise RuntimeError("Audit logs are immutable (bulk delete blocked)")


class AuditLogManager(models.Manager):
    def get_queryset(self):
        return AuditLogQuerySet(self.model, using=self._db)


class AuditLog(models.Model):
    """
    Immutable trail of order lifecycle events.
    """
    ACTION_CHOICES = (
        ("order_created", "Order Created"),
        ("order_accepted", "Order Accepted"),
        ("order_status_changed", "Order Status Changed"),
        ("order_cancelled", "Order Cancelled"),
        ("order_deleted", "Order Deleted"),
        ("order_rated", "Order Rated"),
        ("manual_assignment", "Manual Assignment"),
        ("order_item_updated", "Order Item Updated"),
        ("order_item_deleted", "Order Item Deleted"),
        ("employer_status_changed", "Employer Status Changed"),
    )

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
    )

    action = models.CharField(max_length=50, choices=ACTION_CHOICES)

    reference_id = models.CharField(
        max_length=100,
        help_text="Order ID / Order Item ID / Employer ID",
    )

    metadata = models.JSONField(default=dict)

    created_at = models.DateTimeField(default=timezone.now)

    objects = AuditLogManager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["action"], name="audit_action_idx"),
            models.Index(fields=["reference_id"], name="audit_reference_idx"),
        ]

    def save(self, *args, **kwargs):
        if self.pk:
            raise RuntimeError("Audit logs are immutable (update blocked)")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Audit logs are immutable (delete blocked)")

    def __str__(self):
        return f"{self.action} | {self.reference_id}"
