# apps/employers/models.py
from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class EmployerProfile(models.Model):
    """
    Delivery driver ("employer") state that gates order claiming.
    """
    STATUS_PENDING = "pending"
    STATUS_APPROVED = "approved"
    STATUS_ACTIVE = "active"
    STATUS_REJECTED = "rejected"
    STATUS_SUSPENDED = "suspended"

    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending Review"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_SUSPENDED, "Suspended"),
    )
    ELIGIBLE_STATUSES = (STATUS_APPROVED, STATUS_ACTIVE)

    VEHICLE_CHOICES = (
        ("motorcycle", "Motorcycle"),
        ("car", "Car"),
        ("van", "Van"),
        ("truck", "Truck"),
        ("water_tanker", "Water Tanker"),
    )

    user = models.OneToOneField(
        User, on_delete=models.CASCADE, related_name="employer_profile"
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    vehicle_type = models.CharField(max_length=20, choices=VEHICLE_CHOICES, blank=True)

    is_online = models.BooleanField(default=False)
    # Derived on save, never written directly
    is_available = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=['status', 'is_available'], name='employer_avail_idx'),
        ]

    @property
    def is_eligible(self):
        return self.status in self.ELIGIBLE_STATUSES

    @property
    def can_accept_orders(self):
        return self.is_eligible and self.is_online and self.is_available

    def save(self, *args, **kwargs):
        if not self.is_eligible:
            self.is_online = False
        self.is_available = self.is_eligible and self.is_online
        update_fields = kwargs.get("update_fields")
        if update_fields is not None:
            kwargs["update_fields"] = set(update_fields) | {"is_online", "is_available"}
        super().save(*args, **kwargs)

    def __str__(self):
        return f"Employer {self.user.phone} ({self.status})"
