from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.utils import timezone
from .managers import UserManager

ROLE_CUSTOMER = "customer"
ROLE_EMPLOYER = "employer"
ROLE_ADMIN = "admin"


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model where phone number is the unique identifier.
    """
    phone = models.CharField(max_length=20, unique=True, db_index=True)
    email = models.EmailField(blank=True, null=True)

    first_name = models.CharField(max_length=50, blank=True)
    last_name = models.CharField(max_length=50, blank=True)

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = "phone"
    REQUIRED_FIELDS = []

    def __str__(self):
        return self.phone

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def has_role(self, role):
        return self.roles.filter(role=role).exists()

    @property
    def is_platform_admin(self):
        return self.is_staff or self.has_role(ROLE_ADMIN)


class UserRole(models.Model):
    """
    Role-Based Access Control (RBAC).
    A user can hold several roles (e.g. Customer AND Employer).
    """
    ROLE_CHOICES = (
        (ROLE_CUSTOMER, "Customer"),
        (ROLE_EMPLOYER, "Employer"),
        (ROLE_ADMIN, "Admin"),
    )

    user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="roles")
    role = models.CharField(max_length=20, choices=ROLE_CHOICES)

    class Meta:
        unique_together = ("user", "role")

    def __str__(self):
        return f"{self.user.phone} - {self.role}"
