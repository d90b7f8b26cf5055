# apps/accounts/permissions.py
from rest_framework import permissions

from .models import ROLE_CUSTOMER, ROLE_EMPLOYER


class IsCustomer(permissions.BasePermission):
    message = "Only customers can perform this action."

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.has_role(ROLE_CUSTOMER)
        )


class IsEmployer(permissions.BasePermission):
    message = "Access denied. Employer role required."

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.has_role(ROLE_EMPLOYER)
        )


class IsPlatformAdmin(permissions.BasePermission):
    """
    Staff accounts and users holding the admin role.
    """
    message = "Admin access required."

    def has_permission(self, request, view):
        return bool(
            request.user and
            request.user.is_authenticated and
            request.user.is_platform_admin
        )
