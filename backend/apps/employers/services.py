# apps/employers/services.py
import logging

from django.db import transaction

from apps.accounts.models import ROLE_EMPLOYER
from apps.orders.lifecycle import ACTIVE_STATUSES
from apps.utils.exceptions import AuthorizationError, BusinessLogicException, DomainValidationError
from .models import EmployerProfile

logger = logging.getLogger(__name__)


class EmployerService:

    @staticmethod
    @transaction.atomic
    def create_profile(user, **fields):
        """
        Idempotent profile creation for users holding the employer role.
        """
        if not user.has_role(ROLE_EMPLOYER):
            raise DomainValidationError("User does not have the employer role", code="not_employer")

        profile, created = EmployerProfile.objects.get_or_create(user=user, defaults=fields)
        if created:
            logger.info(f"Employer profile created for user {user.id}")
        return profile

    @staticmethod
    def get_profile(user) -> EmployerProfile:
        try:
            return user.employer_profile
        except EmployerProfile.DoesNotExist:
            raise AuthorizationError("Employer profile not found.", code="employer_profile_missing")

    @staticmethod
    def set_online(profile: EmployerProfile, online: bool):
        """
        Toggles the driver's online flag. Availability follows from status and online flag.
        """
        if online and not profile.is_eligible:
            raise BusinessLogicException(
                f"Your account is {profile.status}. Only approved employers can go online.",
                code="employer_not_approved"
            )

        if not online:
            busy = profile.user.assigned_orders.filter(status__in=ACTIVE_STATUSES).exists()
            if busy:
                raise BusinessLogicException(
                    "Cannot go offline while you have active deliveries.",
                    code="active_delivery_restriction"
                )

        profile.is_online = online
        profile.save(update_fields=["is_online", "updated_at"])
        logger.info(f"Employer {profile.user_id} is now {'online' if online else 'offline'}")
        return profile

    @staticmethod
    @transaction.atomic
    def update_status(profile: EmployerProfile, new_status: str, actor=None):
        """
        Admin review of an employer account. Approved and active accounts go online
        straight away; every other status forces the driver offline.
        """
        valid = {choice for choice, _ in EmployerProfile.STATUS_CHOICES}
        if new_status not in valid:
            raise DomainValidationError(
                "Invalid employer status",
                errors={"status": [f"Must be one of: {', '.join(sorted(valid))}"]}
            )

        previous = profile.status
        profile.status = new_status
        profile.is_online = new_status in EmployerProfile.ELIGIBLE_STATUSES
        profile.save(update_fields=["status", "is_online", "updated_at"])
        logger.info(f"Employer {profile.user_id} status {previous} -> {new_status}")

        if actor is not None:
            from apps.audit.services import AuditService
            transaction.on_commit(
                lambda: AuditService.employer_status_changed(profile, actor, previous)
            )
        return profile

    @staticmethod
    def ensure_can_accept(user) -> EmployerProfile:
        if not user.has_role(ROLE_EMPLOYER):
            raise AuthorizationError("Access denied. Employer role required.")

        profile = EmployerService.get_profile(user)
        if not profile.can_accept_orders:
            raise AuthorizationError(
                "You must be approved, online and available to accept orders.",
                code="employer_unavailable"
            )
        return profile
