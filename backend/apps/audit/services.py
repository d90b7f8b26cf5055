from django.utils import timezone
from .models import AuditLog


class AuditService:
    """
    Centralized Audit Logging.
    Callers schedule these with transaction.on_commit so rolled-back work leaves no trail.
    """

    @staticmethod
    def log(action, reference_id, user, metadata):
        AuditLog.objects.create(
            user=user,
            action=action,
            reference_id=reference_id,
            metadata=metadata,
            created_at=timezone.now()
        )

    @staticmethod
    def order_created(order):
        AuditService.log(
            action="order_created",
            reference_id=str(order.id),
            user=order.user,
            metadata={
                "order_type": order.order_type,
                "total": str(order.total),
                "store_id": order.store_id,
            },
        )

    @staticmethod
    def order_accepted(order, employer):
        AuditService.log(
            action="order_accepted",
            reference_id=str(order.id),
            user=employer,
            metadata={"employer_id": employer.id},
        )

    @staticmethod
    def status_changed(order, previous, actor, role):
        action = "order_cancelled" if order.status == "cancelled" else "order_status_changed"
        AuditService.log(
            action=action,
            reference_id=str(order.id),
            user=actor,
            metadata={"from": previous, "to": order.status, "role": role},
        )

    @staticmethod
    def manual_assignment(order, employer, actor, previous_employer_id=None):
        AuditService.log(
            action="manual_assignment",
            reference_id=str(order.id),
            user=actor,
            metadata={"employer_id": employer.id, "previous_employer_id": previous_employer_id},
        )

    @staticmethod
    def order_deleted(order_id, actor, status):
        AuditService.log(
            action="order_deleted",
            reference_id=str(order_id),
            user=actor,
            metadata={"status": status},
        )

    @staticmethod
    def order_rated(rating):
        AuditService.log(
            action="order_rated",
            reference_id=str(rating.order_id),
            user=rating.customer,
            metadata={"store_id": rating.store_id, "rating": rating.rating},
        )

    @staticmethod
    def order_item_changed(item_id, order_id, actor, changes=None, deleted=False):
        AuditService.log(
            action="order_item_deleted" if deleted else "order_item_updated",
            reference_id=str(item_id),
            user=actor,
            metadata={"order_id": order_id, "changes": changes or {}},
        )

    @staticmethod
    def employer_status_changed(profile, actor, previous):
        AuditService.log(
            action="employer_status_changed",
            reference_id=str(profile.user_id),
            user=actor,
            metadata={"from": previous, "to": profile.status},
        )
