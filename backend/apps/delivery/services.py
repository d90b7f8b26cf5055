import logging

from django.conf import settings
from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Count, Q
from django.utils import timezone

from apps.accounts.models import ROLE_EMPLOYER
from apps.employers.models import EmployerProfile
from apps.employers.services import EmployerService
from apps.locations.services import LocationService
from apps.orders import lifecycle
from apps.orders.events import OrderEvents
from apps.orders.models import Order
from apps.orders.policies import to_coordinate
from apps.orders.services import OrderService
from apps.utils.exceptions import (
    DomainValidationError,
    NotFoundError,
    StateConflictError,
)

logger = logging.getLogger(__name__)

User = get_user_model()


def _claimable(employer):
    # Open pool, or pre-assigned to this driver by an admin
    return Q(status=lifecycle.PENDING) & (Q(employer__isnull=True) | Q(employer=employer))


class AssignmentService:

    @staticmethod
    def claimable_orders_for(employer):
        return (
            OrderService.detail_queryset()
            .filter(_claimable(employer))
            .order_by("-created_at")
        )

    @staticmethod
    def _check_capacity(employer):
        limit = getattr(settings, "EMPLOYER_MAX_ACTIVE_ORDERS", 0)
        if not limit:
            return

        # Serialize concurrent accepts by the same driver
        EmployerProfile.objects.select_for_update().get(user=employer)
        active = Order.objects.filter(
            employer=employer, status__in=lifecycle.ACTIVE_STATUSES
        ).count()
        if active >= limit:
            raise StateConflictError(
                f"You already have {active} active deliveries. Finish one before accepting another.",
                code="capacity_reached",
            )

    @staticmethod
    @transaction.atomic
    def accept_order(order_id, employer) -> Order:
        """
        Driver claim. The claim predicate and the write are one conditional UPDATE,
        so of two drivers racing for the same order exactly one affects the row.
        """
        EmployerService.ensure_can_accept(employer)
        AssignmentService._check_capacity(employer)

        now = timezone.now()
        updated = (
            Order.objects
            .filter(_claimable(employer), pk=order_id)
            .update(
                employer=employer,
                **lifecycle.milestone_updates(lifecycle.CONFIRMED, now, stamp_assignment=True),
            )
        )

        if not updated:
            if not Order.objects.filter(pk=order_id).exists():
                raise NotFoundError("Order not found.")
            logger.warning(f"Employer {employer.id} lost claim on order #{order_id}")
            raise StateConflictError(
                "Order not found or not available for acceptance.", code="order_unavailable"
            )

        order = OrderService.detail_queryset().get(pk=order_id)
        logger.info(f"Order #{order.pk} accepted by employer {employer.id}")
        transaction.on_commit(lambda: OrderEvents.accepted(order, employer))
        return order

    @staticmethod
    @transaction.atomic
    def admin_assign(order_id, employer_id, actor) -> Order:
        """
        Back-office (re)assignment of a pending order. The driver still has to accept it.
        """
        employer = User.objects.filter(pk=employer_id).first()
        if employer is None or not employer.has_role(ROLE_EMPLOYER):
            raise DomainValidationError(
                "Selected user is not an employer.",
                errors={"employer_id": ["Selected user is not an employer."]},
            )

        order = Order.objects.filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")

        if order.status != lifecycle.PENDING:
            raise StateConflictError(
                f"Only pending orders can be assigned. Current status: {order.status}",
                code="not_assignable",
            )

        previous_employer_id = order.employer_id
        updated = Order.objects.filter(pk=order.pk, status=lifecycle.PENDING).update(
            employer=employer, updated_at=timezone.now()
        )
        if not updated:
            raise StateConflictError(
                "Order was updated by another request. Please refresh and try again.",
                code="stale_state",
            )

        order = OrderService.detail_queryset().get(pk=order.pk)
        logger.info(
            f"Order #{order.pk} assigned to employer {employer.id} by admin {actor.id} "
            f"(previous: {previous_employer_id})"
        )
        transaction.on_commit(
            lambda: OrderEvents.assigned(order, employer, actor, previous_employer_id)
        )
        return order


class DeliveryService:
    """
    Driver-side reads and actions on orders the driver holds.
    """

    @staticmethod
    def _assigned(employer):
        return OrderService.detail_queryset().filter(employer=employer)

    @staticmethod
    def admin_assigned_orders(employer):
        return DeliveryService._assigned(employer).filter(status=lifecycle.PENDING).order_by("-created_at")

    @staticmethod
    def my_orders(employer, status=None):
        qs = DeliveryService._assigned(employer)
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at")

    @staticmethod
    def active_orders(employer):
        return (
            DeliveryService._assigned(employer)
            .filter(status__in=lifecycle.ACTIVE_STATUSES)
            .order_by("-created_at")
        )

    @staticmethod
    def history(employer):
        return (
            DeliveryService._assigned(employer)
            .filter(status__in=lifecycle.TERMINAL_STATUSES)
            .order_by("-updated_at")
        )

    @staticmethod
    def todays_orders(employer):
        today = timezone.localdate()
        return (
            DeliveryService._assigned(employer)
            .filter(created_at__date=today)
            .order_by("-created_at")
        )

    @staticmethod
    def dashboard_stats(employer):
        return Order.objects.filter(employer=employer).aggregate(
            total_orders=Count("id"),
            active_orders=Count("id", filter=Q(status__in=lifecycle.ACTIVE_STATUSES)),
            completed_orders=Count("id", filter=Q(status=lifecycle.DELIVERED)),
            cancelled_orders=Count("id", filter=Q(status=lifecycle.CANCELLED)),
        )

    @staticmethod
    def performance_stats(employer):
        orders = Order.objects.filter(employer=employer)
        total_assigned = orders.count()
        delivered = orders.filter(status=lifecycle.DELIVERED)
        total_deliveries = delivered.count()

        durations = [
            (delivered_at - assigned_at).total_seconds() / 60
            for assigned_at, delivered_at in delivered.filter(
                assigned_at__isnull=False, delivered_at__isnull=False
            ).values_list("assigned_at", "delivered_at")
        ]

        completion_rate = (total_deliveries / total_assigned * 100) if total_assigned else 0
        return {
            "total_deliveries": total_deliveries,
            "completion_rate": round(completion_rate, 2),
            "average_delivery_minutes": round(sum(durations) / len(durations)) if durations else None,
            "total_assigned_orders": total_assigned,
        }

    @staticmethod
    def update_status(order_id, employer, target_status) -> Order:
        EmployerService.get_profile(employer)
        return OrderService.transition(order_id, target_status, employer, ROLE_EMPLOYER)

    @staticmethod
    def mark_delivered(order_id, employer) -> Order:
        return OrderService.transition(
            order_id, lifecycle.DELIVERED, employer, ROLE_EMPLOYER,
            require_current=lifecycle.ON_THE_WAY,
        )

    @staticmethod
    def cancel(order_id, employer) -> Order:
        return OrderService.cancel(order_id, employer, ROLE_EMPLOYER)

    @staticmethod
    @transaction.atomic
    def update_location(order_id, employer, latitude, longitude) -> Order:
        """
        Last-write-wins position of the driver on an order they are delivering.
        """
        if not LocationService.is_valid_coordinate(latitude, longitude):
            raise DomainValidationError(
                "Coordinates out of bounds.",
                errors={"latitude": ["Must be between -90 and 90."], "longitude": ["Must be between -180 and 180."]},
            )

        order = Order.objects.filter(pk=order_id, employer=employer).only("id", "status").first()
        if order is None:
            raise NotFoundError("Order not found.")

        now = timezone.now()
        updated = Order.objects.filter(
            pk=order_id, employer=employer, status__in=lifecycle.TRACKABLE_STATUSES
        ).update(
            delivery_current_lat=to_coordinate(latitude),
            delivery_current_lng=to_coordinate(longitude),
            delivery_updated_at=now,
        )
        if not updated:
            raise StateConflictError(
                f"Location can only be shared while the order is in progress. Current status: {order.status}",
                code="not_trackable",
            )

        logger.debug(f"Order #{order_id} location updated by employer {employer.id}")
        transaction.on_commit(lambda: OrderEvents.location_updated(order_id, latitude, longitude))
        return OrderService.detail_queryset().get(pk=order_id)
