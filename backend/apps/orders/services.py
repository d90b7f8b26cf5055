# apps/orders/services.py
import logging
from decimal import Decimal

from django.db import DatabaseError, IntegrityError, transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from apps.accounts.models import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_EMPLOYER
from apps.utils.exceptions import (
    AuthorizationError,
    BusinessLogicException,
    DomainValidationError,
    NotFoundError,
    PersistenceError,
    StateConflictError,
)
from . import lifecycle
from .events import OrderEvents
from .models import Order, OrderItem, Rating
from .policies import get_policy

logger = logging.getLogger(__name__)

MONEY_PLACES = Decimal("0.01")


def _money(value):
    return Decimal(value or 0).quantize(MONEY_PLACES)


class OrderService:

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @staticmethod
    def detail_queryset():
        return (
            Order.objects
            .select_related("user", "store", "employer", "rating")
            .prefetch_related("items__product")
        )

    @staticmethod
    def scope_for(actor, role):
        """
        Orders the actor may see or mutate in the given role.
        """
        if role == ROLE_ADMIN:
            return Order.objects.all()
        if role == ROLE_EMPLOYER:
            return Order.objects.filter(employer=actor)
        if role == ROLE_CUSTOMER:
            return Order.objects.filter(user=actor)
        raise AuthorizationError("Unknown role.")

    @staticmethod
    def get_for_actor(order_id, actor, role) -> Order:
        order = (
            OrderService.detail_queryset()
            .filter(pk__in=OrderService.scope_for(actor, role).values("pk"))
            .filter(pk=order_id)
            .first()
        )
        if order is None:
            raise NotFoundError("Order not found.")
        return order

    @staticmethod
    def customer_orders(customer, order_type=None, status=None):
        qs = OrderService.detail_queryset().filter(user=customer)
        if order_type:
            qs = qs.filter(order_type=order_type)
        if status:
            qs = qs.filter(status=status)
        return qs.order_by("-created_at")

    @staticmethod
    def customer_stats(customer, order_type=None):
        qs = Order.objects.filter(user=customer)
        if order_type:
            qs = qs.filter(order_type=order_type)

        stats = qs.aggregate(
            total_orders=Count("id"),
            pending_orders=Count("id", filter=Q(status=lifecycle.PENDING)),
            delivered_orders=Count("id", filter=Q(status=lifecycle.DELIVERED)),
            total_spent=Sum("total", filter=Q(status=lifecycle.DELIVERED)),
        )
        stats["total_spent"] = _money(stats["total_spent"])
        return stats

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @staticmethod
    def create_order(customer, order_type, data) -> Order:
        """
        Single creation path for every order type.
        The type policy validates addresses/items; pricing and the
        all-or-nothing write of order + items are shared here.
        """
        policy = get_policy(order_type)
        draft = policy.prepare(data)

        subtotal = _money(sum((item.line_total for item in draft.items), Decimal("0")))
        delivery_fee = _money(data.get("delivery_fee"))
        total = subtotal + delivery_fee

        OrderService._log_client_totals(order_type, data, subtotal, total)

        try:
            with transaction.atomic():
                order = Order.objects.create(
                    user=customer,
                    order_type=policy.order_type,
                    status=lifecycle.PENDING,
                    subtotal=subtotal,
                    delivery_fee=delivery_fee,
                    total=total,
                    payment_method=data["payment_method"],
                    phone=data["phone"],
                    notes=data.get("notes", ""),
                    **draft.fields,
                )
                for item in draft.items:
                    item.order = order
                OrderItem.objects.bulk_create(draft.items)
        except DatabaseError as e:
            logger.exception(f"Order creation failed for user {customer.id} ({order_type}): {e}")
            raise PersistenceError("Failed to create order. Please try again.") from e

        logger.info(
            f"Order #{order.id} created: type={order.order_type} items={len(draft.items)} total={order.total}"
        )
        transaction.on_commit(lambda: OrderEvents.created(order))
        return OrderService.detail_queryset().get(pk=order.pk)

    @staticmethod
    def _log_client_totals(order_type, data, subtotal, total):
        client_subtotal = data.get("subtotal")
        client_total = data.get("total")
        if client_subtotal is not None and _money(client_subtotal) != subtotal:
            logger.warning(
                f"{order_type} order: client subtotal {client_subtotal} differs from computed {subtotal}"
            )
        if client_total is not None and _money(client_total) != total:
            logger.warning(
                f"{order_type} order: client total {client_total} differs from computed {total}"
            )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def transition(order_id, target_status, actor, role, require_current=None) -> Order:
        """
        Moves an order along the lifecycle table on behalf of `actor` acting as `role`.

        customer: may only cancel own orders.
        employer: may move orders currently assigned to them.
        admin:    may move any order.
        The write is conditional on the status read here; a concurrent change
        makes it affect zero rows and surfaces as a stale-state conflict.
        """
        if not lifecycle.is_valid_status(target_status):
            raise DomainValidationError(
                "Invalid status.", errors={"status": [f"Unknown status: {target_status}"]}
            )

        order = OrderService.get_for_actor(order_id, actor, role)
        previous = order.status

        if require_current and previous != require_current:
            raise StateConflictError(
                f"Order must be {require_current} for this action. Current status: {previous}",
                code="invalid_transition",
            )

        if role == ROLE_CUSTOMER and target_status != lifecycle.CANCELLED:
            raise AuthorizationError("Customers can only cancel their orders.")

        if (
            target_status == lifecycle.CANCELLED
            and previous not in lifecycle.TERMINAL_STATUSES
            and previous not in lifecycle.CANCELLABLE_STATUSES
        ):
            raise StateConflictError(
                f"Order cannot be cancelled at this stage. Current status: {previous}",
                code="not_cancellable",
            )

        lifecycle.ensure_transition(previous, target_status)

        if target_status == lifecycle.CONFIRMED:
            if order.employer_id is None:
                raise StateConflictError(
                    "An employer must be assigned before the order can be confirmed.",
                    code="employer_required",
                )
            if role == ROLE_EMPLOYER:
                from apps.employers.services import EmployerService
                EmployerService.ensure_can_accept(actor)

        now = timezone.now()
        updates = lifecycle.milestone_updates(
            target_status, now, stamp_assignment=(target_status == lifecycle.CONFIRMED)
        )
        updated = (
            OrderService.scope_for(actor, role)
            .filter(pk=order.pk, status=previous)
            .update(**updates)
        )
        if not updated:
            logger.warning(
                f"Stale transition on order #{order.pk}: {previous} -> {target_status} by user {actor.id}"
            )
            raise StateConflictError(
                "Order was updated by another request. Please refresh and try again.",
                code="stale_state",
            )

        order = OrderService.detail_queryset().get(pk=order.pk)
        logger.info(f"Order #{order.pk} {previous} -> {order.status} by {role} {actor.id}")
        transaction.on_commit(lambda: OrderEvents.status_changed(order, previous, actor, role))
        return order

    @staticmethod
    def cancel(order_id, actor, role) -> Order:
        return OrderService.transition(order_id, lifecycle.CANCELLED, actor, role)

    # ------------------------------------------------------------------
    # Rating
    # ------------------------------------------------------------------

    @staticmethod
    @transaction.atomic
    def rate_order(order_id, customer, rating, review="") -> Rating:
        order = (
            Order.objects.select_for_update()
            .filter(pk=order_id, user=customer)
            .first()
        )
        if order is None:
            raise NotFoundError("Order not found.")

        if order.status != lifecycle.DELIVERED:
            raise StateConflictError(
                "Only delivered orders can be rated.", code="order_not_delivered"
            )

        if order.store_id is None:
            raise BusinessLogicException(
                "This order has no store to rate.", code="missing_store"
            )

        if Rating.objects.filter(order=order).exists():
            raise StateConflictError("You have already rated this order.", code="already_rated")

        try:
            with transaction.atomic():
                created = Rating.objects.create(
                    order=order,
                    customer=customer,
                    store_id=order.store_id,
                    rating=rating,
                    review=review or "",
                )
        except IntegrityError:
            raise StateConflictError("You have already rated this order.", code="already_rated")

        logger.info(f"Order #{order.pk} rated {rating}/5 by user {customer.id}")
        transaction.on_commit(lambda: OrderEvents.rated(created))
        return created

    # ------------------------------------------------------------------
    # Back-office
    # ------------------------------------------------------------------

    @staticmethod
    def admin_orders(status=None, order_type=None, employer_id=None):
        qs = Order.objects.select_related("user", "store", "employer").prefetch_related("items")
        if status:
            qs = qs.filter(status=status)
        if order_type:
            qs = qs.filter(order_type=order_type)
        if employer_id:
            qs = qs.filter(employer_id=employer_id)
        return qs.order_by("-created_at")

    @staticmethod
    @transaction.atomic
    def delete_order(order_id, actor):
        order = Order.objects.select_for_update().filter(pk=order_id).first()
        if order is None:
            raise NotFoundError("Order not found.")

        status = order.status
        order.delete()
        logger.info(f"Order #{order_id} ({status}) deleted by admin {actor.id}")

        from apps.audit.services import AuditService
        transaction.on_commit(lambda: AuditService.order_deleted(order_id, actor, status))


class OrderItemService:
    """
    Back-office edits of individual line items. Totals are recomputed in the same transaction.
    """

    EDITABLE_FIELDS = ("quantity", "price", "special_instructions")

    @staticmethod
    def _lock(item_id):
        item = OrderItem.objects.select_related("product").filter(pk=item_id).first()
        if item is None:
            raise NotFoundError("Order item not found.")

        order = Order.objects.select_for_update().get(pk=item.order_id)
        if order.is_terminal:
            raise StateConflictError(
                f"Items of a {order.status} order can no longer be changed.", code="order_terminal"
            )
        return item, order

    @staticmethod
    def recalculate_totals(order):
        lines = order.items.all()
        order.subtotal = _money(sum((i.line_total for i in lines), Decimal("0")))
        order.total = order.subtotal + order.delivery_fee
        order.save(update_fields=["subtotal", "total", "updated_at"])
        return order

    @staticmethod
    @transaction.atomic
    def update_item(item_id, data, actor) -> OrderItem:
        item, order = OrderItemService._lock(item_id)

        changes = {}
        for field in OrderItemService.EDITABLE_FIELDS:
            if field in data:
                changes[field] = str(data[field])
                setattr(item, field, data[field])
        item.save(update_fields=list(changes))

        OrderItemService.recalculate_totals(order)
        logger.info(f"Order item {item.pk} on order #{order.pk} updated by {actor.id}: {changes}")

        from apps.audit.services import AuditService
        transaction.on_commit(
            lambda: AuditService.order_item_changed(item.pk, order.pk, actor, changes=changes)
        )
        return item

    @staticmethod
    @transaction.atomic
    def delete_item(item_id, actor) -> Order:
        item, order = OrderItemService._lock(item_id)

        if order.items.count() <= 1:
            raise StateConflictError("An order must keep at least one item.", code="last_item")

        item.delete()
        OrderItemService.recalculate_totals(order)
        logger.info(f"Order item {item_id} removed from order #{order.pk} by {actor.id}")

        from apps.audit.services import AuditService
        transaction.on_commit(
            lambda: AuditService.order_item_changed(item_id, order.pk, actor, deleted=True)
        )
        return order
