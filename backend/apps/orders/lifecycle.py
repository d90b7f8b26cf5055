# apps/orders/lifecycle.py
"""
Order status state machine.

    pending -> confirmed -> preparing -> on_the_way -> delivered
       \\          \\            \\
        +----------+------------+--> cancelled

delivered and cancelled are terminal.
"""
from django.db.models import DateTimeField, F, Value
from django.db.models.functions import Coalesce

from apps.utils.exceptions import StateConflictError

PENDING = "pending"
CONFIRMED = "confirmed"
PREPARING = "preparing"
ON_THE_WAY = "on_the_way"
DELIVERED = "delivered"
CANCELLED = "cancelled"

STATUS_CHOICES = (
    (PENDING, "Pending"),
    (CONFIRMED, "Confirmed"),
    (PREPARING, "Preparing"),
    (ON_THE_WAY, "On The Way"),
    (DELIVERED, "Delivered"),
    (CANCELLED, "Cancelled"),
)

ALLOWED_TRANSITIONS = {
    PENDING: frozenset({CONFIRMED, CANCELLED}),
    CONFIRMED: frozenset({PREPARING, CANCELLED}),
    PREPARING: frozenset({ON_THE_WAY, CANCELLED}),
    ON_THE_WAY: frozenset({DELIVERED}),
    DELIVERED: frozenset(),
    CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if not nxt)
ACTIVE_STATUSES = (CONFIRMED, PREPARING, ON_THE_WAY)
OPEN_STATUSES = (PENDING,) + ACTIVE_STATUSES
CANCELLABLE_STATUSES = frozenset(s for s, nxt in ALLOWED_TRANSITIONS.items() if CANCELLED in nxt)
TRACKABLE_STATUSES = ACTIVE_STATUSES

MILESTONE_FIELDS = {
    CONFIRMED: "confirmed_at",
    PREPARING: "preparing_at",
    ON_THE_WAY: "on_the_way_at",
    DELIVERED: "delivered_at",
    CANCELLED: "canceled_at",
}


def is_valid_status(status):
    return status in ALLOWED_TRANSITIONS


def can_transition(current, target):
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(current, target):
    if current in TERMINAL_STATUSES:
        raise StateConflictError(
            f"Order is already {current} and can no longer change status.",
            code="order_terminal",
        )
    if not can_transition(current, target):
        raise StateConflictError(
            f"Cannot change status from {current} to {target}",
            code="invalid_transition",
        )


def set_once(field, now):
    """
    UPDATE expression that stamps `field` only if it is still NULL.
    """
    return Coalesce(F(field), Value(now, output_field=DateTimeField()))


def milestone_updates(target, now, stamp_assignment=False):
    updates = {"status": target, "updated_at": now}
    field = MILESTONE_FIELDS.get(target)
    if field:
        updates[field] = set_once(field, now)
    if stamp_assignment:
        updates["assigned_at"] = set_once("assigned_at", now)
    return updates
