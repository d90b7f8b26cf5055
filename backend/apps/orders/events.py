# apps/orders/events.py
"""
Side effects of order lifecycle changes: audit trail, customer/driver notifications
and websocket broadcasts. Always scheduled with transaction.on_commit.
"""
import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from apps.accounts.models import ROLE_CUSTOMER
from apps.audit.services import AuditService
from apps.notifications.services import NotificationService

logger = logging.getLogger(__name__)

ADMIN_GROUP = "admin_notifications_group"


def order_group(order_id):
    return f"order_{order_id}"


def _group_send(group, payload):
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    try:
        async_to_sync(channel_layer.group_send)(group, payload)
    except Exception as e:
        # Broadcast is best effort; the committed order is the source of truth
        logger.error(f"Broadcast to {group} failed: {e}")


class OrderEvents:

    @staticmethod
    def broadcast_status(order, message=""):
        _group_send(order_group(order.id), {
            "type": "order_update",
            "order_id": order.id,
            "status": order.status,
            "message": message or f"Order is {order.get_status_display().lower()}",
        })

    @staticmethod
    def created(order):
        AuditService.order_created(order)
        NotificationService.order_created(order)
        _group_send(ADMIN_GROUP, {
            "type": "send_notification",
            "message": "new_order",
            "order_id": order.id,
            "order_type": order.order_type,
        })

    @staticmethod
    def accepted(order, employer):
        AuditService.order_accepted(order, employer)
        NotificationService.order_accepted(order)
        OrderEvents.broadcast_status(order, "A driver accepted your order")

    @staticmethod
    def assigned(order, employer, actor, previous_employer_id=None):
        AuditService.manual_assignment(order, employer, actor, previous_employer_id)
        NotificationService.order_assigned(order, employer)

    @staticmethod
    def status_changed(order, previous, actor, role):
        AuditService.status_changed(order, previous, actor, role)
        NotificationService.status_changed(
            order, previous, cancelled_by_customer=(role == ROLE_CUSTOMER)
        )
        OrderEvents.broadcast_status(order)

    @staticmethod
    def rated(rating):
        AuditService.order_rated(rating)

    @staticmethod
    def location_updated(order_id, latitude, longitude):
        _group_send(order_group(order_id), {
            "type": "location_update",
            "lat": float(latitude),
            "lng": float(longitude),
        })
