# apps/notifications/services.py
import logging

from django.db import transaction

from .models import Notification
from .tasks import send_push_notification

logger = logging.getLogger(__name__)


class NotificationService:
    @staticmethod
    def send_push(user, event, title, message, order=None):
        """
        Persist the notification and queue push delivery once the surrounding transaction commits.
        """
        notification = Notification.objects.create(
            user=user,
            order=order,
            event=event,
            title=title,
            message=message,
        )
        transaction.on_commit(lambda: send_push_notification.delay(notification.id))
        logger.info(f"[PUSH] Queued {event} for user {user.id}")
        return notification

    # Order events

    @staticmethod
    def order_created(order):
        NotificationService.send_push(
            order.user, "order_created", "Order placed",
            f"Your order #{order.id} has been placed and is waiting for a driver.",
            order=order,
        )

    @staticmethod
    def order_assigned(order, employer):
        NotificationService.send_push(
            employer, "order_assigned", "New order assigned",
            f"Order #{order.id} has been assigned to you. Accept it to start the delivery.",
            order=order,
        )

    @staticmethod
    def order_accepted(order):
        NotificationService.send_push(
            order.user, "order_accepted", "Driver on board",
            f"A driver accepted your order #{order.id}.",
            order=order,
        )

    @staticmethod
    def status_changed(order, previous, cancelled_by_customer=False):
        if cancelled_by_customer:
            if order.employer_id:
                NotificationService.send_push(
                    order.employer, "order_cancelled", "Order cancelled",
                    f"Order #{order.id} was cancelled by the customer.",
                    order=order,
                )
            return

        event = "order_cancelled" if order.status == "cancelled" else "status_changed"
        NotificationService.send_push(
            order.user, event, "Order update",
            f"Order #{order.id} is now {order.get_status_display().lower()}.",
            order=order,
        )

    @staticmethod
    def mark_read(user, ids=None):
        qs = Notification.objects.filter(user=user, is_read=False)
        if ids:
            qs = qs.filter(id__in=ids)
        return qs.update(is_read=True)
