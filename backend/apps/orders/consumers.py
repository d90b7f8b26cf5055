# apps/orders/consumers.py
import json
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncWebsocketConsumer
from django.db.models import Q

from .events import ADMIN_GROUP, order_group
from .models import Order

logger = logging.getLogger(__name__)


class AdminNotificationConsumer(AsyncWebsocketConsumer):
    """
    Back-office feed of newly created orders.
    """
    group_name = ADMIN_GROUP

    async def connect(self):
        user = self.scope.get("user")
        if not user or not user.is_authenticated or not await self.is_admin(user):
            await self.close(code=4003)
            return

        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()
        logger.info(f"Admin {user.id} subscribed to order notifications")

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def send_notification(self, event):
        await self.send(text_data=json.dumps({
            "type": event.get("message", "new_order"),
            "order_id": event.get("order_id"),
            "order_type": event.get("order_type"),
        }))

    @database_sync_to_async
    def is_admin(self, user):
        return user.is_platform_admin


class OrderStatusConsumer(AsyncWebsocketConsumer):
    """
    Live status feed for a single order.
    Auth: customer who placed it or the assigned employer.
    """

    async def connect(self):
        user = self.scope.get("user")
        self.order_id = self.scope["url_route"]["kwargs"]["order_id"]
        self.room_group_name = order_group(self.order_id)

        if not user or not user.is_authenticated or not await self.can_follow(user, self.order_id):
            await self.close(code=4003)
            return

        await self.channel_layer.group_add(self.room_group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.room_group_name, self.channel_name)

    async def receive(self, text_data=None, bytes_data=None):
        # Listen-only socket; drivers push through the HTTP API
        pass

    async def order_update(self, event):
        await self.send(text_data=json.dumps({
            "type": "status_update",
            "order_id": event["order_id"],
            "status": event["status"],
            "message": event["message"],
        }))

    async def location_update(self, event):
        await self.send(text_data=json.dumps({
            "type": "driver_location",
            "lat": event["lat"],
            "lng": event["lng"],
        }))

    @database_sync_to_async
    def can_follow(self, user, order_id):
        return Order.objects.filter(pk=order_id).filter(Q(user=user) | Q(employer=user)).exists()
