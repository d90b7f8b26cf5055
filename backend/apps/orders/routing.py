# apps/orders/routing.py
from django.urls import path, re_path

from .consumers import AdminNotificationConsumer, OrderStatusConsumer

websocket_urlpatterns = [
    re_path(r"ws/orders/(?P<order_id>\d+)/$", OrderStatusConsumer.as_asgi()),
    path("ws/admin-notifications/", AdminNotificationConsumer.as_asgi()),
]
