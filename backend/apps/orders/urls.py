# apps/orders/urls.py
from django.urls import path
from .views import (
    CreateStoreOrderAPIView,
    CreateCustomDeliveryAPIView,
    CreateWaterTankOrderAPIView,
    MyOrdersAPIView,
    OrderStatsAPIView,
    OrderDetailAPIView,
    CancelOrderAPIView,
    RateOrderAPIView,
    AdminOrderListAPIView,
    AdminOrderDetailAPIView,
    AdminAssignOrderAPIView,
    AdminOrderStatusAPIView,
    AdminOrderItemsAPIView,
    AdminOrderItemAPIView,
)


urlpatterns = [
    # Creation
    path("store/", CreateStoreOrderAPIView.as_view()),
    path("custom/", CreateCustomDeliveryAPIView.as_view()),
    path("water-tank/", CreateWaterTankOrderAPIView.as_view()),

    # Customer
    path("my/", MyOrdersAPIView.as_view()),
    path("stats/", OrderStatsAPIView.as_view()),
    path("<int:order_id>/", OrderDetailAPIView.as_view()),
    path("<int:order_id>/cancel/", CancelOrderAPIView.as_view()),
    path("<int:order_id>/rate/", RateOrderAPIView.as_view()),

    # Back-office
    path("admin/", AdminOrderListAPIView.as_view()),
    path("admin/<int:order_id>/", AdminOrderDetailAPIView.as_view()),
    path("admin/<int:order_id>/assign/", AdminAssignOrderAPIView.as_view()),
    path("admin/<int:order_id>/status/", AdminOrderStatusAPIView.as_view()),
    path("admin/<int:order_id>/items/", AdminOrderItemsAPIView.as_view()),
    path("admin/items/<int:item_id>/", AdminOrderItemAPIView.as_view()),
]
