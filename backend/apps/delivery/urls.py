# apps/delivery/urls.py
from django.urls import path
from .views import (
    AvailableOrdersAPIView,
    AdminAssignedOrdersAPIView,
    MyDeliveriesAPIView,
    ActiveDeliveriesAPIView,
    DeliveryHistoryAPIView,
    TodaysOrdersAPIView,
    DriverDashboardAPIView,
    DriverPerformanceAPIView,
    DriverOrderDetailAPIView,
    AcceptOrderAPIView,
    DriverOrderStatusAPIView,
    MarkDeliveredAPIView,
    DriverLocationAPIView,
    DriverCancelOrderAPIView,
)

urlpatterns = [
    # Order pools
    path("available/", AvailableOrdersAPIView.as_view()),
    path("assigned/", AdminAssignedOrdersAPIView.as_view()),
    path("my-orders/", MyDeliveriesAPIView.as_view()),
    path("active/", ActiveDeliveriesAPIView.as_view()),
    path("history/", DeliveryHistoryAPIView.as_view()),
    path("today/", TodaysOrdersAPIView.as_view()),

    # Stats
    path("dashboard/", DriverDashboardAPIView.as_view()),
    path("performance/", DriverPerformanceAPIView.as_view()),

    # Driver workflow
    path("orders/<int:order_id>/", DriverOrderDetailAPIView.as_view()),
    path("orders/<int:order_id>/accept/", AcceptOrderAPIView.as_view()),
    path("orders/<int:order_id>/status/", DriverOrderStatusAPIView.as_view()),
    path("orders/<int:order_id>/deliver/", MarkDeliveredAPIView.as_view()),
    path("orders/<int:order_id>/location/", DriverLocationAPIView.as_view()),
    path("orders/<int:order_id>/cancel/", DriverCancelOrderAPIView.as_view()),
]
