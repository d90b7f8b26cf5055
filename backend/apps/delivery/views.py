# apps/delivery/views.py
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle

from apps.accounts.models import ROLE_EMPLOYER
from apps.accounts.permissions import IsEmployer
from apps.orders.serializers import OrderSerializer
from apps.orders.services import OrderService
from apps.orders.views import StandardResultsSetPagination

from .serializers import (
    DriverStatusUpdateSerializer,
    LocationUpdateSerializer,
    DashboardStatsSerializer,
    PerformanceStatsSerializer,
)
from .services import AssignmentService, DeliveryService


class DriverOrderListAPIView(generics.ListAPIView):
    """
    Base for the driver's order lists; subclasses pick the query.
    """
    permission_classes = [IsEmployer]
    serializer_class = OrderSerializer
    pagination_class = StandardResultsSetPagination

    def orders(self, employer):
        raise NotImplementedError

    def get_queryset(self):
        return self.orders(self.request.user)


class AvailableOrdersAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return AssignmentService.claimable_orders_for(employer)


class AdminAssignedOrdersAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return DeliveryService.admin_assigned_orders(employer)


class MyDeliveriesAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return DeliveryService.my_orders(employer, status=self.request.query_params.get("status"))


class ActiveDeliveriesAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return DeliveryService.active_orders(employer)


class DeliveryHistoryAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return DeliveryService.history(employer)


class TodaysOrdersAPIView(DriverOrderListAPIView):
    def orders(self, employer):
        return DeliveryService.todays_orders(employer)


class DriverDashboardAPIView(APIView):
    permission_classes = [IsEmployer]

    def get(self, request):
        stats = DeliveryService.dashboard_stats(request.user)
        return Response({"success": True, "stats": DashboardStatsSerializer(stats).data})


class DriverPerformanceAPIView(APIView):
    permission_classes = [IsEmployer]

    def get(self, request):
        stats = DeliveryService.performance_stats(request.user)
        return Response({"success": True, "performance": PerformanceStatsSerializer(stats).data})


class DriverOrderDetailAPIView(APIView):
    permission_classes = [IsEmployer]

    def get(self, request, order_id):
        order = OrderService.get_for_actor(order_id, request.user, ROLE_EMPLOYER)
        return Response({"success": True, "order": OrderSerializer(order).data})


class AcceptOrderAPIView(APIView):
    """
    Driver: claim a pending order from the open pool or one an admin assigned to them.
    """
    permission_classes = [IsEmployer]

    def post(self, request, order_id):
        order = AssignmentService.accept_order(order_id, request.user)
        return Response({
            "success": True,
            "message": "Order accepted successfully",
            "order": OrderSerializer(order).data,
        })


class DriverOrderStatusAPIView(APIView):
    permission_classes = [IsEmployer]

    def post(self, request, order_id):
        serializer = DriverStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = DeliveryService.update_status(order_id, request.user, serializer.validated_data["status"])
        return Response({
            "success": True,
            "message": "Order status updated successfully",
            "order": OrderSerializer(order).data,
        })


class MarkDeliveredAPIView(APIView):
    permission_classes = [IsEmployer]

    def post(self, request, order_id):
        order = DeliveryService.mark_delivered(order_id, request.user)
        return Response({
            "success": True,
            "message": "Order marked as delivered",
            "order": OrderSerializer(order).data,
        })


class DriverLocationAPIView(APIView):
    """
    Driver: GPS updates for an order in progress.
    """
    permission_classes = [IsEmployer]
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'location_ping'

    def post(self, request, order_id):
        serializer = LocationUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = DeliveryService.update_location(
            order_id,
            request.user,
            serializer.validated_data["latitude"],
            serializer.validated_data["longitude"],
        )
        return Response({
            "success": True,
            "message": "Location updated",
            "tracking": {
                "latitude": order.delivery_current_lat,
                "longitude": order.delivery_current_lng,
                "updated_at": order.delivery_updated_at,
            },
        })


class DriverCancelOrderAPIView(APIView):
    permission_classes = [IsEmployer]

    def post(self, request, order_id):
        order = DeliveryService.cancel(order_id, request.user)
        return Response({
            "success": True,
            "message": "Order cancelled successfully",
            "order": OrderSerializer(order).data,
        }, status=status.HTTP_200_OK)
