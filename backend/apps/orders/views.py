# apps/orders/views.py
from rest_framework import generics, status
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.pagination import PageNumberPagination
from django_filters.rest_framework import DjangoFilterBackend

from apps.accounts.models import ROLE_ADMIN, ROLE_CUSTOMER
from apps.accounts.permissions import IsCustomer, IsPlatformAdmin
from apps.utils.idempotency import idempotent

from .models import Order, OrderItem
from .policies import StoreOrderPolicy, CustomDeliveryPolicy, WaterTankPolicy
from .services import OrderService, OrderItemService
from .serializers import (
    OrderSerializer,
    OrderListSerializer,
    OrderItemSerializer,
    RatingSerializer,
    RateOrderSerializer,
    CancelOrderSerializer,
    StatusUpdateSerializer,
    AdminAssignSerializer,
    OrderItemUpdateSerializer,
)


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = 'page_size'
    max_page_size = 100


# ---------------------------------------------------------------------------
# Customer
# ---------------------------------------------------------------------------

class BaseCreateOrderAPIView(APIView):
    """
    Shared creation endpoint; subclasses only pick the order type policy.
    """
    permission_classes = [IsCustomer]
    policy_class = None
    success_message = "Order created successfully"

    @idempotent()
    def post(self, request):
        policy = self.policy_class()
        serializer = policy.input_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.create_order(request.user, policy.order_type, serializer.validated_data)

        payload = {
            "success": True,
            "message": self.success_message,
            "order": OrderSerializer(order).data,
        }
        if order.order_type == Order.TYPE_REGULAR:
            payload["distance"] = float(order.distance_km)
        return Response(payload, status=status.HTTP_201_CREATED)


class CreateStoreOrderAPIView(BaseCreateOrderAPIView):
    policy_class = StoreOrderPolicy


class CreateCustomDeliveryAPIView(BaseCreateOrderAPIView):
    policy_class = CustomDeliveryPolicy
    success_message = "Custom delivery order created successfully"


class CreateWaterTankOrderAPIView(BaseCreateOrderAPIView):
    policy_class = WaterTankPolicy
    success_message = "Water tank order created successfully"


class MyOrdersAPIView(generics.ListAPIView):
    permission_classes = [IsCustomer]
    serializer_class = OrderListSerializer
    pagination_class = StandardResultsSetPagination

    def get_queryset(self):
        return OrderService.customer_orders(
            self.request.user,
            order_type=self.request.query_params.get("order_type"),
            status=self.request.query_params.get("status"),
        )


class OrderStatsAPIView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request):
        stats = OrderService.customer_stats(
            request.user, order_type=request.query_params.get("order_type")
        )
        return Response({"success": True, "stats": stats})


class OrderDetailAPIView(APIView):
    permission_classes = [IsCustomer]

    def get(self, request, order_id):
        order = OrderService.get_for_actor(order_id, request.user, ROLE_CUSTOMER)
        return Response({"success": True, "order": OrderSerializer(order).data})


class CancelOrderAPIView(APIView):
    permission_classes = [IsCustomer]

    def post(self, request, order_id):
        serializer = CancelOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.cancel(order_id, request.user, ROLE_CUSTOMER)
        return Response({
            "success": True,
            "message": "Order cancelled successfully",
            "order": OrderSerializer(order).data,
        })


class RateOrderAPIView(APIView):
    permission_classes = [IsCustomer]

    def post(self, request, order_id):
        serializer = RateOrderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        rating = OrderService.rate_order(
            order_id,
            request.user,
            serializer.validated_data["rating"],
            serializer.validated_data.get("review", ""),
        )
        return Response({
            "success": True,
            "message": "Thank you for your rating",
            "rating": RatingSerializer(rating).data,
        }, status=status.HTTP_201_CREATED)


# ---------------------------------------------------------------------------
# Back-office
# ---------------------------------------------------------------------------

class AdminOrderListAPIView(generics.ListAPIView):
    permission_classes = [IsPlatformAdmin]
    serializer_class = OrderListSerializer
    pagination_class = StandardResultsSetPagination
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ['status', 'order_type', 'employer']

    def get_queryset(self):
        return OrderService.admin_orders()


class AdminOrderDetailAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, order_id):
        order = OrderService.get_for_actor(order_id, request.user, ROLE_ADMIN)
        return Response({"success": True, "order": OrderSerializer(order).data})

    def delete(self, request, order_id):
        OrderService.delete_order(order_id, request.user)
        return Response({"success": True, "message": "Order deleted successfully"})


class AdminAssignOrderAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, order_id):
        serializer = AdminAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        from apps.delivery.services import AssignmentService
        order = AssignmentService.admin_assign(
            order_id, serializer.validated_data["employer_id"], request.user
        )
        return Response({
            "success": True,
            "message": "Order assigned successfully",
            "order": OrderSerializer(order).data,
        })


class AdminOrderStatusAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, order_id):
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        order = OrderService.transition(
            order_id, serializer.validated_data["status"], request.user, ROLE_ADMIN
        )
        return Response({
            "success": True,
            "message": "Order status updated successfully",
            "order": OrderSerializer(order).data,
        })


class AdminOrderItemsAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def get(self, request, order_id):
        order = OrderService.get_for_actor(order_id, request.user, ROLE_ADMIN)
        return Response({
            "success": True,
            "items": OrderItemSerializer(order.items.all(), many=True).data,
        })


class AdminOrderItemAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def patch(self, request, item_id):
        serializer = OrderItemUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        item = OrderItemService.update_item(item_id, serializer.validated_data, request.user)
        item = OrderItem.objects.select_related("order", "product").get(pk=item.pk)
        return Response({
            "success": True,
            "message": "Order item updated successfully",
            "item": OrderItemSerializer(item).data,
            "order_total": item.order.total,
        })

    def delete(self, request, item_id):
        order = OrderItemService.delete_item(item_id, request.user)
        return Response({
            "success": True,
            "message": "Order item deleted successfully",
            "order_total": order.total,
        })
