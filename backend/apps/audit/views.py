from rest_framework import generics
from rest_framework.pagination import PageNumberPagination
from django_filters.rest_framework import DjangoFilterBackend

from apps.accounts.permissions import IsPlatformAdmin
from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditPagination(PageNumberPagination):
    page_size = 50
    max_page_size = 100


class AuditLogListAPIView(generics.ListAPIView):
    """
    Admin view of the order audit trail.
    """
    permission_classes = [IsPlatformAdmin]
    pagination_class = AuditPagination
    serializer_class = AuditLogSerializer
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["action", "reference_id"]

    def get_queryset(self):
        return AuditLog.objects.select_related("user").order_by("-created_at")
