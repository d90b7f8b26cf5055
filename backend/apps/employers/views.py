from django.shortcuts import get_object_or_404
from rest_framework.views import APIView
from rest_framework.response import Response

from apps.accounts.permissions import IsEmployer, IsPlatformAdmin
from .models import EmployerProfile
from .serializers import (
    EmployerProfileSerializer,
    EmployerAvailabilitySerializer,
    EmployerStatusSerializer,
)
from .services import EmployerService


class MyEmployerProfileAPIView(APIView):
    permission_classes = [IsEmployer]

    def get(self, request):
        profile = EmployerService.get_profile(request.user)
        return Response(EmployerProfileSerializer(profile).data)


class EmployerAvailabilityAPIView(APIView):
    """
    Toggle Online/Offline.
    """
    permission_classes = [IsEmployer]

    def post(self, request):
        serializer = EmployerAvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = EmployerService.get_profile(request.user)
        EmployerService.set_online(profile, serializer.validated_data["is_online"])

        return Response({
            "success": True,
            "message": "Availability updated",
            "employer": EmployerProfileSerializer(profile).data,
        })


class AdminEmployerStatusAPIView(APIView):
    permission_classes = [IsPlatformAdmin]

    def post(self, request, user_id):
        serializer = EmployerStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        profile = get_object_or_404(EmployerProfile, user_id=user_id)
        EmployerService.update_status(
            profile, serializer.validated_data["status"], actor=request.user
        )

        return Response({
            "success": True,
            "message": "Employer status updated successfully",
            "employer": EmployerProfileSerializer(profile).data,
        })
