import time

from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.core.cache import cache

from .serializers import UserSerializer


class MeAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class LogoutAPIView(APIView):
    """
    Blocklists the presented access token until it would have expired anyway.
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        payload = getattr(request.auth, "payload", None) or {}
        jti = payload.get("jti")
        if jti:
            ttl = max(int(payload.get("exp", 0) - time.time()), 1)
            cache.set(f"blocklist:{jti}", "1", timeout=ttl)

        return Response({"success": True, "message": "Logged out"})
