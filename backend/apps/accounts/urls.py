# apps/accounts/urls.py
from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView
from .views import MeAPIView, LogoutAPIView

urlpatterns = [
    path("me/", MeAPIView.as_view()),
    path("refresh/", TokenRefreshView.as_view(), name='token_refresh'),
    path("logout/", LogoutAPIView.as_view()),
]
