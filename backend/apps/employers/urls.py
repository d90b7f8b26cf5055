# apps/employers/urls.py
from django.urls import path
from .views import (
    MyEmployerProfileAPIView,
    EmployerAvailabilityAPIView,
    AdminEmployerStatusAPIView,
)

urlpatterns = [
    path("me/", MyEmployerProfileAPIView.as_view()),
    path("availability/", EmployerAvailabilityAPIView.as_view()),

    # Admin
    path("admin/<int:user_id>/status/", AdminEmployerStatusAPIView.as_view()),
]
