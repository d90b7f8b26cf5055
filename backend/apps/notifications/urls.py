from django.urls import path
from .views import MyNotificationsAPIView, MarkNotificationsReadAPIView

urlpatterns = [
    path("", MyNotificationsAPIView.as_view()),
    path("read/", MarkNotificationsReadAPIView.as_view()),
]
