from unittest.mock import patch

import requests
from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.notifications.models import Notification
from apps.notifications.services import NotificationService
from apps.notifications.tasks import send_push_notification

User = get_user_model()


class NotificationServiceTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(phone="+966500000200")

    def test_send_push_persists_and_queues_after_commit(self):
        with patch("apps.notifications.services.send_push_notification.delay") as mock_delay:
            with self.captureOnCommitCallbacks(execute=True):
                notification = NotificationService.send_push(
                    self.user, "order_created", "Order placed", "Your order #1 has been placed."
                )

        self.assertTrue(Notification.objects.filter(id=notification.id, user=self.user).exists())
        mock_delay.assert_called_once_with(notification.id)

    def test_mark_read(self):
        NotificationService.send_push(self.user, "status_changed", "Update", "a")
        NotificationService.send_push(self.user, "status_changed", "Update", "b")

        self.assertEqual(NotificationService.mark_read(self.user), 2)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())


class PushTaskTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(phone="+966500000201")
        self.notification = Notification.objects.create(
            user=self.user, event="order_created", title="Order placed", message="hi"
        )

    @override_settings(PUSH_PROVIDER_URL="")
    def test_without_gateway_only_logs(self):
        self.assertEqual(send_push_notification(self.notification.id), "Logged")

    @override_settings(PUSH_PROVIDER_URL="https://push.example.test/send", PUSH_PROVIDER_KEY="k")
    @patch("apps.notifications.tasks.requests.post")
    def test_gateway_success_marks_pushed(self, mock_post):
        mock_post.return_value.raise_for_status.return_value = None

        self.assertEqual(send_push_notification(self.notification.id), "Sent")
        self.notification.refresh_from_db()
        self.assertIsNotNone(self.notification.pushed_at)
        self.assertEqual(mock_post.call_args.kwargs["json"]["user_id"], self.user.id)

    @override_settings(PUSH_PROVIDER_URL="https://push.example.test/send")
    @patch("apps.notifications.tasks.requests.post", side_effect=requests.ConnectionError("down"))
    def test_gateway_failure_retries(self, mock_post):
        with self.assertRaises(requests.RequestException):
            send_push_notification(self.notification.id)

    def test_missing_notification(self):
        self.assertEqual(send_push_notification(999999), "Missing")


class NotificationAPITestCase(TestCase):
    def test_list_only_own(self):
        me = User.objects.create_user(phone="+966500000202")
        other = User.objects.create_user(phone="+966500000203")
        Notification.objects.create(user=me, event="order_created", title="t", message="m")
        Notification.objects.create(user=other, event="order_created", title="t", message="m")

        client = APIClient()
        client.force_authenticate(user=me)
        response = client.get("/api/v1/notifications/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
