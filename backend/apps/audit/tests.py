from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.audit.models import AuditLog
from apps.audit.services import AuditService

User = get_user_model()


class AuditLogTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(phone="+966500000100")

    def test_immutability(self):
        log = AuditLog.objects.create(user=self.user, action="order_created", reference_id="42")

        log.action = "tampered"
        with self.assertRaises(RuntimeError):
            log.save()
        with self.assertRaises(RuntimeError):
            log.delete()

    def test_bulk_mutation_blocked(self):
        AuditService.log("order_created", "1", self.user, {})
        with self.assertRaises(RuntimeError):
            AuditLog.objects.filter(reference_id="1").update(action="order_deleted")
        with self.assertRaises(RuntimeError):
            AuditLog.objects.all().delete()

    def test_admin_can_filter_by_reference(self):
        AuditService.log("order_created", "7", self.user, {"total": "10.00"})
        AuditService.log("order_cancelled", "8", self.user, {})

        admin = User.objects.create_superuser(phone="+966500000101", password="pass")
        client = APIClient()
        client.force_authenticate(user=admin)

        response = client.get("/api/v1/audit/", {"reference_id": "7"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["action"], "order_created")

    def test_non_admin_forbidden(self):
        client = APIClient()
        client.force_authenticate(user=self.user)
        self.assertEqual(client.get("/api/v1/audit/").status_code, 403)

    def test_list_exposes_action_label_and_actor_phone(self):
        AuditService.log("order_created", "9", self.user, {})
        AuditLog.objects.create(user=None, action="order_created", reference_id="10")

        admin = User.objects.create_superuser(phone="+966500000102", password="pass")
        client = APIClient()
        client.force_authenticate(user=admin)

        response = client.get("/api/v1/audit/", {"reference_id": "9"})
        self.assertEqual(response.status_code, 200)
        row = response.data["results"][0]
        self.assertEqual(row["action_label"], "Order Created")
        self.assertEqual(row["actor_phone"], "+966500000100")

        response = client.get("/api/v1/audit/", {"reference_id": "10"})
        self.assertIsNone(response.data["results"][0]["actor_phone"])
