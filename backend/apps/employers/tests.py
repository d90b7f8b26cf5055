from django.test import TestCase
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import UserRole, ROLE_EMPLOYER, ROLE_CUSTOMER
from apps.audit.models import AuditLog
from apps.employers.models import EmployerProfile
from apps.employers.services import EmployerService
from apps.orders.models import Order
from apps.utils.exceptions import AuthorizationError, BusinessLogicException, DomainValidationError

User = get_user_model()


class EmployerProfileModelTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(phone="+966500000300")

    def test_availability_follows_status_and_online_flag(self):
        profile = EmployerProfile.objects.create(user=self.user, status="approved", is_online=True)
        self.assertTrue(profile.is_available)
        self.assertTrue(profile.can_accept_orders)

        profile.status = "suspended"
        profile.save(update_fields=["status"])
        profile.refresh_from_db()
        self.assertFalse(profile.is_online)
        self.assertFalse(profile.is_available)

    def test_pending_profile_cannot_be_online(self):
        profile = EmployerProfile.objects.create(user=self.user, is_online=True)
        self.assertFalse(profile.is_online)
        self.assertFalse(profile.can_accept_orders)


class EmployerServiceTestCase(TestCase):
    def setUp(self):
        self.user = User.objects.create_user(phone="+966500000301")
        UserRole.objects.create(user=self.user, role=ROLE_EMPLOYER)
        self.profile = EmployerService.create_profile(self.user, vehicle_type="car")
        self.admin = User.objects.create_superuser(phone="+966500000309", password="admin")

    def test_create_profile_is_idempotent(self):
        again = EmployerService.create_profile(self.user)
        self.assertEqual(again.pk, self.profile.pk)
        self.assertEqual(EmployerProfile.objects.filter(user=self.user).count(), 1)

    def test_create_profile_requires_role(self):
        customer = User.objects.create_user(phone="+966500000302")
        with self.assertRaises(DomainValidationError):
            EmployerService.create_profile(customer)

    def test_pending_employer_cannot_go_online(self):
        with self.assertRaises(BusinessLogicException) as ctx:
            EmployerService.set_online(self.profile, True)
        self.assertEqual(ctx.exception.code, "employer_not_approved")

    def test_online_toggle(self):
        EmployerService.update_status(self.profile, "approved")
        EmployerService.set_online(self.profile, False)
        self.profile.refresh_from_db()
        self.assertFalse(self.profile.is_available)

        EmployerService.set_online(self.profile, True)
        self.profile.refresh_from_db()
        self.assertTrue(self.profile.is_online)
        self.assertTrue(self.profile.is_available)

    def test_cannot_go_offline_with_active_delivery(self):
        EmployerService.update_status(self.profile, "active")
        customer = User.objects.create_user(phone="+966500000303")
        Order.objects.create(
            user=customer, employer=self.user, status="on_the_way",
            address="Street 1", payment_method="cash", phone="0500000000",
        )
        with self.assertRaises(BusinessLogicException) as ctx:
            EmployerService.set_online(self.profile, False)
        self.assertEqual(ctx.exception.code, "active_delivery_restriction")

    def test_status_update_is_audited(self):
        with self.captureOnCommitCallbacks(execute=True):
            EmployerService.update_status(self.profile, "approved", actor=self.admin)

        self.profile.refresh_from_db()
        self.assertTrue(self.profile.is_available)
        log = AuditLog.objects.get(action="employer_status_changed")
        self.assertEqual(log.user, self.admin)
        self.assertEqual(log.metadata["from"], "pending")
        self.assertEqual(log.metadata["to"], "approved")

    def test_suspension_blocks_accepting(self):
        EmployerService.update_status(self.profile, "approved")
        self.assertEqual(EmployerService.ensure_can_accept(self.user), self.profile)

        EmployerService.update_status(self.profile, "suspended")
        with self.assertRaises(AuthorizationError):
            EmployerService.ensure_can_accept(self.user)

    def test_ensure_can_accept_requires_profile(self):
        other = User.objects.create_user(phone="+966500000304")
        UserRole.objects.create(user=other, role=ROLE_EMPLOYER)
        with self.assertRaises(AuthorizationError) as ctx:
            EmployerService.ensure_can_accept(other)
        self.assertEqual(ctx.exception.code, "employer_profile_missing")


class EmployerAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(phone="+966500000310")
        UserRole.objects.create(user=self.user, role=ROLE_EMPLOYER)
        self.profile = EmployerProfile.objects.create(user=self.user, status="approved")
        self.admin = User.objects.create_superuser(phone="+966500000311", password="admin")

    def test_profile_me(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/v1/employers/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["status"], "approved")

    def test_customer_cannot_use_employer_endpoints(self):
        customer = User.objects.create_user(phone="+966500000312")
        UserRole.objects.create(user=customer, role=ROLE_CUSTOMER)
        self.client.force_authenticate(user=customer)
        response = self.client.post("/api/v1/employers/availability/", {"is_online": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data["success"])

    def test_go_online(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.post("/api/v1/employers/availability/", {"is_online": True}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["employer"]["is_available"])

    def test_admin_status_update(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            f"/api/v1/employers/admin/{self.user.id}/status/", {"status": "suspended"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["employer"]["status"], "suspended")
        self.assertFalse(response.data["employer"]["is_online"])

    def test_admin_status_update_rejects_unknown_status(self):
        self.client.force_authenticate(user=self.admin)
        response = self.client.post(
            f"/api/v1/employers/admin/{self.user.id}/status/", {"status": "retired"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("status", response.data["errors"])
