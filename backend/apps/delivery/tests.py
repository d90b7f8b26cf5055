from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase, override_settings
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import UserRole, ROLE_CUSTOMER, ROLE_EMPLOYER
from apps.audit.models import AuditLog
from apps.delivery.services import AssignmentService, DeliveryService
from apps.employers.models import EmployerProfile
from apps.orders.models import Order, OrderItem
from apps.utils.exceptions import StateConflictError

User = get_user_model()


def make_user(phone, role):
    user = User.objects.create_user(phone=phone)
    UserRole.objects.create(user=user, role=role)
    return user


def make_employer(phone, profile_status="approved", online=True):
    user = make_user(phone, ROLE_EMPLOYER)
    EmployerProfile.objects.create(user=user, status=profile_status, is_online=online)
    return user


def make_order(user, **fields):
    fields.setdefault("address", "Olaya St, Riyadh")
    fields.setdefault("payment_method", "cash")
    fields.setdefault("phone", "0500000000")
    fields.setdefault("total", Decimal("25.00"))
    order = Order.objects.create(user=user, **fields)
    OrderItem.objects.create(
        order=order, custom_name="Parcel", type=OrderItem.TYPE_CUSTOM, quantity=1, price=Decimal("25.00")
    )
    return order


class AcceptOrderTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_user("+966500002000", ROLE_CUSTOMER)
        self.driver = make_employer("+966500002001")
        self.rival = make_employer("+966500002002")
        self.order = make_order(self.customer)

    def test_accept_claims_order(self):
        self.client.force_authenticate(user=self.driver)
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.order.refresh_from_db()
        self.assertEqual(self.order.employer, self.driver)
        self.assertEqual(self.order.status, "confirmed")
        self.assertIsNotNone(self.order.assigned_at)
        self.assertIsNotNone(self.order.confirmed_at)

    def test_second_accept_loses(self):
        AssignmentService.accept_order(self.order.id, self.driver)

        self.client.force_authenticate(user=self.rival)
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "order_unavailable")

        self.order.refresh_from_db()
        self.assertEqual(self.order.employer, self.driver)

    def test_accept_missing_order(self):
        self.client.force_authenticate(user=self.driver)
        response = self.client.post("/api/v1/delivery/orders/999999/accept/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_order_assigned_to_someone_else_is_hidden(self):
        Order.objects.filter(pk=self.order.pk).update(employer=self.rival)

        self.assertFalse(AssignmentService.claimable_orders_for(self.driver).exists())
        with self.assertRaises(StateConflictError):
            AssignmentService.accept_order(self.order.id, self.driver)

    def test_admin_assigned_order_is_claimable_by_its_driver(self):
        Order.objects.filter(pk=self.order.pk).update(employer=self.driver)

        self.client.force_authenticate(user=self.driver)
        response = self.client.get("/api/v1/delivery/assigned/")
        self.assertEqual(response.data["count"], 1)
        response = self.client.get("/api/v1/delivery/available/")
        self.assertEqual(response.data["count"], 1)

        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_unapproved_employer_cannot_accept(self):
        pending = make_employer("+966500002003", profile_status="pending")
        self.client.force_authenticate(user=pending)
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["error"]["code"], "employer_unavailable")

    def test_offline_employer_cannot_accept(self):
        offline = make_employer("+966500002004", online=False)
        self.client.force_authenticate(user=offline)
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_customer_cannot_accept(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/accept/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    @override_settings(EMPLOYER_MAX_ACTIVE_ORDERS=1)
    def test_capacity_limit(self):
        AssignmentService.accept_order(self.order.id, self.driver)
        another = make_order(self.customer)

        with self.assertRaises(StateConflictError) as ctx:
            AssignmentService.accept_order(another.id, self.driver)
        self.assertEqual(ctx.exception.code, "capacity_reached")

    def test_accept_is_audited_and_notified(self):
        with patch("apps.notifications.services.send_push_notification.delay"):
            with self.captureOnCommitCallbacks(execute=True):
                AssignmentService.accept_order(self.order.id, self.driver)

        log = AuditLog.objects.get(action="order_accepted")
        self.assertEqual(log.reference_id, str(self.order.id))
        self.assertTrue(self.customer.notifications.filter(event="order_accepted").exists())


class DriverWorkflowTestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.customer = make_user("+966500002100", ROLE_CUSTOMER)
        self.driver = make_employer("+966500002101")
        self.client.force_authenticate(user=self.driver)
        self.order = make_order(self.customer)
        AssignmentService.accept_order(self.order.id, self.driver)

    def post_status(self, target):
        return self.client.post(
            f"/api/v1/delivery/orders/{self.order.id}/status/", {"status": target}, format="json"
        )

    def test_status_progression(self):
        self.assertEqual(self.post_status("preparing").status_code, status.HTTP_200_OK)
        response = self.post_status("on_the_way")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order"]["status"], "on_the_way")

    def test_status_skip_is_rejected(self):
        response = self.post_status("delivered")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "invalid_transition")

    def test_pending_is_not_a_driver_status(self):
        response = self.post_status("pending")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_deliver_only_from_on_the_way(self):
        url = f"/api/v1/delivery/orders/{self.order.id}/deliver/"
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        self.post_status("preparing")
        self.post_status("on_the_way")
        response = self.client.post(url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, "delivered")
        self.assertIsNotNone(self.order.delivered_at)

    def test_driver_cancel_window(self):
        self.post_status("preparing")
        self.post_status("on_the_way")
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/cancel/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "not_cancellable")

    def test_driver_cancel(self):
        response = self.client.post(f"/api/v1/delivery/orders/{self.order.id}/cancel/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order"]["status"], "cancelled")

    def test_location_update(self):
        response = self.client.post(
            f"/api/v1/delivery/orders/{self.order.id}/location/",
            {"latitude": 24.7200123, "longitude": 46.6800456},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.order.refresh_from_db()
        self.assertEqual(self.order.delivery_current_lat, Decimal("24.7200123"))
        self.assertEqual(self.order.delivery_current_lng, Decimal("46.6800456"))
        self.assertIsNotNone(self.order.delivery_updated_at)

    def test_location_out_of_bounds(self):
        response = self.client.post(
            f"/api/v1/delivery/orders/{self.order.id}/location/",
            {"latitude": 91, "longitude": 46.68},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)

    def test_location_on_someone_elses_order_is_not_found(self):
        other = make_employer("+966500002102")
        self.client.force_authenticate(user=other)
        response = self.client.post(
            f"/api/v1/delivery/orders/{self.order.id}/location/",
            {"latitude": 24.72, "longitude": 46.68},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_location_rejected_after_delivery(self):
        Order.objects.filter(pk=self.order.pk).update(status="delivered")
        response = self.client.post(
            f"/api/v1/delivery/orders/{self.order.id}/location/",
            {"latitude": 24.72, "longitude": 46.68},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "not_trackable")

    def test_customer_sees_tracking(self):
        DeliveryService.update_location(self.order.id, self.driver, 24.73, 46.69)

        self.client.force_authenticate(user=self.customer)
        response = self.client.get(f"/api/v1/orders/{self.order.id}/")
        tracking = response.data["order"]["tracking"]
        self.assertEqual(Decimal(tracking["latitude"]), Decimal("24.7300000"))

    def test_order_lists(self):
        self.assertEqual(self.client.get("/api/v1/delivery/active/").data["count"], 1)
        self.assertEqual(self.client.get("/api/v1/delivery/today/").data["count"], 1)
        self.assertEqual(self.client.get("/api/v1/delivery/history/").data["count"], 0)

        self.client.post(f"/api/v1/delivery/orders/{self.order.id}/cancel/")
        self.assertEqual(self.client.get("/api/v1/delivery/active/").data["count"], 0)
        self.assertEqual(self.client.get("/api/v1/delivery/history/").data["count"], 1)
        response = self.client.get("/api/v1/delivery/my-orders/", {"status": "cancelled"})
        self.assertEqual(response.data["count"], 1)


class DriverStatsTestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_user("+966500002200", ROLE_CUSTOMER)
        self.driver = make_employer("+966500002201")
        self.client.force_authenticate(user=self.driver)

        now = timezone.now()
        make_order(
            self.customer, employer=self.driver, status="delivered",
            assigned_at=now - timedelta(minutes=40), delivered_at=now,
        )
        make_order(
            self.customer, employer=self.driver, status="delivered",
            assigned_at=now - timedelta(minutes=20), delivered_at=now,
        )
        make_order(self.customer, employer=self.driver, status="on_the_way")
        make_order(self.customer, employer=self.driver, status="cancelled")

    def test_dashboard(self):
        response = self.client.get("/api/v1/delivery/dashboard/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["stats"], {
            "total_orders": 4,
            "active_orders": 1,
            "completed_orders": 2,
            "cancelled_orders": 1,
        })

    def test_performance(self):
        response = self.client.get("/api/v1/delivery/performance/")
        performance = response.data["performance"]
        self.assertEqual(performance["total_deliveries"], 2)
        self.assertEqual(performance["total_assigned_orders"], 4)
        self.assertEqual(performance["completion_rate"], 50.0)
        self.assertEqual(performance["average_delivery_minutes"], 30)

    def test_performance_without_deliveries(self):
        stats = DeliveryService.performance_stats(make_employer("+966500002202"))
        self.assertEqual(stats["completion_rate"], 0)
        self.assertIsNone(stats["average_delivery_minutes"])
