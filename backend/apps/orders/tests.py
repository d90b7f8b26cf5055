from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework import status

from apps.accounts.models import UserRole, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_EMPLOYER
from apps.audit.models import AuditLog
from apps.catalog.models import Store, Product
from apps.employers.models import EmployerProfile
from apps.notifications.models import Notification
from apps.orders import lifecycle
from apps.orders.models import Order, OrderItem, Rating
from apps.orders.services import OrderService, OrderItemService
from apps.utils.exceptions import (
    AuthorizationError,
    DomainValidationError,
    NotFoundError,
    StateConflictError,
)

User = get_user_model()

STORE_LAT = Decimal("24.7136000")
STORE_LNG = Decimal("46.6753000")
# Due north of the store, a few metres inside 17 km
LAT_AT_LIMIT = 24.8664846
# About 11 m beyond 17 km; still rounds to 17.00
LAT_JUST_OVER_LIMIT = 24.8664857


def make_customer(phone):
    user = User.objects.create_user(phone=phone)
    UserRole.objects.create(user=user, role=ROLE_CUSTOMER)
    return user


def make_employer(phone, profile_status="approved"):
    user = User.objects.create_user(phone=phone)
    UserRole.objects.create(user=user, role=ROLE_EMPLOYER)
    EmployerProfile.objects.create(user=user, status=profile_status, is_online=True)
    return user


def make_order(user, **fields):
    fields.setdefault("address", "Olaya St, Riyadh")
    fields.setdefault("payment_method", "cash")
    fields.setdefault("phone", "0500000000")
    items = fields.pop("items", [("Box", 1, Decimal("10.00"))])
    order = Order.objects.create(user=user, **fields)
    for name, quantity, price in items:
        OrderItem.objects.create(
            order=order, custom_name=name, type=OrderItem.TYPE_CUSTOM, quantity=quantity, price=price
        )
    OrderItemService.recalculate_totals(order)
    return order


class LifecycleTestCase(TestCase):
    def test_transition_table(self):
        expected = {
            ("pending", "confirmed"), ("pending", "cancelled"),
            ("confirmed", "preparing"), ("confirmed", "cancelled"),
            ("preparing", "on_the_way"), ("preparing", "cancelled"),
            ("on_the_way", "delivered"),
        }
        statuses = [value for value, _ in lifecycle.STATUS_CHOICES]
        for current in statuses:
            for target in statuses:
                self.assertEqual(
                    lifecycle.can_transition(current, target),
                    (current, target) in expected,
                    f"{current} -> {target}",
                )

    def test_terminal_statuses_reject_everything(self):
        for current in ("delivered", "cancelled"):
            with self.assertRaises(StateConflictError) as ctx:
                lifecycle.ensure_transition(current, "pending")
            self.assertEqual(ctx.exception.code, "order_terminal")

    def test_skipping_a_step_is_rejected(self):
        with self.assertRaises(StateConflictError) as ctx:
            lifecycle.ensure_transition("pending", "on_the_way")
        self.assertEqual(ctx.exception.code, "invalid_transition")

    def test_cancellation_window(self):
        self.assertEqual(
            lifecycle.CANCELLABLE_STATUSES, frozenset({"pending", "confirmed", "preparing"})
        )


class CreateOrderAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.customer = make_customer("+966500001000")
        self.client.force_authenticate(user=self.customer)

        self.store = Store.objects.create(name="Main", latitude=STORE_LAT, longitude=STORE_LNG)
        self.water = Product.objects.create(store=self.store, name="Water 20L", price=Decimal("5.50"))
        self.bread = Product.objects.create(store=self.store, name="Bread", price=Decimal("3.00"))

    def store_payload(self, **overrides):
        payload = {
            "store_id": self.store.id,
            "address": "Olaya St, Riyadh",
            "latitude": 24.7200,
            "longitude": 46.6800,
            "payment_method": "cash",
            "phone": "0500000000",
            "delivery_fee": "7.00",
            "items": [
                {"product_id": self.water.id, "quantity": 2, "price": "1.00"},
                {"product_id": self.bread.id, "quantity": 1},
            ],
        }
        payload.update(overrides)
        return payload

    def test_store_order_totals_are_computed_server_side(self):
        response = self.client.post(
            "/api/v1/orders/store/", self.store_payload(total="1.00"), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data["success"])
        self.assertIsInstance(response.data["distance"], float)

        order = Order.objects.get(pk=response.data["order"]["id"])
        self.assertEqual(order.status, "pending")
        self.assertEqual(order.order_type, "regular")
        self.assertEqual(order.subtotal, Decimal("14.00"))
        self.assertEqual(order.total, Decimal("21.00"))
        self.assertEqual(order.items.count(), 2)
        # Catalog price wins over the client's
        self.assertEqual(order.items.get(product=self.water).price, Decimal("5.50"))

    def test_store_order_at_exact_limit_is_accepted(self):
        response = self.client.post(
            "/api/v1/orders/store/",
            self.store_payload(latitude=LAT_AT_LIMIT, longitude=float(STORE_LNG)),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data["distance"], 17.0)

    def test_store_order_just_over_limit_is_rejected(self):
        response = self.client.post(
            "/api/v1/orders/store/",
            self.store_payload(latitude=LAT_JUST_OVER_LIMIT, longitude=float(STORE_LNG)),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertEqual(response.data["error"]["code"], "distance_exceeded")
        self.assertFalse(Order.objects.exists())

    def test_store_order_beyond_limit_is_rejected(self):
        response = self.client.post(
            "/api/v1/orders/store/",
            self.store_payload(latitude=24.9136, longitude=float(STORE_LNG)),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["error"]["code"], "distance_exceeded")
        self.assertGreater(response.data["distance"], 17)
        self.assertEqual(response.data["max_distance"], 17)
        self.assertFalse(Order.objects.exists())

    def test_inactive_store_is_not_found(self):
        self.store.is_active = False
        self.store.save()
        response = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_product_from_another_store_is_rejected(self):
        other = Store.objects.create(name="Other", latitude=STORE_LAT, longitude=STORE_LNG)
        foreign = Product.objects.create(store=other, name="Milk", price=Decimal("4.00"))
        response = self.client.post(
            "/api/v1/orders/store/",
            self.store_payload(items=[{"product_id": foreign.id, "quantity": 1}]),
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("items.0.product_id", response.data["errors"])
        self.assertFalse(Order.objects.exists())

    def test_validation_errors_use_the_envelope(self):
        response = self.client.post(
            "/api/v1/orders/store/", self.store_payload(items=[]), format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertFalse(response.data["success"])
        self.assertEqual(response.data["error"]["code"], "validation_error")
        self.assertIn("items", response.data["errors"])

    def test_custom_delivery_order(self):
        payload = {
            "pickup_address": "Pharmacy, King Fahd Rd",
            "delivery_address": "Home, Olaya",
            "payment_method": "cash",
            "phone": "0500000000",
            "delivery_fee": "12.00",
            "distance": 4.2,
            "items": [
                {"custom_name": "Medicine", "quantity": 1, "price": "30.00"},
                {"description": "Documents", "quantity": 2},
            ],
        }
        response = self.client.post("/api/v1/orders/custom/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        order = Order.objects.get(pk=response.data["order"]["id"])
        self.assertEqual(order.order_type, "custom_delivery")
        self.assertIsNone(order.store)
        self.assertEqual(order.pickup_address, "Pharmacy, King Fahd Rd")
        self.assertEqual(order.total, Decimal("42.00"))
        self.assertEqual(
            sorted(order.items.values_list("custom_name", flat=True)), ["Documents", "Medicine"]
        )
        self.assertNotIn("distance", response.data)

    def test_water_tank_order(self):
        payload = {
            "delivery_address": "Villa 3, Al Malqa",
            "delivery_latitude": 24.80,
            "delivery_longitude": 46.60,
            "water_station_address": "Station 9",
            "payment_method": "cash_on_delivery",
            "phone": "0500000000",
            "items": [{"custom_name": "Tank 12000L", "quantity": 1, "price": "250.00"}],
        }
        response = self.client.post("/api/v1/orders/water-tank/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

        order = Order.objects.get(pk=response.data["order"]["id"])
        self.assertEqual(order.order_type, "water_tank")
        self.assertEqual(order.items.get().type, OrderItem.TYPE_WATER_TANK)
        self.assertEqual(order.total, Decimal("250.00"))

    def test_water_tank_payment_method_is_restricted(self):
        payload = {
            "delivery_address": "Villa 3",
            "delivery_latitude": 24.80,
            "delivery_longitude": 46.60,
            "water_station_address": "Station 9",
            "payment_method": "crypto",
            "phone": "0500000000",
            "items": [{"custom_name": "Tank", "quantity": 1, "price": "250.00"}],
        }
        response = self.client.post("/api/v1/orders/water-tank/", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("payment_method", response.data["errors"])

    def test_failed_item_write_leaves_no_order(self):
        with patch.object(OrderItem.objects, "bulk_create", side_effect=DatabaseError("disk full")):
            response = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json")

        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data["error"]["code"], "persistence_error")
        self.assertFalse(Order.objects.exists())
        self.assertFalse(OrderItem.objects.exists())

    def test_idempotency_key_replays_first_response(self):
        headers = {"HTTP_IDEMPOTENCY_KEY": "checkout-1"}
        first = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json", **headers)
        second = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json", **headers)

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["order"]["id"], second.data["order"]["id"])
        self.assertEqual(Order.objects.count(), 1)

    def test_creation_side_effects_run_after_commit(self):
        with patch("apps.notifications.services.send_push_notification.delay") as mock_delay:
            with self.captureOnCommitCallbacks(execute=True):
                response = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json")

        order_id = response.data["order"]["id"]
        self.assertTrue(AuditLog.objects.filter(action="order_created", reference_id=str(order_id)).exists())
        notification = Notification.objects.get(order_id=order_id)
        self.assertEqual(notification.user, self.customer)
        mock_delay.assert_called_once_with(notification.id)

    def test_unauthenticated(self):
        self.client.force_authenticate(user=None)
        response = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_employer_cannot_place_customer_orders(self):
        self.client.force_authenticate(user=make_employer("+966500001001"))
        response = self.client.post("/api/v1/orders/store/", self.store_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(response.data["success"])
        self.assertFalse(Order.objects.exists())

        response = self.client.get("/api/v1/orders/my/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class OrderTransitionTestCase(TestCase):
    def setUp(self):
        self.customer = make_customer("+966500001100")
        self.employer = make_employer("+966500001101")
        self.admin = User.objects.create_superuser(phone="+966500001102", password="admin")

    def test_confirm_requires_employer(self):
        order = make_order(self.customer)
        with self.assertRaises(StateConflictError) as ctx:
            OrderService.transition(order.id, "confirmed", self.admin, ROLE_ADMIN)
        self.assertEqual(ctx.exception.code, "employer_required")

    def test_full_lifecycle_stamps_milestones(self):
        order = make_order(self.customer, employer=self.employer)
        for target in ("confirmed", "preparing", "on_the_way", "delivered"):
            order = OrderService.transition(order.id, target, self.admin, ROLE_ADMIN)

        self.assertEqual(order.status, "delivered")
        self.assertIsNotNone(order.assigned_at)
        self.assertLessEqual(order.confirmed_at, order.preparing_at)
        self.assertLessEqual(order.preparing_at, order.on_the_way_at)
        self.assertLessEqual(order.on_the_way_at, order.delivered_at)
        self.assertIsNone(order.canceled_at)

    def test_milestones_are_written_once(self):
        earlier = timezone.now() - timedelta(hours=2)
        order = make_order(
            self.customer, employer=self.employer, assigned_at=earlier, confirmed_at=earlier
        )
        order = OrderService.transition(order.id, "confirmed", self.admin, ROLE_ADMIN)
        self.assertEqual(order.confirmed_at, earlier)
        self.assertEqual(order.assigned_at, earlier)

    def test_unknown_status(self):
        order = make_order(self.customer)
        with self.assertRaises(DomainValidationError):
            OrderService.transition(order.id, "lost", self.admin, ROLE_ADMIN)

    def test_terminal_order_cannot_move(self):
        order = make_order(self.customer, employer=self.employer, status="delivered")
        with self.assertRaises(StateConflictError):
            OrderService.transition(order.id, "cancelled", self.admin, ROLE_ADMIN)

    def test_customer_can_only_cancel(self):
        order = make_order(self.customer, employer=self.employer, status="confirmed")
        with self.assertRaises(AuthorizationError):
            OrderService.transition(order.id, "preparing", self.customer, ROLE_CUSTOMER)

    def test_employer_needs_the_order_assigned(self):
        other = make_employer("+966500001103")
        order = make_order(self.customer, employer=self.employer, status="confirmed")
        with self.assertRaises(NotFoundError):
            OrderService.transition(order.id, "preparing", other, ROLE_EMPLOYER)

    def test_status_change_is_audited_after_commit(self):
        order = make_order(self.customer, employer=self.employer, status="confirmed")
        with patch("apps.notifications.services.send_push_notification.delay"):
            with self.captureOnCommitCallbacks(execute=True):
                OrderService.transition(order.id, "preparing", self.employer, ROLE_EMPLOYER)

        log = AuditLog.objects.get(action="order_status_changed", reference_id=str(order.id))
        self.assertEqual(log.metadata, {"from": "confirmed", "to": "preparing", "role": ROLE_EMPLOYER})


class CustomerOrderAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.customer = make_customer("+966500001200")
        self.employer = make_employer("+966500001201")
        self.client.force_authenticate(user=self.customer)
        self.store = Store.objects.create(name="Main", latitude=STORE_LAT, longitude=STORE_LNG)

    def test_cancel_within_window(self):
        for current in ("pending", "confirmed", "preparing"):
            order = make_order(self.customer, employer=self.employer, status=current)
            response = self.client.post(f"/api/v1/orders/{order.id}/cancel/", format="json")
            self.assertEqual(response.status_code, status.HTTP_200_OK, current)
            order.refresh_from_db()
            self.assertEqual(order.status, "cancelled")
            self.assertIsNotNone(order.canceled_at)

    def test_cancel_outside_window(self):
        order = make_order(self.customer, employer=self.employer, status="on_the_way")
        response = self.client.post(f"/api/v1/orders/{order.id}/cancel/", format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "not_cancellable")

        delivered = make_order(self.customer, employer=self.employer, status="delivered")
        response = self.client.post(f"/api/v1/orders/{delivered.id}/cancel/", format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_cannot_touch_someone_elses_order(self):
        stranger = make_customer("+966500001202")
        order = make_order(stranger)
        self.assertEqual(
            self.client.get(f"/api/v1/orders/{order.id}/").status_code, status.HTTP_404_NOT_FOUND
        )
        self.assertEqual(
            self.client.post(f"/api/v1/orders/{order.id}/cancel/").status_code, status.HTTP_404_NOT_FOUND
        )

    def test_my_orders_filters(self):
        make_order(self.customer, order_type="water_tank")
        make_order(self.customer, order_type="custom_delivery", status="cancelled")
        make_order(make_customer("+966500001203"))

        response = self.client.get("/api/v1/orders/my/")
        self.assertEqual(response.data["count"], 2)

        response = self.client.get("/api/v1/orders/my/", {"order_type": "water_tank"})
        self.assertEqual(response.data["count"], 1)
        self.assertEqual(response.data["results"][0]["items_count"], 1)

    def test_stats(self):
        make_order(self.customer, status="delivered", items=[("A", 2, Decimal("10.00"))])
        make_order(self.customer, status="cancelled", items=[("B", 1, Decimal("99.00"))])
        make_order(self.customer)

        response = self.client.get("/api/v1/orders/stats/")
        stats = response.data["stats"]
        self.assertEqual(stats["total_orders"], 3)
        self.assertEqual(stats["pending_orders"], 1)
        self.assertEqual(stats["delivered_orders"], 1)
        self.assertEqual(stats["total_spent"], Decimal("20.00"))

    def test_rating_requires_delivery(self):
        order = make_order(self.customer, store=self.store, status="on_the_way")
        response = self.client.post(f"/api/v1/orders/{order.id}/rate/", {"rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "order_not_delivered")

    def test_rate_delivered_order_once(self):
        order = make_order(self.customer, store=self.store, status="delivered")
        url = f"/api/v1/orders/{order.id}/rate/"

        response = self.client.post(url, {"rating": 4, "review": "Fast"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        rating = Rating.objects.get(order=order)
        self.assertEqual(rating.store, self.store)
        self.assertEqual(rating.customer, self.customer)

        response = self.client.post(url, {"rating": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "already_rated")

        detail = self.client.get(f"/api/v1/orders/{order.id}/")
        self.assertTrue(detail.data["order"]["is_rated"])
        self.assertEqual(detail.data["order"]["rating"]["rating"], 4)

    def test_rating_out_of_range(self):
        order = make_order(self.customer, store=self.store, status="delivered")
        response = self.client.post(f"/api/v1/orders/{order.id}/rate/", {"rating": 6}, format="json")
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("rating", response.data["errors"])

    def test_rating_needs_a_store(self):
        order = make_order(self.customer, order_type="custom_delivery", status="delivered")
        response = self.client.post(f"/api/v1/orders/{order.id}/rate/", {"rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["error"]["code"], "missing_store")

    def test_rating_someone_elses_order(self):
        order = make_order(make_customer("+966500001204"), store=self.store, status="delivered")
        response = self.client.post(f"/api/v1/orders/{order.id}/rate/", {"rating": 5}, format="json")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class AdminOrderAPITestCase(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(phone="+966500001300")
        UserRole.objects.create(user=self.admin, role=ROLE_ADMIN)
        self.client.force_authenticate(user=self.admin)

        self.customer = make_customer("+966500001301")
        self.employer = make_employer("+966500001302")

    def test_non_admin_is_forbidden(self):
        self.client.force_authenticate(user=self.customer)
        response = self.client.get("/api/v1/orders/admin/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_list_filters(self):
        make_order(self.customer)
        make_order(self.customer, employer=self.employer, status="confirmed")

        response = self.client.get("/api/v1/orders/admin/", {"status": "confirmed"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)

        response = self.client.get("/api/v1/orders/admin/", {"employer": self.employer.id})
        self.assertEqual(response.data["count"], 1)

    def test_assign_keeps_order_pending(self):
        order = make_order(self.customer)
        response = self.client.post(
            f"/api/v1/orders/admin/{order.id}/assign/", {"employer_id": self.employer.id}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        order.refresh_from_db()
        self.assertEqual(order.employer, self.employer)
        self.assertEqual(order.status, "pending")
        self.assertIsNone(order.assigned_at)

    def test_assign_to_non_employer(self):
        order = make_order(self.customer)
        response = self.client.post(
            f"/api/v1/orders/admin/{order.id}/assign/", {"employer_id": self.customer.id}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_422_UNPROCESSABLE_ENTITY)
        self.assertIn("employer_id", response.data["errors"])

    def test_assign_only_pending(self):
        order = make_order(self.customer, employer=self.employer, status="confirmed")
        response = self.client.post(
            f"/api/v1/orders/admin/{order.id}/assign/", {"employer_id": self.employer.id}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "not_assignable")

    def test_status_update(self):
        order = make_order(self.customer, employer=self.employer, status="confirmed")
        response = self.client.post(
            f"/api/v1/orders/admin/{order.id}/status/", {"status": "preparing"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["order"]["status"], "preparing")

        response = self.client.post(
            f"/api/v1/orders/admin/{order.id}/status/", {"status": "pending"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

    def test_delete_is_audited(self):
        order = make_order(self.customer)
        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.delete(f"/api/v1/orders/admin/{order.id}/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Order.objects.filter(pk=order.id).exists())
        self.assertTrue(AuditLog.objects.filter(action="order_deleted", reference_id=str(order.id)).exists())

        response = self.client.delete(f"/api/v1/orders/admin/{order.id}/")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_item_update_recalculates_totals(self):
        order = make_order(
            self.customer, delivery_fee=Decimal("5.00"),
            items=[("A", 1, Decimal("10.00")), ("B", 2, Decimal("3.00"))],
        )
        item = order.items.get(custom_name="A")

        response = self.client.patch(
            f"/api/v1/orders/admin/items/{item.id}/", {"quantity": 3}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.subtotal, Decimal("36.00"))
        self.assertEqual(order.total, Decimal("41.00"))

    def test_item_delete_keeps_last_item(self):
        order = make_order(self.customer, items=[("A", 1, Decimal("10.00")), ("B", 1, Decimal("4.00"))])
        first, second = order.items.all()

        response = self.client.delete(f"/api/v1/orders/admin/items/{first.id}/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        order.refresh_from_db()
        self.assertEqual(order.total, Decimal("4.00"))

        response = self.client.delete(f"/api/v1/orders/admin/items/{second.id}/")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "last_item")

    def test_items_of_terminal_orders_are_frozen(self):
        order = make_order(self.customer, status="delivered")
        item = order.items.get()
        response = self.client.patch(
            f"/api/v1/orders/admin/items/{item.id}/", {"price": "1.00"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["error"]["code"], "order_terminal")

    def test_item_list(self):
        order = make_order(self.customer, items=[("A", 1, Decimal("10.00")), ("B", 1, Decimal("4.00"))])
        response = self.client.get(f"/api/v1/orders/admin/{order.id}/items/")
        self.assertEqual(len(response.data["items"]), 2)
