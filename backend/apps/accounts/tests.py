# apps/accounts/tests.py
from django.test import TestCase
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework import status
from rest_framework_simplejwt.tokens import AccessToken

from apps.accounts.models import UserRole, ROLE_ADMIN, ROLE_CUSTOMER, ROLE_EMPLOYER

User = get_user_model()


class UserModelTestCase(TestCase):
    def test_create_user_manager(self):
        user = User.objects.create_user(phone="+966 500-000-001", password="password123")
        self.assertEqual(user.phone, "+966500000001")
        self.assertTrue(user.check_password("password123"))
        self.assertFalse(user.is_staff)

    def test_create_superuser(self):
        admin = User.objects.create_superuser(phone="+966500000002", password="adminpass")
        self.assertTrue(admin.is_staff)
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.is_platform_admin)

    def test_phone_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(phone=None, password="pass")

    def test_roles(self):
        user = User.objects.create_user(phone="+966500000003")
        UserRole.objects.create(user=user, role=ROLE_EMPLOYER)
        self.assertTrue(user.has_role(ROLE_EMPLOYER))
        self.assertFalse(user.has_role(ROLE_CUSTOMER))
        self.assertFalse(user.is_platform_admin)

        UserRole.objects.create(user=user, role=ROLE_ADMIN)
        self.assertTrue(user.is_platform_admin)


class AuthAPITestCase(TestCase):
    def setUp(self):
        cache.clear()
        self.client = APIClient()
        self.user = User.objects.create_user(phone="+966500000010", password="testpass")
        UserRole.objects.create(user=self.user, role=ROLE_CUSTOMER)

    def test_me_endpoint_authenticated(self):
        self.client.force_authenticate(user=self.user)
        response = self.client.get("/api/v1/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["phone"], self.user.phone)
        self.assertEqual(response.data["roles"], [ROLE_CUSTOMER])

    def test_me_endpoint_unauthenticated(self):
        response = self.client.get("/api/v1/auth/me/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertFalse(response.data["success"])

    def test_jwt_logout_blocks_token(self):
        token = AccessToken.for_user(self.user)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")

        self.assertEqual(self.client.get("/api/v1/auth/me/").status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.post("/api/v1/auth/logout/").status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get("/api/v1/auth/me/").status_code, status.HTTP_401_UNAUTHORIZED)
