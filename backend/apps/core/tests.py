# apps/core/tests.py
from unittest.mock import patch

from django.test import TestCase, RequestFactory
from django.core.cache import cache
from django.db import DatabaseError
from django.http import JsonResponse

from apps.core.middleware import (
    CorrelationIDMiddleware,
    GlobalKillSwitchMiddleware,
    KILL_SWITCH_KEY,
    get_correlation_id,
)


class MiddlewareTestCase(TestCase):
    def setUp(self):
        self.factory = RequestFactory()
        self.get_response = lambda req: JsonResponse({"status": "ok"})
        cache.clear()

    def test_correlation_id_generation(self):
        middleware = CorrelationIDMiddleware(self.get_response)
        request = self.factory.get("/")
        response = middleware(request)

        self.assertTrue(response.has_header("X-Request-ID"))
        self.assertIsNotNone(request.correlation_id)

    def test_correlation_id_propagated_and_reset(self):
        seen = {}

        def get_response(req):
            seen["id"] = get_correlation_id()
            return JsonResponse({})

        middleware = CorrelationIDMiddleware(get_response)
        response = middleware(self.factory.get("/", HTTP_X_REQUEST_ID="abc-123"))

        self.assertEqual(seen["id"], "abc-123")
        self.assertEqual(response["X-Request-ID"], "abc-123")
        self.assertIsNone(get_correlation_id())

    def test_kill_switch_active(self):
        cache.set(KILL_SWITCH_KEY, True)
        middleware = GlobalKillSwitchMiddleware(self.get_response)

        response = middleware(self.factory.post("/"))
        self.assertEqual(response.status_code, 503)

        response_get = middleware(self.factory.get("/"))
        self.assertEqual(response_get.status_code, 200)

    def test_kill_switch_inactive(self):
        middleware = GlobalKillSwitchMiddleware(self.get_response)
        response = middleware(self.factory.post("/"))
        self.assertEqual(response.status_code, 200)

    def test_kill_switch_fails_closed(self):
        middleware = GlobalKillSwitchMiddleware(self.get_response)
        with patch("apps.core.middleware.cache.get", side_effect=ConnectionError("down")):
            response = middleware(self.factory.post("/"))
        self.assertEqual(response.status_code, 503)


class HealthCheckTestCase(TestCase):
    def test_health_check_ok(self):
        response = self.client.get("/health/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["services"], {"db": "ok", "cache": "ok"})

    def test_health_check_db_down(self):
        with patch("apps.core.views.connection") as connection:
            connection.cursor.side_effect = DatabaseError("down")
            response = self.client.get("/health/")
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json()["services"]["db"], "unreachable")
