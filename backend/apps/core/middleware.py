import uuid
import logging
from contextvars import ContextVar
from django.http import JsonResponse
from django.core.cache import cache

logger = logging.getLogger(__name__)

# ContextVar for Request ID (Async Safe)
_correlation_id = ContextVar("correlation_id", default=None)

KILL_SWITCH_KEY = "config:kill_switch:active"


def get_correlation_id():
    return _correlation_id.get()


class CorrelationIDMiddleware:
    """
    Attaches a unique Request ID (Trace ID) to every request.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        token = _correlation_id.set(request_id)
        request.correlation_id = request_id

        try:
            response = self.get_response(request)
            response['X-Request-ID'] = request_id
            return response
        finally:
            _correlation_id.reset(token)


class GlobalKillSwitchMiddleware:
    """
    Emergency stop for order writes during maintenance or incidents. Reads stay up.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if request.method in ["POST", "PUT", "PATCH", "DELETE"]:
            try:
                active = cache.get(KILL_SWITCH_KEY)
            except Exception as e:
                # Fail closed: without the cache we cannot tell whether writes are allowed
                logger.error(f"Kill switch lookup failed: {e}")
                active = True

            if active:
                return JsonResponse({
                    "success": False,
                    "message": "System under maintenance.",
                    "error": {
                        "code": "maintenance_mode",
                        "message": "System under maintenance.",
                        "type": "ServiceUnavailable",
                    },
                }, status=503)
        return self.get_response(request)
