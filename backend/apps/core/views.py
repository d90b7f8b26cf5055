import logging
from django.http import JsonResponse
from django.db import connection, DatabaseError
from django.core.cache import cache

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Liveness Probe.
    Returns 200 if DB/cache are up, 503 if either is unreachable.
    """
    status_data = {
        "status": "ok",
        "services": {"db": "ok", "cache": "ok"}
    }

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        logger.critical(f"Health Check DB Fail: {e}")
        status_data["status"] = "error"
        status_data["services"]["db"] = "unreachable"
        return JsonResponse(status_data, status=503)

    try:
        cache.set("health_ping", "pong", timeout=5)
        healthy = cache.get("health_ping") == "pong"
    except Exception as e:
        logger.critical(f"Health Check Cache Fail: {e}")
        healthy = False

    if not healthy:
        status_data["status"] = "error"
        status_data["services"]["cache"] = "unreachable"
        return JsonResponse(status_data, status=503)

    return JsonResponse(status_data, status=200)
