# apps/utils/idempotency.py
import functools
import json
import zlib
from django.conf import settings
from django.core.cache import cache
from django.core.serializers.json import DjangoJSONEncoder
from rest_framework.response import Response
from rest_framework import status


def idempotent(timeout=None):
    """
    Makes POST handlers safe to retry.
    When the client sends an Idempotency-Key header, the first 2xx response is stored
    (compressed) and replayed for the same user and key. Requests without the header
    run normally.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(view_instance, request, *args, **kwargs):
            key = request.headers.get("Idempotency-Key")
            if not key:
                return func(view_instance, request, *args, **kwargs)

            if len(key) > 128:
                return Response(
                    {"success": False, "message": "Idempotency-Key too long (max 128 chars)."},
                    status=status.HTTP_400_BAD_REQUEST
                )

            # Scope key by user and endpoint
            user_id = request.user.id if request.user.is_authenticated else "anon"
            cache_key = f"idempotency:{user_id}:{request.path}:{key}"
            lock_key = f"lock:{cache_key}"

            cached_response = cache.get(cache_key)
            if cached_response:
                try:
                    data_json = zlib.decompress(cached_response["data_compressed"]).decode("utf-8")
                    return Response(json.loads(data_json), status=cached_response["status"])
                except (ValueError, zlib.error):
                    cache.delete(cache_key)

            if not cache.add(lock_key, "processing", timeout=30):
                return Response(
                    {"success": False, "message": "Duplicate request in progress."},
                    status=status.HTTP_409_CONFLICT
                )

            try:
                response = func(view_instance, request, *args, **kwargs)

                if 200 <= response.status_code < 300:
                    response_json = json.dumps(response.data, cls=DjangoJSONEncoder)
                    cache.set(cache_key, {
                        "status": response.status_code,
                        "data_compressed": zlib.compress(response_json.encode("utf-8")),
                    }, timeout=timeout or getattr(settings, "ORDER_IDEMPOTENCY_TIMEOUT", 86400))

                return response
            finally:
                cache.delete(lock_key)
        return wrapper
    return decorator
