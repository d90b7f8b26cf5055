import logging

from django.http import Http404
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status, exceptions as drf_exceptions

logger = logging.getLogger(__name__)


class BusinessLogicException(Exception):
    """
    Base class for domain-specific errors (e.g., illegal transition, lost claim).
    These are expected operational errors, not 500s.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = "invalid_request"

    def __init__(self, message, code=None, **extra):
        self.message = message
        self.code = code or self.default_code
        self.extra = extra
        super().__init__(message)


class DomainValidationError(BusinessLogicException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "validation_error"

    def __init__(self, message, code=None, errors=None):
        super().__init__(message, code=code, errors=errors or {})


class NotFoundError(BusinessLogicException):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = "not_found"


class AuthorizationError(BusinessLogicException):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = "forbidden"


class StateConflictError(BusinessLogicException):
    status_code = status.HTTP_409_CONFLICT
    default_code = "state_conflict"


class DistanceExceededError(BusinessLogicException):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_code = "distance_exceeded"

    def __init__(self, distance, max_distance):
        self.distance = distance
        self.max_distance = max_distance
        super().__init__(
            f"Delivery is only available within {max_distance:g} km. Your distance is {distance} km.",
            distance=distance,
            max_distance=max_distance,
        )


class PersistenceError(BusinessLogicException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_code = "persistence_error"


def _envelope(message, code, error_type, **extra):
    body = {
        "success": False,
        "message": message,
        "error": {
            "code": code,
            "message": message,
            "type": error_type,
        },
    }
    body.update(extra)
    return body


def custom_exception_handler(exc, context):
    """
    Custom DRF Exception Handler.
    Every failure leaves the API as {"success": false, "message", "error": {...}}.
    Serializer validation failures are reported as 422 with a per-field "errors" map.
    """
    if isinstance(exc, BusinessLogicException):
        if exc.status_code >= 500:
            logger.error(f"{exc.__class__.__name__}: {exc.message}")
        return Response(
            _envelope(exc.message, exc.code, exc.__class__.__name__, **exc.extra),
            status=exc.status_code,
        )

    response = exception_handler(exc, context)
    if response is None:
        return response

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = _envelope(
            "The given data was invalid.",
            "validation_error",
            "ValidationError",
            errors=response.data,
        )
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
        return response

    if isinstance(exc, Http404):
        response.data = _envelope("Not found.", "not_found", "NotFound")
        return response

    detail = response.data.get("detail") if isinstance(response.data, dict) else None
    code = getattr(detail, "code", None) or "error"
    response.data = _envelope(str(detail or response.data), code, exc.__class__.__name__)
    return response
