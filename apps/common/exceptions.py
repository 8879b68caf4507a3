import logging

from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler
from rest_framework_simplejwt.exceptions import InvalidToken

logger = logging.getLogger(__name__)


class ServiceError(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request failed"
    error_code = "VAL_004"

    def __init__(self, message=None, details=None, code=None, status_code=None):
        super().__init__(detail=message or self.default_detail)
        if code:
            self.error_code = code
        if status_code:
            self.status_code = status_code
        self.details = details or []


class InvalidStateError(ServiceError):
    default_detail = "Invalid state transition"
    error_code = "VAL_006"


class InvalidCredentialsError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid username or password"
    error_code = "AUTH_001"


class InactiveAccountError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Account is inactive"
    error_code = "AUTH_005"


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You do not have permission to perform this action"
    error_code = "AUTH_004"


class ResourceNotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"
    error_code = "RES_001"


def error_envelope(code, message, details=None):
    return {"success": False, "error": {"code": code, "message": message, "details": details or []}}


def flatten_errors(data, prefix=""):
    details = []
    if isinstance(data, dict):
        for field, value in data.items():
            name = f"{prefix}.{field}" if prefix else str(field)
            details.extend(flatten_errors(value, name))
    elif isinstance(data, list):
        if all(not isinstance(item, (dict, list)) for item in data):
            details.extend({"field": prefix or "non_field_errors", "message": str(item)} for item in data)
        else:
            for index, item in enumerate(data):
                details.extend(flatten_errors(item, f"{prefix}[{index}]"))
    else:
        details.append({"field": prefix or "non_field_errors", "message": str(data)})
    return details


def _describe(exc, response):
    if isinstance(exc, ServiceError):
        return exc.error_code, str(exc.detail), exc.details
    if isinstance(exc, exceptions.ValidationError):
        return "VAL_004", "Invalid request data", flatten_errors(response.data)
    if isinstance(exc, InvalidToken):
        return "AUTH_002", "Session expired. Please login again.", []
    if isinstance(exc, exceptions.NotAuthenticated):
        return "AUTH_003", "User not authenticated", []
    if isinstance(exc, exceptions.AuthenticationFailed):
        return "AUTH_001", str(exc.detail), []
    if isinstance(exc, exceptions.PermissionDenied):
        return "AUTH_004", str(exc.detail), []
    if isinstance(exc, (exceptions.NotFound, Http404)):
        return "RES_001", "Resource not found", []
    if isinstance(exc, exceptions.ParseError):
        return "VAL_004", str(exc.detail), []

    detail = response.data.get("detail", "Request failed") if isinstance(response.data, dict) else "Request failed"
    return "SYS_002", str(detail), []


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)
    if response is None:
        view = context.get("view")
        logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "api", exc_info=exc)
        return Response(
            error_envelope("SYS_001", "Internal server error"),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code, message, details = _describe(exc, response)
    response.data = error_envelope(code, message, details)
    return response
