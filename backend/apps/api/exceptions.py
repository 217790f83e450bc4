from typing import Any, Dict, Optional, Tuple

from django.core.exceptions import (
    PermissionDenied as DjangoPermissionDenied,
    ValidationError as DjangoValidationError,
)
from django.http import Http404
from rest_framework import exceptions as drf
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from apps.api.utils import error_response, status_for_code
from apps.carts.exceptions import CartError
from apps.common import get_logger

logger = get_logger(__name__).bind(component="api", layer="exception")

GENERIC_SERVER_MESSAGE = "Something went wrong"

# (exception types, code, fallback message, keep payload as details)
DRF_ERROR_CODES: Tuple[Tuple[tuple, str, str, bool], ...] = (
    ((drf.ValidationError, drf.ParseError), "VALIDATION_ERROR", "Validation failed", True),
    ((drf.NotAuthenticated, drf.AuthenticationFailed), "UNAUTHORIZED", "Authentication required", False),
    ((drf.PermissionDenied,), "FORBIDDEN", "You do not have permission to perform this action", False),
    ((drf.NotFound,), "NOT_FOUND", "Resource not found", False),
    ((drf.MethodNotAllowed,), "METHOD_NOT_ALLOWED", "Method not allowed", False),
    ((drf.UnsupportedMediaType,), "UNSUPPORTED_MEDIA_TYPE", "Unsupported media type", False),
    ((drf.Throttled,), "TOO_MANY_REQUESTS", "Too many requests", False),
)


class ApplicationError(Exception):
    """
    Error raised from views and rendered by ``global_exception_handler``.

    ``status_code`` defaults to the code's entry in ``ERROR_STATUS_MAP``.
    """

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: Optional[int] = None,
        details: Optional[Any] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code if status_code is not None else status_for_code(code)
        self.details = details
        self.hint = hint

    @classmethod
    def from_domain(cls, exc: CartError) -> "ApplicationError":
        return cls(exc.code, exc.message, details=exc.details or None)

    def to_response(self) -> Response:
        return error_response(
            self.code,
            self.message,
            self.details,
            http_status=self.status_code,
            hint=self.hint,
        )


def global_exception_handler(exc: Exception, context: Dict[str, Any]) -> Response:
    """DRF ``EXCEPTION_HANDLER`` rendering every failure in the error envelope."""
    log = _bind_logger(context)

    if isinstance(exc, CartError):
        exc = ApplicationError.from_domain(exc)
    if isinstance(exc, ApplicationError):
        log.info("Handled application error", code=exc.code, status=exc.status_code)
        return exc.to_response()

    exc = _as_api_exception(exc)
    response = drf_exception_handler(exc, context)
    if response is None:
        log.exception("Unhandled exception bubbled to global handler")
        return error_response(
            "SERVER_ERROR",
            GENERIC_SERVER_MESSAGE,
            http_status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    code, message, details = _classify(exc, response)
    if response.status_code >= 500:
        log.error("Converted server error", code=code, status=response.status_code)
    else:
        log.info("Converted API exception", code=code, status=response.status_code)
    return error_response(
        code,
        message,
        details,
        http_status=response.status_code,
        headers=dict(response.headers) if getattr(response, "headers", None) else None,
    )


def _bind_logger(context: Dict[str, Any]):
    log = logger
    view = context.get("view")
    request = context.get("request")
    if view is not None:
        log = log.bind(view=type(view).__name__)
    if request is not None:
        log = log.bind(method=getattr(request, "method", None), path=getattr(request, "path", None))
    return log


def _as_api_exception(exc: Exception) -> Exception:
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            return drf.ValidationError(exc.message_dict)
        return drf.ValidationError(list(exc.messages))
    if isinstance(exc, Http404):
        return drf.NotFound()
    if isinstance(exc, DjangoPermissionDenied):
        return drf.PermissionDenied()
    return exc


def _classify(exc: Exception, response: Response) -> Tuple[str, str, Optional[Any]]:
    payload = response.data
    if response.status_code >= 500:
        return "SERVER_ERROR", GENERIC_SERVER_MESSAGE, None
    for types, code, fallback, keep_details in DRF_ERROR_CODES:
        if isinstance(exc, types):
            return code, _message(payload, fallback), payload if keep_details else None
    details = payload if isinstance(payload, (dict, list)) and payload else None
    return "REQUEST_FAILED", _message(payload, "Request failed"), details


def _message(payload: Any, fallback: str) -> str:
    detail = payload.get("detail") if isinstance(payload, dict) else payload
    if isinstance(detail, list) and detail:
        detail = detail[0]
    return str(detail) if isinstance(detail, str) and detail.strip() else fallback


__all__ = ["ApplicationError", "global_exception_handler"]
