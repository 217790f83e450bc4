from collections.abc import Mapping
from typing import Any, Dict, Optional

from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.serializers import as_serializer_error

DEFAULT_ERROR_STATUS = status.HTTP_400_BAD_REQUEST

ERROR_STATUS_MAP = {
    # Transport level
    "VALIDATION_ERROR": status.HTTP_400_BAD_REQUEST,
    "UNAUTHORIZED": status.HTTP_401_UNAUTHORIZED,
    "FORBIDDEN": status.HTTP_403_FORBIDDEN,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "METHOD_NOT_ALLOWED": status.HTTP_405_METHOD_NOT_ALLOWED,
    "CONFLICT": status.HTTP_409_CONFLICT,
    "UNSUPPORTED_MEDIA_TYPE": status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    "TOO_MANY_REQUESTS": status.HTTP_429_TOO_MANY_REQUESTS,
    "SERVER_ERROR": status.HTTP_500_INTERNAL_SERVER_ERROR,
    "SERVICE_UNAVAILABLE": status.HTTP_503_SERVICE_UNAVAILABLE,
    # Cart domain
    "INVALID_QUANTITY": status.HTTP_400_BAD_REQUEST,
    "UNRESOLVABLE_PRODUCT": status.HTTP_404_NOT_FOUND,
    "ITEM_NOT_IN_CART": status.HTTP_404_NOT_FOUND,
    "BINDING_CONFLICT": status.HTTP_409_CONFLICT,
    "CART_BUSY": status.HTTP_503_SERVICE_UNAVAILABLE,
    "SESSION_REQUIRED": status.HTTP_400_BAD_REQUEST,
}


def status_for_code(code: str) -> int:
    return ERROR_STATUS_MAP.get(code.strip().upper(), DEFAULT_ERROR_STATUS)


def _plain_details(details: Any) -> Any:
    if isinstance(details, ValidationError):
        return as_serializer_error(details)
    if isinstance(details, Mapping):
        return dict(details)
    return details


def error_response(
    code: str,
    message: str,
    details: Optional[Any] = None,
    http_status: Optional[int] = None,
    *,
    hint: Optional[str] = None,
    headers: Optional[Mapping[str, Any]] = None,
) -> Response:
    """
    Build the ``{"error": {code, message, status, details?, hint?}}`` envelope.

    The status comes from ``ERROR_STATUS_MAP`` unless ``http_status`` is given.
    """
    if not isinstance(code, str) or not isinstance(message, str):
        raise TypeError("error_response requires string code and message")
    code, message = code.strip().upper(), message.strip()
    if not code or not message:
        raise ValueError("error_response requires a non-empty code and message")

    status_code = int(http_status) if http_status is not None else status_for_code(code)
    if not 100 <= status_code <= 599:
        raise ValueError(f"Invalid HTTP status {status_code}")

    body: Dict[str, Any] = {"code": code, "message": message, "status": status_code}
    if details is not None:
        body["details"] = _plain_details(details)
    if hint:
        body["hint"] = hint
    return Response(
        {"error": body},
        status=status_code,
        headers={str(k): str(v) for k, v in headers.items()} if headers else None,
    )
