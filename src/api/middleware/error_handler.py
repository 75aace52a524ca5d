"""Error types raised by services and the middleware that renders them."""

import logging
from typing import Any, Callable

from fastapi import HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from src.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base class for errors that map to a specific HTTP response.

    Subclasses only set ``status_code``, ``error_type`` and
    ``default_message``; services raise them with a message describing the
    offending input.
    """

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type: str = "api_error"
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: list[dict[str, Any]] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(APIError):
    """Malformed identifier, unknown enum value, mismatched total or past schedule."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "validation_error"
    default_message = "Validation error"


class NotFoundError(APIError):
    """Referenced customer, shop, food item, offer or order does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"
    default_message = "Resource not found"


class BusinessRuleError(APIError):
    """Well-formed request that the marketplace rules do not allow."""

    status_code = status.HTTP_409_CONFLICT
    error_type = "business_rule_error"
    default_message = "Business rule violated"


class PaymentError(APIError):
    """The payment processor reports that a payment did not succeed.

    The processor's status is kept on the exception and echoed in
    ``details`` so clients can decide whether to retry with another method.
    """

    status_code = status.HTTP_402_PAYMENT_REQUIRED
    error_type = "payment_error"
    default_message = "Payment not successful"

    def __init__(
        self,
        message: str | None = None,
        processor_status: str | None = None,
        details: list[dict[str, Any]] | None = None,
    ) -> None:
        if details is None and processor_status is not None:
            details = [{"loc": ["payment_intent", "status"], "msg": processor_status, "type": "processor_status"}]
        super().__init__(message, details)
        self.processor_status = processor_status


class PaymentProcessorError(APIError):
    """A call to the payment processor failed."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_type = "payment_processor_error"
    default_message = "Payment processor error"


class ServiceUnavailableError(APIError):
    """An integration the request needs is not configured."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_type = "service_unavailable"
    default_message = "Service unavailable"


def create_error_response(
    error_type: str,
    message: str,
    status_code: int,
    details: list[dict[str, Any]] | None = None,
    request_id: str | None = None,
) -> JSONResponse:
    """Render an error in the standard envelope.

    Args:
        error_type: Machine-readable category, e.g. ``business_rule_error``.
        message: Human-readable description.
        status_code: HTTP status code.
        details: Optional field-level or processor details.
        request_id: Value of the caller's X-Request-ID header, if any.

    Returns:
        JSONResponse: ``{"error", "message", "details"?, "request_id"?, "timestamp"}``.
    """
    body = ErrorResponse.from_exception(
        error_type=error_type,
        message=message,
        details=details,
        request_id=request_id,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json", exclude_none=True))


async def error_handler_middleware(request: Request, call_next: Callable[[Request], Any]) -> Response:
    """Convert exceptions escaping a route into error envelopes.

    ``APIError`` subclasses keep their status and message. Anything else is
    logged with its traceback and answered with a generic 500 so internal
    details never reach the client.
    """
    request_id = request.headers.get("X-Request-ID")
    log_extra = {"request_id": request_id, "path": request.url.path}

    try:
        return await call_next(request)
    except APIError as e:
        logger.warning("%s on %s %s: %s", e.error_type, request.method, request.url.path, e.message, extra=log_extra)
        return create_error_response(e.error_type, e.message, e.status_code, e.details, request_id)
    except HTTPException as e:
        logger.warning("HTTP %s on %s %s: %s", e.status_code, request.method, request.url.path, e.detail, extra=log_extra)
        return create_error_response("http_error", str(e.detail), e.status_code, request_id=request_id)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path, extra=log_extra)
        return create_error_response(
            "internal_error",
            "An unexpected error occurred",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            request_id=request_id,
        )
