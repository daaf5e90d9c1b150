"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from enrichment_hub.commons.telemetry.logger import get_logger
from enrichment_hub.domain.exceptions import (
    DomainException,
    DurationExceededException,
    EmptyTranscriptException,
    ExternalServiceException,
    InvalidCallbackPayloadException,
    InvalidVideoUrlException,
    StorageException,
    ValidationException,
    VideoNotFoundException,
)

logger = get_logger(__name__)


class APIError(Exception):
    """Base API error with code and details."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize API error.

        Args:
            code: Error code for clients.
            message: Human-readable error message.
            status_code: HTTP status code.
            details: Additional error details.
        """
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


def _build_error_response(
    request: Request,
    code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Build the uniform ``{"error": {...}}`` envelope."""
    request_id = getattr(request.state, "request_id", "unknown")

    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
                "request_id": request_id,
            }
        },
    )


def _domain_error(exc: DomainException) -> tuple[str, int, dict[str, Any]]:  # noqa: PLR0911
    """Map a domain exception to (code, status, details)."""
    if isinstance(exc, InvalidVideoUrlException):
        return "INVALID_VIDEO_URL", status.HTTP_400_BAD_REQUEST, {"url": exc.url}
    if isinstance(exc, InvalidCallbackPayloadException):
        return (
            "INVALID_CALLBACK_PAYLOAD",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"artifact": exc.artifact},
        )
    if isinstance(exc, ValidationException):
        return "VALIDATION_ERROR", status.HTTP_400_BAD_REQUEST, {}
    if isinstance(exc, VideoNotFoundException):
        return "VIDEO_NOT_FOUND", status.HTTP_404_NOT_FOUND, {"video_id": exc.video_id}
    if isinstance(exc, DurationExceededException):
        return (
            "DURATION_EXCEEDED",
            status.HTTP_409_CONFLICT,
            {
                "duration_seconds": exc.duration_seconds,
                "limit_seconds": exc.limit_seconds,
            },
        )
    if isinstance(exc, EmptyTranscriptException):
        return (
            "EMPTY_TRANSCRIPT",
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            {"video_id": exc.video_id},
        )
    if isinstance(exc, ExternalServiceException):
        return (
            "EXTERNAL_SERVICE_ERROR",
            status.HTTP_502_BAD_GATEWAY,
            {"service": exc.service},
        )
    if isinstance(exc, StorageException):
        return (
            "STORAGE_ERROR",
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            {"operation": exc.operation},
        )
    return "DOMAIN_ERROR", status.HTTP_400_BAD_REQUEST, {}


def _handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """Handle exception and return appropriate error response."""
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={"error_code": exc.code, "details": exc.details},
        )
        return _build_error_response(
            request=request,
            code=exc.code,
            message=exc.message,
            status_code=exc.status_code,
            details=exc.details,
        )

    if isinstance(exc, DomainException):
        code, status_code, details = _domain_error(exc)
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"{code}: {exc}", extra={"error_code": code})
        else:
            logger.warning(f"{code}: {exc}", extra={"error_code": code})
        return _build_error_response(
            request=request,
            code=code,
            message=str(exc),
            status_code=status_code,
            details=details,
        )

    # Catch-all for unexpected errors
    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request=request,
        code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


async def error_handler_middleware(
    request: Request,
    call_next: RequestResponseEndpoint,
) -> Response:
    """Middleware to catch and format all exceptions."""
    try:
        return await call_next(request)
    except Exception as exc:
        return _handle_exception(request, exc)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures in the error envelope."""
    errors = [
        {
            "loc": list(error.get("loc", ())),
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    logger.warning(
        "Request validation failed",
        extra={"path": request.url.path, "error_count": len(errors)},
    )
    return _build_error_response(
        request=request,
        code="VALIDATION_ERROR",
        message="Request body failed validation",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        details={"errors": errors},
    )
