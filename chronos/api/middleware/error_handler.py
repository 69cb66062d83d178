"""Error handling middleware and exception handlers."""

from typing import Any

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import RequestResponseEndpoint
from starlette.responses import Response

from chronos.commons.telemetry.logger import get_logger
from chronos.domain.exceptions import (
    ArtifactStoreException,
    ChatSessionNotFoundException,
    DimensionMismatchException,
    DomainException,
    EmbeddingUnavailableException,
    InvalidStatusTransitionException,
    RetryLimitExceededException,
    VideoNotFoundException,
    VideoNotReadyException,
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
    """Build the standard ``{"error": {...}}`` envelope."""
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


def _handle_exception(  # noqa: PLR0911
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Map an exception to its HTTP status and error code.

    Args:
        request: HTTP request.
        exc: Exception to handle.

    Returns:
        JSON error response.
    """
    if isinstance(exc, APIError):
        logger.warning(
            f"API error: {exc.code}",
            extra={"error_code": exc.code, "details": exc.details},
        )
        return _build_error_response(
            request, exc.code, exc.message, exc.status_code, exc.details
        )

    if isinstance(exc, VideoNotFoundException):
        logger.warning(f"Video not found: {exc}")
        return _build_error_response(
            request,
            "VIDEO_NOT_FOUND",
            str(exc),
            status.HTTP_404_NOT_FOUND,
            {"video_id": exc.video_id},
        )

    if isinstance(exc, ChatSessionNotFoundException):
        logger.warning(f"Chat session not found: {exc}")
        return _build_error_response(
            request,
            "SESSION_NOT_FOUND",
            str(exc),
            status.HTTP_404_NOT_FOUND,
            {"session_id": exc.session_id},
        )

    if isinstance(exc, InvalidStatusTransitionException):
        logger.warning(f"Invalid status transition: {exc}")
        return _build_error_response(
            request,
            "INVALID_STATUS_TRANSITION",
            str(exc),
            status.HTTP_409_CONFLICT,
            {"video_id": exc.video_id, "current": exc.current, "attempted": exc.attempted},
        )

    if isinstance(exc, RetryLimitExceededException):
        logger.warning(f"Retry limit exceeded: {exc}")
        return _build_error_response(
            request,
            "RETRY_LIMIT_EXCEEDED",
            str(exc),
            status.HTTP_409_CONFLICT,
            {"video_id": exc.video_id, "max_retries": exc.max_retries},
        )

    if isinstance(exc, VideoNotReadyException):
        logger.warning(f"Video not ready: {exc}")
        return _build_error_response(
            request,
            "VIDEO_NOT_READY",
            str(exc),
            status.HTTP_409_CONFLICT,
            {"video_id": exc.video_id},
        )

    if isinstance(exc, EmbeddingUnavailableException):
        logger.error(f"Embedding unavailable: {exc}")
        return _build_error_response(
            request,
            "EMBEDDING_UNAVAILABLE",
            str(exc),
            status.HTTP_503_SERVICE_UNAVAILABLE,
            {"model": exc.model} if exc.model else None,
        )

    if isinstance(exc, ArtifactStoreException):
        logger.error(f"Artifact store unavailable: {exc}")
        return _build_error_response(
            request,
            "STORE_UNAVAILABLE",
            str(exc),
            status.HTTP_503_SERVICE_UNAVAILABLE,
            {"operation": exc.operation},
        )

    if isinstance(exc, DimensionMismatchException):
        logger.exception(f"Embedding dimension mismatch: {exc}")
        return _build_error_response(
            request,
            "DIMENSION_MISMATCH",
            str(exc),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, DomainException):
        logger.warning(f"Domain error: {exc}")
        return _build_error_response(
            request, "DOMAIN_ERROR", str(exc), status.HTTP_400_BAD_REQUEST
        )

    logger.exception(f"Unexpected error: {exc}")
    return _build_error_response(
        request,
        "INTERNAL_ERROR",
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
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
