"""Request logging middleware."""

import logging
import time
from collections.abc import Callable
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from chronos.commons.telemetry.logger import get_logger, set_correlation_id

logger = get_logger(__name__)

# Health-check traffic is logged at DEBUG.
QUIET_PATHS = frozenset({"/health", "/health/live"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """Logs each request and binds its id as the log correlation id.

    The id is taken from ``X-Request-ID`` when the caller sends one, so a
    scheduler can match its own logs with the sweep it triggered.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Any],
    ) -> Response:
        request_id = set_correlation_id(request.headers.get("X-Request-ID"))
        request.state.request_id = request_id
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
        fields = {"method": request.method, "path": request.url.path}

        started = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.warning(
                "Request raised",
                extra={**fields, "duration_ms": _elapsed_ms(started)},
            )
            raise

        logger.log(
            level,
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                **fields,
                "status_code": response.status_code,
                "duration_ms": _elapsed_ms(started),
            },
        )
        response.headers["X-Request-ID"] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
