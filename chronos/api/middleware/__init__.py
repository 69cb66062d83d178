"""API middleware components."""

from chronos.api.middleware.error_handler import APIError, error_handler_middleware
from chronos.api.middleware.logging import LoggingMiddleware

__all__ = [
    "APIError",
    "LoggingMiddleware",
    "error_handler_middleware",
]
