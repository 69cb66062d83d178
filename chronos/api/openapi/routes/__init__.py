"""API route handlers."""

from chronos.api.openapi.routes import health, recovery, videos

__all__ = [
    "health",
    "recovery",
    "videos",
]
