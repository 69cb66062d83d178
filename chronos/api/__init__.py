"""API layer - REST endpoints for status, stats and recovery."""

from chronos.api.main import create_app

__all__ = ["create_app"]
