"""Health check endpoints."""

from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from chronos.api.dependencies import FactoryDep, SettingsDep
from chronos.commons.telemetry import get_logger

router = APIRouter()
logger = get_logger(__name__)


class HealthStatus(str, Enum):
    """Health check status."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status of a single component."""

    name: str = Field(description="Component name")
    status: HealthStatus = Field(description="Component health status")
    latency_ms: float | None = Field(default=None, description="Check latency")
    message: str | None = Field(default=None, description="Additional details")


class HealthResponse(BaseModel):
    """Health check response."""

    status: HealthStatus = Field(description="Overall health status")
    version: str = Field(description="Application version")
    environment: str = Field(description="Deployment environment")
    components: list[ComponentHealth] = Field(
        default_factory=list,
        description="Individual component health",
    )


class LivenessResponse(BaseModel):
    """Simple liveness response."""

    status: str = Field(default="ok")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the record store and object storage.",
)
async def health_check(
    settings: SettingsDep,
    factory: FactoryDep,
) -> HealthResponse:
    """Check health of the stores the pipeline depends on.

    The record store is critical: when it is down the service is unhealthy.
    Object storage only degrades it (status views and sweeps still work).
    """
    components: list[ComponentHealth] = []
    checks = {
        "document_db": factory.get_document_db,
        "blob_storage": factory.get_blob_storage,
    }

    for name, get_provider in checks.items():
        try:
            result = await get_provider().health_check()
        except Exception as e:
            logger.warning("Health check failed", extra={"component": name, "error": str(e)})
            components.append(
                ComponentHealth(name=name, status=HealthStatus.UNHEALTHY, message=str(e))
            )
            continue
        components.append(
            ComponentHealth(
                name=name,
                status=HealthStatus.HEALTHY if result.healthy else HealthStatus.UNHEALTHY,
                latency_ms=round(result.latency_ms, 2),
                message=result.message,
            )
        )

    unhealthy = {c.name for c in components if c.status == HealthStatus.UNHEALTHY}
    if "document_db" in unhealthy:
        overall = HealthStatus.UNHEALTHY
    elif unhealthy:
        overall = HealthStatus.DEGRADED
    else:
        overall = HealthStatus.HEALTHY

    return HealthResponse(
        status=overall,
        version=settings.app.version,
        environment=settings.app.environment,
        components=components,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Simple liveness check for Kubernetes.",
)
async def liveness() -> LivenessResponse:
    """Simple liveness check - just verifies the app is running."""
    return LivenessResponse(status="ok")
