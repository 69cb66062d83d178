"""Object storage abstractions and implementations."""

from chronos.commons.infrastructure.blob.base import BlobStorageBase, HealthStatus
from chronos.commons.infrastructure.blob.minio_provider import MinioBlobStorage

__all__ = [
    # Base classes
    "BlobStorageBase",
    "HealthStatus",
    # Implementations
    "MinioBlobStorage",
]
