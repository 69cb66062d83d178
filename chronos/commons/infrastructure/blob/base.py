"""Abstract base class for object storage operations."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal


@dataclass
class HealthStatus:
    """Health check result."""

    healthy: bool
    latency_ms: float
    message: str | None = None
    details: dict[str, str] | None = None


class BlobStorageBase(ABC):
    """Object storage holding uploaded video binaries.

    The pipeline core only needs to issue upload/download URLs, check for an
    object and remove it on hard delete; the binary itself never passes
    through this process.
    """

    @abstractmethod
    async def delete(self, bucket: str, path: str) -> bool:
        """Delete an object.

        Args:
            bucket: Bucket name.
            path: Object key.

        Returns:
            True if deleted, False if it did not exist.
        """

    @abstractmethod
    async def exists(self, bucket: str, path: str) -> bool:
        """Check if an object exists."""

    @abstractmethod
    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
        method: Literal["GET", "PUT"] = "GET",
    ) -> str:
        """Generate a presigned URL for direct client access.

        Args:
            bucket: Bucket name.
            path: Object key.
            expiry_seconds: URL validity duration.
            method: ``PUT`` for uploads, ``GET`` for downloads.

        Returns:
            Presigned URL string.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""
