"""MinIO/S3 implementation of object storage."""

import asyncio
import time
from datetime import timedelta
from typing import Literal

from minio import Minio
from minio.error import S3Error

from chronos.commons.infrastructure.blob.base import BlobStorageBase, HealthStatus

_MISSING_CODES = frozenset({"NoSuchKey", "NoSuchObject"})


class MinioBlobStorage(BlobStorageBase):
    """MinIO implementation of object storage.

    The minio client is blocking, so every call runs in the default executor.
    Works against MinIO locally and AWS S3 in production.
    """

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        secure: bool = False,
        region: str | None = None,
    ) -> None:
        self._client = Minio(
            endpoint=endpoint,
            access_key=access_key,
            secret_key=secret_key,
            secure=secure,
            region=region,
        )
        self._endpoint = endpoint

    async def delete(self, bucket: str, path: str) -> bool:
        if not await self.exists(bucket, path):
            return False
        await asyncio.to_thread(
            lambda: self._client.remove_object(bucket_name=bucket, object_name=path)
        )
        return True

    async def exists(self, bucket: str, path: str) -> bool:
        def _stat() -> bool:
            try:
                self._client.stat_object(bucket_name=bucket, object_name=path)
            except S3Error as e:
                if e.code in _MISSING_CODES:
                    return False
                raise
            return True

        return await asyncio.to_thread(_stat)

    async def generate_presigned_url(
        self,
        bucket: str,
        path: str,
        expiry_seconds: int = 3600,
        method: Literal["GET", "PUT"] = "GET",
    ) -> str:
        expires = timedelta(seconds=expiry_seconds)
        presign = (
            self._client.presigned_put_object
            if method.upper() == "PUT"
            else self._client.presigned_get_object
        )
        url = await asyncio.to_thread(
            lambda: presign(bucket_name=bucket, object_name=path, expires=expires)
        )
        return str(url)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await asyncio.to_thread(self._client.list_buckets)
        except Exception as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MinIO health check failed: {e}",
                details={"endpoint": self._endpoint, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MinIO is healthy",
            details={"endpoint": self._endpoint},
        )
