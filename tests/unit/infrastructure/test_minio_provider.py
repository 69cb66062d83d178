"""Unit tests for the MinIO blob storage provider."""

from datetime import timedelta
from unittest.mock import MagicMock, patch

import pytest
from minio.error import S3Error

from chronos.commons.infrastructure.blob.minio_provider import MinioBlobStorage


class _S3ErrorWithCode(S3Error):
    """S3Error carrying only a code, independent of the client's constructor."""

    def __init__(self, code: str) -> None:
        Exception.__init__(self, code)
        self._test_code = code

    @property
    def code(self) -> str:
        return self._test_code

    def __str__(self) -> str:
        return self._test_code


@pytest.fixture
def client():
    with patch("chronos.commons.infrastructure.blob.minio_provider.Minio") as cls:
        yield cls.return_value


@pytest.fixture
def storage(client):
    return MinioBlobStorage(
        endpoint="localhost:9000",
        access_key="minio",
        secret_key="secret",
    )


class TestExists:
    async def test_object_present(self, storage, client):
        assert await storage.exists("videos", "a.mp4") is True
        client.stat_object.assert_called_once_with(
            bucket_name="videos", object_name="a.mp4"
        )

    async def test_object_missing(self, storage, client):
        client.stat_object.side_effect = _S3ErrorWithCode("NoSuchKey")
        assert await storage.exists("videos", "a.mp4") is False

    async def test_other_errors_propagate(self, storage, client):
        client.stat_object.side_effect = _S3ErrorWithCode("AccessDenied")
        with pytest.raises(S3Error):
            await storage.exists("videos", "a.mp4")


class TestDelete:
    async def test_delete_existing(self, storage, client):
        assert await storage.delete("videos", "a.mp4") is True
        client.remove_object.assert_called_once_with(
            bucket_name="videos", object_name="a.mp4"
        )

    async def test_delete_missing(self, storage, client):
        client.stat_object.side_effect = _S3ErrorWithCode("NoSuchObject")
        assert await storage.delete("videos", "a.mp4") is False
        client.remove_object.assert_not_called()


class TestPresignedUrl:
    async def test_put(self, storage, client):
        client.presigned_put_object.return_value = "https://minio/put"

        url = await storage.generate_presigned_url(
            "videos", "a.mp4", expiry_seconds=600, method="PUT"
        )

        assert url == "https://minio/put"
        client.presigned_put_object.assert_called_once_with(
            bucket_name="videos", object_name="a.mp4", expires=timedelta(seconds=600)
        )
        client.presigned_get_object.assert_not_called()

    async def test_get_is_default(self, storage, client):
        client.presigned_get_object.return_value = "https://minio/get"
        assert await storage.generate_presigned_url("videos", "a.mp4") == (
            "https://minio/get"
        )


class TestHealthCheck:
    async def test_healthy(self, storage, client):
        client.list_buckets.return_value = []
        health = await storage.health_check()
        assert health.healthy is True
        assert health.details == {"endpoint": "localhost:9000"}

    async def test_unhealthy(self, storage, client):
        client.list_buckets = MagicMock(side_effect=ConnectionError("down"))
        health = await storage.health_check()
        assert health.healthy is False
        assert "down" in health.message
