"""Wire transports used by the chunked uploader."""

from abc import ABC, abstractmethod

import httpx


class UploadTransportError(Exception):
    """Raised when a single upload request fails."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"Upload request failed: {reason}")


class UploadTransportBase(ABC):
    """Sends one byte range of a file to its destination."""

    @abstractmethod
    async def put(
        self,
        url: str,
        data: bytes,
        *,
        offset: int,
        total_size: int,
        content_type: str = "application/octet-stream",
    ) -> None:
        """Upload ``data`` located at ``offset`` within a ``total_size`` file.

        A call covering the whole file (offset 0, len == total_size) is a
        direct upload.

        Raises:
            UploadTransportError: On network failure or a non-2xx response.
        """

    async def close(self) -> None:  # noqa: B027
        """Release client resources."""


class HttpxUploadTransport(UploadTransportBase):
    """PUTs to a presigned object storage URL with httpx.

    Partial ranges carry a ``Content-Range`` header; storage backends that
    only accept whole-object PUTs should be used with a threshold above the
    largest expected file.
    """

    def __init__(
        self,
        timeout: float = 300.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def put(
        self,
        url: str,
        data: bytes,
        *,
        offset: int,
        total_size: int,
        content_type: str = "application/octet-stream",
    ) -> None:
        headers = {"Content-Type": content_type}
        if offset != 0 or len(data) != total_size:
            end = offset + len(data) - 1
            headers["Content-Range"] = f"bytes {offset}-{end}/{total_size}"

        try:
            response = await self._client.put(url, content=data, headers=headers)
        except httpx.HTTPError as e:
            raise UploadTransportError(str(e)) from e

        if response.is_error:
            raise UploadTransportError(
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

    async def close(self) -> None:
        await self._client.aclose()
