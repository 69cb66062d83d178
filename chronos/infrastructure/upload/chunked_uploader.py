"""Resumable chunked upload of large files to object storage."""

import asyncio
import math
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from chronos.commons.telemetry import get_logger
from chronos.infrastructure.upload.transport import UploadTransportBase

DEFAULT_CHUNK_SIZE = 5 * 1024 * 1024
LARGE_FILE_THRESHOLD = 100 * 1024 * 1024
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


class UploadCancelledError(Exception):
    """Raised inside the upload loop once ``cancel()`` has been observed."""


class UploadOutcome(str, Enum):
    """How a ``start()`` run ended."""

    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class UploadState:
    """Snapshot of upload progress."""

    total_chunks: int
    uploaded_chunks: int
    current_chunk: int
    progress: float
    is_paused: bool
    is_cancelled: bool


class ChunkedUploader:
    """Uploads one local file, chunk by chunk, with per-chunk retry.

    Files at or below ``large_file_threshold`` go up in a single request.
    Larger files are split into ``ceil(size / chunk_size)`` ranges, each
    retried on its own with exponential backoff. Chunks that made it stay
    recorded, so calling ``start()`` again after a failure resumes.

    Pause is cooperative: the chunk in flight finishes, the next one waits.
    Cancel stops after the current attempt and does not undo uploaded ranges.

    Example:
        uploader = ChunkedUploader(path, url, transport, on_progress=print)
        outcome = await uploader.start()
    """

    def __init__(
        self,
        path: Path,
        upload_url: str,
        transport: UploadTransportBase,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        large_file_threshold: int = LARGE_FILE_THRESHOLD,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
        content_type: str = "application/octet-stream",
        on_progress: Callable[[float], None] | None = None,
        on_complete: Callable[[], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the uploader.

        Args:
            path: Local file to upload.
            upload_url: Destination (usually a presigned PUT URL).
            transport: Wire transport performing each request.
            chunk_size: Bytes per chunk on the chunked path.
            large_file_threshold: Sizes above this use the chunked path.
            max_retries: Retries per chunk after the first attempt.
            retry_delay_seconds: Base backoff delay, doubled per retry.
            content_type: MIME type sent with each request.
            on_progress: Called with the percent complete after each chunk.
            on_complete: Called once when every chunk is uploaded.
            on_error: Called once with the last error when a chunk gives up.
            sleep: Awaitable used for backoff waits.
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if max_retries < 0:
            raise ValueError("max_retries must not be negative")

        self._path = path
        self._url = upload_url
        self._transport = transport
        self._chunk_size = chunk_size
        self._threshold = large_file_threshold
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._content_type = content_type
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._on_error = on_error
        self._sleep = sleep
        self._logger = get_logger(__name__)

        self._file_size = path.stat().st_size
        self._total_chunks = (
            max(1, math.ceil(self._file_size / chunk_size)) if self.uses_chunking else 1
        )
        self._uploaded: set[int] = set()
        self._current_chunk = 0
        self._cancelled = False
        self._resumed = asyncio.Event()
        self._resumed.set()

    @property
    def uses_chunking(self) -> bool:
        return self._file_size > self._threshold

    @property
    def file_size(self) -> int:
        return self._file_size

    def pause(self) -> None:
        self._resumed.clear()

    def resume(self) -> None:
        self._resumed.set()

    def cancel(self) -> None:
        self._cancelled = True
        # Wake a paused loop so it can observe the cancellation
        self._resumed.set()

    def get_state(self) -> UploadState:
        return UploadState(
            total_chunks=self._total_chunks,
            uploaded_chunks=len(self._uploaded),
            current_chunk=self._current_chunk,
            progress=len(self._uploaded) / self._total_chunks * 100,
            is_paused=not self._resumed.is_set(),
            is_cancelled=self._cancelled,
        )

    def estimated_time_remaining(self, bytes_per_second: float) -> float:
        """Seconds left at the given speed, 0 when the speed is unknown."""
        if bytes_per_second <= 0:
            return 0.0
        done = min(self._file_size, len(self._uploaded) * self._chunk_size)
        return (self._file_size - done) / bytes_per_second

    async def start(self) -> UploadOutcome:
        """Run the upload until it completes, fails or is cancelled.

        Exactly one of ``on_complete`` / ``on_error`` fires per run, and
        neither fires on cancellation.
        """
        try:
            for index in range(self._total_chunks):
                await self._resumed.wait()
                if self._cancelled:
                    raise UploadCancelledError
                if index in self._uploaded:
                    continue

                self._current_chunk = index
                await self._upload_with_retry(index)
                self._uploaded.add(index)
                self._report_progress()
        except UploadCancelledError:
            self._logger.info(
                "Upload cancelled",
                extra={"path": str(self._path), **self._state_fields()},
            )
            return UploadOutcome.CANCELLED
        except Exception as e:
            self._logger.error(
                "Upload failed",
                extra={"path": str(self._path), "error": str(e), **self._state_fields()},
            )
            if self._on_error:
                self._on_error(e)
            return UploadOutcome.FAILED

        self._logger.info(
            "Upload completed",
            extra={"path": str(self._path), "size_bytes": self._file_size},
        )
        if self._on_complete:
            self._on_complete()
        return UploadOutcome.COMPLETED

    async def _upload_with_retry(self, index: int) -> None:
        for attempt in range(self._max_retries + 1):
            try:
                await self._upload_chunk(index)
                return
            except Exception as e:
                self._logger.warning(
                    "Chunk upload failed",
                    extra={
                        "chunk": index,
                        "attempt": attempt + 1,
                        "max_attempts": self._max_retries + 1,
                        "error": str(e),
                    },
                )
                if self._cancelled:
                    raise UploadCancelledError from e
                if attempt == self._max_retries:
                    raise
                await self._sleep(self._retry_delay * 2**attempt)
                if self._cancelled:
                    raise UploadCancelledError from e

    async def _upload_chunk(self, index: int) -> None:
        if self.uses_chunking:
            offset = index * self._chunk_size
            length = min(self._chunk_size, self._file_size - offset)
        else:
            offset, length = 0, self._file_size

        data = await asyncio.to_thread(self._read_range, offset, length)
        await self._transport.put(
            self._url,
            data,
            offset=offset,
            total_size=self._file_size,
            content_type=self._content_type,
        )

    def _read_range(self, offset: int, length: int) -> bytes:
        with self._path.open("rb") as f:
            f.seek(offset)
            return f.read(length)

    def _report_progress(self) -> None:
        if self._on_progress:
            self._on_progress(len(self._uploaded) / self._total_chunks * 100)

    def _state_fields(self) -> dict[str, int]:
        return {
            "uploaded_chunks": len(self._uploaded),
            "total_chunks": self._total_chunks,
        }


def format_speed(bytes_per_second: float) -> str:
    """Format a transfer rate, e.g. ``1.50 MB/s``."""
    units = ("B/s", "KB/s", "MB/s", "GB/s")
    speed = bytes_per_second
    unit = 0
    while speed >= 1024 and unit < len(units) - 1:
        speed /= 1024
        unit += 1
    return f"{speed:.2f} {units[unit]}"


def format_time_remaining(seconds: float) -> str:
    """Format a duration as ``45s``, ``3m 20s`` or ``2h 5m``."""
    if seconds < 60:
        return f"{math.ceil(seconds)}s"

    minutes = int(seconds // 60)
    if minutes < 60:
        return f"{minutes}m {math.ceil(seconds % 60)}s"

    return f"{minutes // 60}h {minutes % 60}m"
