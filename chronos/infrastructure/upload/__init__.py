"""Client-side resumable uploads."""

from chronos.infrastructure.upload.chunked_uploader import (
    ChunkedUploader,
    UploadCancelledError,
    UploadOutcome,
    UploadState,
    format_speed,
    format_time_remaining,
)
from chronos.infrastructure.upload.transport import (
    HttpxUploadTransport,
    UploadTransportBase,
    UploadTransportError,
)

__all__ = [
    # Uploader
    "ChunkedUploader",
    "UploadState",
    "UploadOutcome",
    "UploadCancelledError",
    "format_speed",
    "format_time_remaining",
    # Transports
    "UploadTransportBase",
    "HttpxUploadTransport",
    "UploadTransportError",
]
