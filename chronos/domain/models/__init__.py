"""Domain models."""

from chronos.domain.models.chat import ChatSession
from chronos.domain.models.chunk import Chunk
from chronos.domain.models.video import (
    TERMINAL_STATUSES,
    LastError,
    ProcessingMetadata,
    Video,
    VideoStatus,
)

__all__ = [
    # Video
    "Video",
    "VideoStatus",
    "ProcessingMetadata",
    "LastError",
    "TERMINAL_STATUSES",
    # Chunks
    "Chunk",
    # Chat
    "ChatSession",
]
