"""Artifact store accessors."""

from chronos.infrastructure.repositories.chat_session_repository import (
    ChatSessionRepository,
)
from chronos.infrastructure.repositories.chunk_repository import ChunkRepository
from chronos.infrastructure.repositories.video_repository import (
    VideoRepository,
    document_to_video,
    video_to_document,
)

__all__ = [
    "VideoRepository",
    "ChunkRepository",
    "ChatSessionRepository",
    "video_to_document",
    "document_to_video",
]
