"""Chunk/embedding pipeline contract.

Defines what "chunked" and "embedded" mean in terms of persisted rows, and
the events that move a video between stages.
"""

from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, Field


class ArtifactSnapshot(BaseModel):
    """Persisted downstream artifacts of one video at a point in time."""

    has_transcript: bool = False
    chunk_count: int = Field(default=0, ge=0)
    embedded_chunk_count: int = Field(default=0, ge=0)

    @property
    def has_chunks(self) -> bool:
        return self.chunk_count > 0

    @property
    def has_embeddings(self) -> bool:
        return self.embedded_chunk_count > 0

    @property
    def is_chunked(self) -> bool:
        """Chunking ran: at least one chunk row exists."""
        return self.has_chunks

    @property
    def is_embedded(self) -> bool:
        """Embedding ran: at least one chunk carries a vector.

        This is the "ready" condition for a video to be queryable by chat.
        """
        return self.has_chunks and self.has_embeddings

    @property
    def pending_embeddings(self) -> int:
        return max(0, self.chunk_count - self.embedded_chunk_count)


class PipelineEventName(str, Enum):
    """Event types published to the durable queue."""

    TRANSCRIBE_REQUESTED = "video/transcribe.requested"
    CHUNKS_REQUESTED = "video/chunks.requested"
    EMBEDDINGS_REQUESTED = "video/embeddings.requested"
    TRANSCRIPTION_COMPLETED = "video/transcription.completed"


class PipelineEvent(BaseModel):
    """A typed event with its wire payload."""

    name: PipelineEventName
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def video_id(self) -> str | None:
        return self.data.get("video_id")

    @classmethod
    def transcribe_requested(
        cls,
        video_id: str,
        creator_id: str,
        storage_path: str | None,
    ) -> Self:
        """Full re-run from the stored binary."""
        return cls(
            name=PipelineEventName.TRANSCRIBE_REQUESTED,
            data={
                "video_id": video_id,
                "creator_id": creator_id,
                "storage_path": storage_path,
            },
        )

    @classmethod
    def chunks_requested(
        cls,
        video_id: str,
        creator_id: str,
        transcript: str,
    ) -> Self:
        return cls(
            name=PipelineEventName.CHUNKS_REQUESTED,
            data={
                "video_id": video_id,
                "creator_id": creator_id,
                "transcript": transcript,
            },
        )

    @classmethod
    def embeddings_requested(
        cls,
        video_id: str,
        creator_id: str,
        transcript: str,
        skip_if_exists: bool = True,
    ) -> Self:
        return cls(
            name=PipelineEventName.EMBEDDINGS_REQUESTED,
            data={
                "video_id": video_id,
                "creator_id": creator_id,
                "transcript": transcript,
                "skip_if_exists": skip_if_exists,
            },
        )

    @classmethod
    def transcription_completed(
        cls,
        video_id: str,
        creator_id: str,
        transcript: str,
        skip_if_exists: bool = False,
    ) -> Self:
        """Re-drive chunking and embedding from an existing transcript.

        Recovery publishes this with ``skip_if_exists=False`` so the handler
        regenerates chunks instead of short-circuiting on partial rows.
        """
        return cls(
            name=PipelineEventName.TRANSCRIPTION_COMPLETED,
            data={
                "video_id": video_id,
                "creator_id": creator_id,
                "transcript": transcript,
                "skip_if_exists": skip_if_exists,
            },
        )
