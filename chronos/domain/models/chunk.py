"""Transcript chunk domain model."""

from datetime import UTC, datetime
from typing import Self
from uuid import uuid4

from pydantic import BaseModel, Field, model_validator


class Chunk(BaseModel):
    """A segment of transcript text belonging to one video.

    Chunks are created text-only while the video is ``processing``; the
    embedding is filled in during ``embedding`` and the chunk is immutable
    afterwards.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Unique chunk identifier",
    )
    video_id: str = Field(description="Reference to the owning video")
    chunk_index: int = Field(default=0, ge=0, description="Position in the video")
    text: str = Field(description="Transcript text of this segment")
    embedding: list[float] | None = Field(
        default=None,
        description="Fixed-dimension embedding vector, once processed",
    )
    start_time: float = Field(default=0.0, ge=0, description="Start in seconds")
    end_time: float = Field(default=0.0, ge=0, description="End in seconds")
    word_count: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def validate_time_range(self) -> Self:
        """Ensure the segment does not end before it starts."""
        if self.end_time < self.start_time:
            msg = (
                f"end_time ({self.end_time}) must not be before "
                f"start_time ({self.start_time})"
            )
            raise ValueError(msg)
        return self

    @property
    def has_embedding(self) -> bool:
        """Check if the embedding stage populated this chunk."""
        return self.embedding is not None

    @property
    def dimensions(self) -> int | None:
        """Embedding dimensionality, or None before embedding."""
        return len(self.embedding) if self.embedding is not None else None

    def format_time_range(self) -> str:
        """Format time range as MM:SS - MM:SS for display."""

        def fmt(seconds: float) -> str:
            minutes = int(seconds // 60)
            secs = int(seconds % 60)
            return f"{minutes:02d}:{secs:02d}"

        return f"{fmt(self.start_time)} - {fmt(self.end_time)}"
