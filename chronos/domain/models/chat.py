"""Chat session model consumed by retrieval."""

from datetime import UTC, datetime
from uuid import uuid4

from pydantic import BaseModel, Field


class ChatSession(BaseModel):
    """A chat conversation optionally scoped to a set of videos.

    An empty ``video_ids`` list means the session may draw on every video of
    the creator.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    creator_id: str = Field(description="Creator whose content is searched")
    student_id: str | None = Field(default=None, description="Asking student")
    video_ids: list[str] = Field(
        default_factory=list,
        description="Videos in scope; empty means all creator videos",
    )
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_scoped(self) -> bool:
        """Check if the session is restricted to specific videos."""
        return bool(self.video_ids)
