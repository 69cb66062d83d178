"""Video domain model and its typed processing metadata."""

from datetime import UTC, datetime
from enum import Enum
from typing import Any, Self
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class VideoStatus(str, Enum):
    """Lifecycle status of a video in the processing pipeline."""

    PENDING = "pending"  # Created, upload not confirmed yet
    UPLOADING = "uploading"  # Binary moving to object storage
    TRANSCRIBING = "transcribing"  # Waiting on speech-to-text
    PROCESSING = "processing"  # Chunking transcript
    EMBEDDING = "embedding"  # Generating chunk embeddings
    COMPLETED = "completed"  # Chunks embedded, queryable by chat
    FAILED = "failed"  # Terminal failure, manual retry only


TERMINAL_STATUSES: frozenset[VideoStatus] = frozenset(
    {VideoStatus.COMPLETED, VideoStatus.FAILED}
)


class LastError(BaseModel):
    """Most recent processing error recorded for a video."""

    stage: str = Field(description="Status the video was in when it failed")
    message: str = Field(description="Human-readable error message")
    timestamp: datetime = Field(description="When the error was recorded")
    error_type: str | None = Field(
        default=None,
        description="Exception class name, if the error came from an exception",
    )


class ProcessingMetadata(BaseModel):
    """Typed processing bookkeeping stored alongside a video.

    Only the recovery engine writes the ``recovery_*`` / ``last_recovery_*``
    fields; stage handlers own ``retry_count`` and ``last_error``.
    """

    model_config = ConfigDict(extra="ignore")

    retry_count: int = Field(default=0, ge=0)
    last_error: LastError | None = None
    recovery_attempts: int = Field(default=0, ge=0)
    last_recovery_attempt: datetime | None = None
    last_recovery_action: str | None = None
    stage_durations: dict[str, float] = Field(default_factory=dict)
    retried_at: datetime | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> Self:
        """Validate a persisted metadata bag, dropping fields that don't parse.

        Args:
            raw: Metadata bag as read from the store. Anything that is not a
                dictionary is treated as missing.

        Returns:
            Parsed metadata. Fields with invalid values fall back to defaults.
        """
        if not raw or not isinstance(raw, dict):
            return cls()
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            bad_fields = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            cleaned = {k: v for k, v in raw.items() if k not in bad_fields}
            return cls.model_validate(cleaned)


class Video(BaseModel):
    """A creator-submitted media asset driven through the pipeline.

    This is the aggregate root: chunks are owned by a video through video_id
    and are removed with it on hard delete.
    """

    id: str = Field(
        default_factory=lambda: str(uuid4()),
        description="Opaque video identifier",
    )
    creator_id: str = Field(description="Owning creator")
    title: str = Field(description="Video title")
    status: VideoStatus = Field(
        default=VideoStatus.PENDING,
        description="Current pipeline stage",
    )
    transcript: str | None = Field(default=None, description="Full transcript text")
    transcript_language: str | None = Field(
        default=None,
        description="Transcript language tag (ISO 639-1)",
    )
    duration_seconds: int = Field(default=0, ge=0)
    file_size_bytes: int = Field(default=0, ge=0)
    storage_path: str | None = Field(
        default=None,
        description="Object storage key of the uploaded binary",
    )
    error_message: str | None = Field(default=None)
    metadata: ProcessingMetadata = Field(default_factory=ProcessingMetadata)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    is_deleted: bool = False

    @property
    def is_terminal(self) -> bool:
        """Check if the video has reached completed or failed."""
        return self.status in TERMINAL_STATUSES

    @property
    def has_transcript(self) -> bool:
        """Check if a non-blank transcript is stored."""
        return bool(self.transcript and self.transcript.strip())

    def minutes_in_stage(self, now: datetime | None = None) -> float:
        """Minutes elapsed since the last stage write.

        Args:
            now: Reference time. Defaults to the current UTC time.

        Returns:
            Elapsed minutes, never negative.
        """
        reference = now or datetime.now(UTC)
        return max(0.0, (reference - self.updated_at).total_seconds() / 60)

    def with_status(self, new_status: VideoStatus, now: datetime | None = None) -> Self:
        """Create a new instance moved to ``new_status``.

        Stamps processing timestamps so that ``processing_completed_at`` is set
        exactly when the status is terminal.
        """
        stamp = now or datetime.now(UTC)
        updates: dict[str, Any] = {"status": new_status, "updated_at": stamp}
        if new_status == VideoStatus.UPLOADING and self.processing_started_at is None:
            updates["processing_started_at"] = stamp
        if new_status in TERMINAL_STATUSES:
            updates["processing_completed_at"] = stamp
        else:
            updates["processing_completed_at"] = None
            updates["error_message"] = None
        return self.model_copy(update=updates)
