"""DTOs for the processing status surface."""

from datetime import datetime

from pydantic import BaseModel, Field


class ProcessingError(BaseModel):
    """Structured last error of a video."""

    message: str
    stage: str
    timestamp: datetime | None = None
    retry_count: int = 0


class ProcessingDetails(BaseModel):
    """Content metadata shown next to the status."""

    file_size: int = 0
    duration_seconds: int = 0
    transcript_language: str | None = None
    chunk_count: int | None = Field(
        default=None,
        description="Number of chunks, only reported once completed",
    )


class ProcessingStatusResponse(BaseModel):
    """Renderable status of one video, even for unrecognised statuses."""

    video_id: str
    title: str | None = None
    status: str
    progress: int = Field(ge=0, le=100)
    current_stage: str
    stage_description: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
    processing_started_at: datetime | None = None
    processing_completed_at: datetime | None = None
    processing_duration_seconds: int | None = None
    estimated_time_remaining_minutes: float | None = None
    error: ProcessingError | None = None
    metadata: ProcessingDetails = Field(default_factory=ProcessingDetails)
    is_terminal: bool
    next_steps: list[str] = Field(default_factory=list)


class ProcessingStats(BaseModel):
    """Video counts per status."""

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    in_progress: int = 0
    completed: int = 0
    failed: int = 0
