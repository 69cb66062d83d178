"""Video status and pipeline control endpoints."""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from chronos.api.dependencies import PipelineServiceDep, StatusServiceDep
from chronos.application.dtos.status import ProcessingStats, ProcessingStatusResponse
from chronos.domain.models.video import VideoStatus

router = APIRouter()


class RetryResponse(BaseModel):
    """Result of a manual retry."""

    success: bool = True
    video_id: str
    status: str = Field(description="Status after the retry")
    event_sent: str | None = Field(
        default=None,
        description="Pipeline event re-sent for a stuck video",
    )
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


class DeleteResponse(BaseModel):
    """Response for video deletion."""

    success: bool = Field(description="Whether deletion was successful")
    video_id: str = Field(description="ID of deleted video")
    hard: bool = Field(description="Whether rows and storage were removed")
    chunks_removed: int = Field(default=0, ge=0)


@router.get(
    "/videos/stats",
    response_model=ProcessingStats,
    summary="Processing statistics",
    description="Count videos per pipeline status.",
)
async def get_processing_stats(
    service: StatusServiceDep,
    creator_id: Annotated[str | None, Query(description="Limit to one creator")] = None,
) -> ProcessingStats:
    return await service.get_processing_stats(creator_id)


@router.get(
    "/videos/{video_id}/status",
    response_model=ProcessingStatusResponse,
    summary="Processing status",
    description="Current stage, progress, timings and errors for a video.",
)
async def get_video_status(
    video_id: str,
    service: StatusServiceDep,
) -> ProcessingStatusResponse:
    return await service.get_status(video_id)


@router.post(
    "/videos/{video_id}/confirm",
    response_model=ProcessingStatusResponse,
    summary="Confirm upload",
    description="Confirm the binary is in storage and start transcription.",
)
async def confirm_upload(
    video_id: str,
    pipeline: PipelineServiceDep,
    status_service: StatusServiceDep,
) -> ProcessingStatusResponse:
    await pipeline.confirm_upload(video_id)
    return await status_service.get_status(video_id)


@router.post(
    "/videos/{video_id}/retry",
    response_model=RetryResponse,
    summary="Retry processing",
    description=(
        "Failed videos go back to pending within their retry budget; "
        "videos stuck in a processing stage get their stage event re-sent."
    ),
)
async def retry_video(
    video_id: str,
    pipeline: PipelineServiceDep,
    status_service: StatusServiceDep,
) -> RetryResponse:
    current = await status_service.get_status(video_id)
    if current.status == VideoStatus.FAILED.value:
        video = await pipeline.retry_failed(video_id)
        return RetryResponse(video_id=video_id, status=video.status.value)

    event_name = await pipeline.retry_stuck(video_id)
    return RetryResponse(
        video_id=video_id, status=current.status, event_sent=event_name.value
    )


@router.delete(
    "/videos/{video_id}",
    response_model=DeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete video",
    description="Soft delete by default; hard delete removes chunks and storage.",
)
async def delete_video(
    video_id: str,
    pipeline: PipelineServiceDep,
    hard: Annotated[bool, Query(description="Remove rows and storage")] = False,
) -> DeleteResponse:
    if hard:
        removed = await pipeline.hard_delete(video_id)
        return DeleteResponse(success=True, video_id=video_id, hard=True, chunks_removed=removed)

    await pipeline.soft_delete(video_id)
    return DeleteResponse(success=True, video_id=video_id, hard=False)
