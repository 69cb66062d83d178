"""Stuck-video recovery endpoints for the scheduler and operators."""

from datetime import UTC, datetime

from fastapi import APIRouter
from pydantic import BaseModel, Field

from chronos.api.dependencies import RecoveryServiceDep
from chronos.application.dtos.recovery import (
    DryRunSummary,
    RecoveryOptions,
    RecoverySweepSummary,
    StuckVideoInfo,
    VideoDiagnostics,
)

router = APIRouter()


class StuckVideosResponse(BaseModel):
    """Stuck videos, longest stuck first."""

    count: int = Field(ge=0)
    videos: list[StuckVideoInfo] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))


@router.get(
    "/cron/recover-stuck-videos",
    response_model=RecoverySweepSummary,
    summary="Scheduled recovery sweep",
    description=(
        "Run one sweep over stuck videos. Partial failures are reported per "
        "video; only a store failure during selection fails the request."
    ),
)
async def run_recovery_sweep(service: RecoveryServiceDep) -> RecoverySweepSummary:
    return await service.sweep()


@router.post(
    "/admin/recover-stuck-videos",
    response_model=RecoverySweepSummary | DryRunSummary,
    summary="Manual recovery",
    description="Recover stuck or selected videos, optionally forced or as a dry run.",
)
async def recover_stuck_videos(
    service: RecoveryServiceDep,
    options: RecoveryOptions | None = None,
) -> RecoverySweepSummary | DryRunSummary:
    return await service.recover(options or RecoveryOptions())


@router.get(
    "/admin/stuck-videos",
    response_model=StuckVideosResponse,
    summary="List stuck videos",
)
async def list_stuck_videos(service: RecoveryServiceDep) -> StuckVideosResponse:
    videos = await service.list_stuck()
    return StuckVideosResponse(count=len(videos), videos=videos)


@router.get(
    "/admin/videos/{video_id}/diagnostics",
    response_model=VideoDiagnostics,
    summary="Video diagnostics",
    description="Artifact counts, stuck flag and the action recovery would take.",
)
async def get_video_diagnostics(
    video_id: str,
    service: RecoveryServiceDep,
) -> VideoDiagnostics:
    return await service.diagnose(video_id)
