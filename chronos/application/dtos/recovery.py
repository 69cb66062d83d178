"""DTOs for stuck-video recovery."""

from datetime import datetime
from typing import Self

from pydantic import BaseModel, Field

from chronos.domain.recovery import RecoveryAction, RecoveryOutcome


class RecoveryOptions(BaseModel):
    """Options for an operator-triggered recovery run."""

    force: bool = Field(
        default=False,
        description="Bypass the attempt budget and cooldown",
    )
    video_ids: list[str] | None = Field(
        default=None,
        description="Recover these videos instead of selecting stuck ones",
    )
    dry_run: bool = Field(
        default=False,
        description="Report proposed actions without writing anything",
    )


class RecoveryResult(BaseModel):
    """Outcome for one candidate."""

    video_id: str
    outcome: RecoveryOutcome
    reason: str
    action: RecoveryAction | None = None


class RecoverySweepSummary(BaseModel):
    """Externally visible result of one sweep."""

    success: bool = True
    recovered: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0
    results: list[RecoveryResult] = Field(default_factory=list)
    message: str | None = None
    execution_time_ms: int = 0
    options: RecoveryOptions | None = None

    @classmethod
    def from_results(
        cls,
        results: list[RecoveryResult],
        execution_time_ms: int,
        options: RecoveryOptions | None = None,
    ) -> Self:
        """Aggregate per-candidate results into counts."""
        return cls(
            recovered=sum(r.outcome == RecoveryOutcome.RECOVERED for r in results),
            failed=sum(r.outcome == RecoveryOutcome.FAILED for r in results),
            skipped=sum(r.outcome == RecoveryOutcome.SKIPPED for r in results),
            total=len(results),
            results=results,
            execution_time_ms=execution_time_ms,
            options=options,
        )


class DryRunEntry(BaseModel):
    """What a recovery run would do to one video."""

    video_id: str
    title: str
    status: str
    updated_at: datetime
    would_recover: bool
    proposed_action: RecoveryAction | None
    recovery_attempts: int
    reason: str


class DryRunSummary(BaseModel):
    """Result of a dry run."""

    success: bool = True
    dry_run: bool = True
    total: int = 0
    would_recover: int = 0
    results: list[DryRunEntry] = Field(default_factory=list)
    message: str | None = None
    execution_time_ms: int = 0


class StuckVideoInfo(BaseModel):
    """A stuck video as listed for operators."""

    id: str
    title: str
    status: str
    creator_id: str
    created_at: datetime
    updated_at: datetime
    stuck_duration_minutes: int
    timeout_minutes: int
    has_transcript: bool
    chunk_count: int
    embedded_chunk_count: int
    recovery_attempts: int
    transcript_preview: str | None = None
    error_message: str | None = None


class VideoDiagnostics(BaseModel):
    """Everything an operator needs to decide on a stuck video."""

    video_id: str
    title: str
    status: str
    is_stuck: bool
    minutes_in_stage: int
    timeout_minutes: int
    has_transcript: bool
    transcript_length: int
    chunk_count: int
    embedded_chunk_count: int
    recovery_attempts: int
    last_recovery_attempt: datetime | None = None
    last_recovery_action: str | None = None
    proposed_action: RecoveryAction | None = None
    cooldown_remaining_minutes: int | None = None
    budget_exhausted: bool = False
    error_message: str | None = None
