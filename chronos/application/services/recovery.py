"""Recovery engine for videos stuck in a pipeline stage."""

import asyncio
import math
import time
from datetime import UTC, datetime

from chronos.application.dtos.recovery import (
    DryRunEntry,
    DryRunSummary,
    RecoveryOptions,
    RecoveryResult,
    RecoverySweepSummary,
    StuckVideoInfo,
    VideoDiagnostics,
)
from chronos.commons.settings.models import RecoverySettings, StageSettings
from chronos.commons.telemetry import (
    LogContext,
    get_correlation_id,
    get_logger,
    set_correlation_id,
)
from chronos.domain import state_machine
from chronos.domain.exceptions import (
    ArtifactStoreException,
    DomainException,
    VideoNotFoundException,
)
from chronos.domain.models.video import Video, VideoStatus
from chronos.domain.pipeline import ArtifactSnapshot, PipelineEvent
from chronos.domain.recovery import (
    NO_VIABLE_ACTION_REASON,
    PlanKind,
    RecoveryAction,
    RecoveryOutcome,
    RecoveryPlan,
    RecoveryPolicy,
    cooldown_remaining,
    decide_remediation,
    plan_recovery,
)
from chronos.infrastructure.events.base import EventDispatcherBase
from chronos.infrastructure.repositories import ChunkRepository, VideoRepository

NO_STUCK_VIDEOS_MESSAGE = "No stuck videos found"
NO_MATCHING_VIDEOS_MESSAGE = "No matching videos found"
STATUS_CHANGED_REASON = "Status changed by another writer during recovery"
TRANSCRIPT_PREVIEW_CHARS = 200


def resolve_stage_timeouts(stages: StageSettings | None = None) -> dict[VideoStatus, int]:
    """Timeout in minutes for every non-terminal status, with overrides applied."""
    overrides = stages.timeout_overrides if stages else {}
    timeouts: dict[VideoStatus, int] = {}
    for status in VideoStatus:
        if state_machine.is_terminal(status):
            continue
        timeouts[status] = overrides.get(
            status.value, state_machine.stage_metadata(status).timeout_minutes
        )
    return timeouts


class RecoveryService:
    """Finds stuck videos and re-drives them.

    Decisions come from ``chronos.domain.recovery``; this service only
    gathers the inputs (video row, artifact counts) and performs the chosen
    effect. Candidates are handled concurrently and independently: one
    failing candidate never aborts the sweep.
    """

    def __init__(
        self,
        videos: VideoRepository,
        chunks: ChunkRepository,
        dispatcher: EventDispatcherBase,
        settings: RecoverySettings | None = None,
        stages: StageSettings | None = None,
    ) -> None:
        """Initialize the recovery service.

        Args:
            videos: Video row accessor.
            chunks: Chunk row accessor.
            dispatcher: Event publisher for re-drive events.
            settings: Budget, cooldown, batch size and concurrency.
            stages: Per-stage timeout overrides.
        """
        self._videos = videos
        self._chunks = chunks
        self._dispatcher = dispatcher
        self._settings = settings or RecoverySettings()
        self._timeouts = resolve_stage_timeouts(stages)
        self._policy = RecoveryPolicy(
            max_attempts=self._settings.max_attempts,
            min_retry_interval=self._settings.min_retry_interval,
        )
        self._logger = get_logger(__name__)

    @property
    def policy(self) -> RecoveryPolicy:
        return self._policy

    @property
    def timeouts(self) -> dict[VideoStatus, int]:
        return dict(self._timeouts)

    # =========================================================================
    # Sweeps
    # =========================================================================

    async def sweep(self, now: datetime | None = None) -> RecoverySweepSummary:
        """Run one scheduled sweep over every stuck video.

        Args:
            now: Reference time. Defaults to the current UTC time.

        Returns:
            Per-candidate results and aggregate counts.

        Raises:
            ArtifactStoreException: If candidates cannot be selected.
        """
        started = time.perf_counter()
        now = now or datetime.now(UTC)
        set_correlation_id(get_correlation_id())

        candidates = await self._select_stuck(now)
        self._logger.info(
            "Recovery sweep started",
            extra={"candidates": len(candidates)},
        )
        if not candidates:
            return RecoverySweepSummary(
                message=NO_STUCK_VIDEOS_MESSAGE,
                execution_time_ms=_elapsed_ms(started),
            )

        results = await self._process_all(candidates, now, force=False, manual=False)
        summary = RecoverySweepSummary.from_results(results, _elapsed_ms(started))
        self._log_summary("Recovery sweep completed", summary)
        return summary

    async def recover(
        self,
        options: RecoveryOptions,
        now: datetime | None = None,
    ) -> RecoverySweepSummary | DryRunSummary:
        """Operator-triggered recovery.

        Unlike the scheduled sweep, a spent budget is reported as skipped
        rather than failing the video, and ``force`` bypasses the budget and
        cooldown checks.

        Args:
            options: Target videos, force and dry-run flags.
            now: Reference time. Defaults to the current UTC time.

        Returns:
            A sweep summary, or a dry-run summary when ``dry_run`` is set.
        """
        started = time.perf_counter()
        now = now or datetime.now(UTC)
        set_correlation_id(get_correlation_id())

        if options.video_ids:
            candidates = await self._select_explicit(options.video_ids)
            empty_message = NO_MATCHING_VIDEOS_MESSAGE
        else:
            candidates = await self._select_stuck(now)
            empty_message = NO_STUCK_VIDEOS_MESSAGE

        self._logger.info(
            "Manual recovery started",
            extra={
                "candidates": len(candidates),
                "force": options.force,
                "dry_run": options.dry_run,
                "targeted": bool(options.video_ids),
            },
        )

        if options.dry_run:
            entries = await asyncio.gather(*(self._dry_run_entry(v) for v in candidates))
            return DryRunSummary(
                total=len(entries),
                would_recover=sum(e.would_recover for e in entries),
                results=list(entries),
                message=None if entries else empty_message,
                execution_time_ms=_elapsed_ms(started),
            )

        if not candidates:
            return RecoverySweepSummary(
                message=empty_message,
                execution_time_ms=_elapsed_ms(started),
                options=options,
            )

        results = await self._process_all(
            candidates, now, force=options.force, manual=True
        )
        summary = RecoverySweepSummary.from_results(
            results, _elapsed_ms(started), options=options
        )
        self._log_summary("Manual recovery completed", summary)
        return summary

    # =========================================================================
    # Operator views
    # =========================================================================

    async def list_stuck(self, now: datetime | None = None) -> list[StuckVideoInfo]:
        """Stuck videos with artifact counts, longest stuck first."""
        now = now or datetime.now(UTC)
        candidates = await self._select_stuck(now)
        snapshots = await asyncio.gather(*(self.snapshot(v) for v in candidates))

        infos = [
            StuckVideoInfo(
                id=video.id,
                title=video.title,
                status=video.status.value,
                creator_id=video.creator_id,
                created_at=video.created_at,
                updated_at=video.updated_at,
                stuck_duration_minutes=int(video.minutes_in_stage(now)),
                timeout_minutes=self._timeouts.get(video.status, 0),
                has_transcript=artifacts.has_transcript,
                chunk_count=artifacts.chunk_count,
                embedded_chunk_count=artifacts.embedded_chunk_count,
                recovery_attempts=video.metadata.recovery_attempts,
                transcript_preview=_preview(video.transcript),
                error_message=video.error_message,
            )
            for video, artifacts in zip(candidates, snapshots, strict=True)
        ]
        infos.sort(key=lambda info: info.stuck_duration_minutes, reverse=True)
        return infos

    async def diagnose(
        self,
        video_id: str,
        now: datetime | None = None,
    ) -> VideoDiagnostics:
        """Explain what recovery would do with one video and why.

        Raises:
            VideoNotFoundException: If the video does not exist.
        """
        now = now or datetime.now(UTC)
        video = await self._videos.get(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)

        artifacts = await self.snapshot(video)
        timeout = self._timeouts.get(video.status, 0)
        minutes = video.minutes_in_stage(now)
        remaining = cooldown_remaining(
            video.metadata.last_recovery_attempt, now, self._policy.min_retry_interval
        )

        return VideoDiagnostics(
            video_id=video.id,
            title=video.title,
            status=video.status.value,
            is_stuck=not video.is_terminal and timeout > 0 and minutes > timeout,
            minutes_in_stage=int(minutes),
            timeout_minutes=timeout,
            has_transcript=artifacts.has_transcript,
            transcript_length=len(video.transcript or ""),
            chunk_count=artifacts.chunk_count,
            embedded_chunk_count=artifacts.embedded_chunk_count,
            recovery_attempts=video.metadata.recovery_attempts,
            last_recovery_attempt=video.metadata.last_recovery_attempt,
            last_recovery_action=video.metadata.last_recovery_action,
            proposed_action=decide_remediation(artifacts),
            cooldown_remaining_minutes=(
                math.ceil(remaining.total_seconds() / 60) if remaining else None
            ),
            budget_exhausted=(
                video.metadata.recovery_attempts >= self._policy.max_attempts
            ),
            error_message=video.error_message,
        )

    # =========================================================================
    # Decision inputs and effects
    # =========================================================================

    async def snapshot(self, video: Video) -> ArtifactSnapshot:
        """Read the persisted downstream artifacts of a video."""
        chunk_count, embedded = await asyncio.gather(
            self._chunks.count(video.id),
            self._chunks.count_embedded(video.id),
        )
        return ArtifactSnapshot(
            has_transcript=video.has_transcript,
            chunk_count=chunk_count,
            embedded_chunk_count=embedded,
        )

    async def execute(
        self,
        video: Video,
        plan: RecoveryPlan,
        now: datetime,
    ) -> RecoveryResult:
        """Perform the side effect of a plan and report its outcome.

        Args:
            video: The candidate as read at selection time.
            plan: Decision from ``plan_recovery``.
            now: Timestamp to stamp on writes.

        Returns:
            Result for the sweep summary.
        """
        if plan.kind == PlanKind.EXHAUST:
            written = await self._videos.update_if_status(
                video.id,
                video.status,
                {
                    "status": VideoStatus.FAILED,
                    "error_message": plan.error_message,
                    "processing_completed_at": now,
                    "updated_at": now,
                },
            )
            if not written:
                return _result(video, RecoveryOutcome.SKIPPED, STATUS_CHANGED_REASON)
            self._logger.warning(
                "Recovery budget exhausted, video marked failed",
                extra={"attempts": video.metadata.recovery_attempts},
            )
            return _result(video, RecoveryOutcome.FAILED, plan.reason)

        if plan.kind == PlanKind.NO_ACTION:
            self._logger.warning("No viable recovery action, transcript missing")
            return _result(video, RecoveryOutcome.FAILED, plan.reason)

        if plan.kind != PlanKind.REMEDIATE or plan.action is None:
            return _result(video, plan.outcome, plan.reason)

        recorded = await self._videos.record_recovery_attempt(
            video.id,
            status=video.status,
            previous_attempts=video.metadata.recovery_attempts,
            attempt=plan.attempt,
            action=plan.action.value,
            now=now,
        )
        if not recorded:
            if await self._videos.get(video.id) is None:
                raise VideoNotFoundException(video.id)
            return _result(video, RecoveryOutcome.SKIPPED, STATUS_CHANGED_REASON)

        if plan.action == RecoveryAction.RETRY_EMBEDDINGS:
            await self._dispatcher.send(
                PipelineEvent.transcription_completed(
                    video_id=video.id,
                    creator_id=video.creator_id,
                    transcript=video.transcript or "",
                    skip_if_exists=False,
                )
            )
        else:
            written = await self._videos.update_if_status(
                video.id,
                video.status,
                {
                    "status": VideoStatus.COMPLETED,
                    "processing_completed_at": now,
                    "updated_at": now,
                    "error_message": None,
                },
            )
            if not written:
                return _result(
                    video, RecoveryOutcome.SKIPPED, STATUS_CHANGED_REASON, plan.action
                )

        self._logger.info(
            "Recovery action triggered",
            extra={"action": plan.action.value, "attempt": plan.attempt},
        )
        return _result(video, RecoveryOutcome.RECOVERED, plan.reason, plan.action)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _select_stuck(self, now: datetime) -> list[Video]:
        try:
            return await self._videos.find_stuck_candidates(
                self._timeouts, now, limit=self._settings.candidate_limit
            )
        except DomainException:
            raise
        except Exception as e:
            self._logger.error(
                "Stuck video selection failed",
                exc_info=True,
                extra={"error": str(e)},
            )
            raise ArtifactStoreException("select_candidates", str(e)) from e

    async def _select_explicit(self, video_ids: list[str]) -> list[Video]:
        try:
            return await self._videos.list_by_ids(video_ids)
        except Exception as e:
            raise ArtifactStoreException("select_candidates", str(e)) from e

    async def _process_all(
        self,
        candidates: list[Video],
        now: datetime,
        *,
        force: bool,
        manual: bool,
    ) -> list[RecoveryResult]:
        semaphore = asyncio.Semaphore(self._settings.concurrency)

        async def guarded(video: Video) -> RecoveryResult:
            async with semaphore:
                with LogContext(video_id=video.id, status=video.status.value):
                    try:
                        return await self._process(video, now, force, manual)
                    except Exception as e:
                        self._logger.error(
                            "Failed to recover video",
                            exc_info=True,
                            extra={"error": str(e)},
                        )
                        return _result(
                            video, RecoveryOutcome.FAILED, str(e) or type(e).__name__
                        )

        return list(await asyncio.gather(*(guarded(v) for v in candidates)))

    async def _process(
        self,
        video: Video,
        now: datetime,
        force: bool,
        manual: bool,
    ) -> RecoveryResult:
        if video.is_terminal:
            return _result(
                video, RecoveryOutcome.SKIPPED, f"Video is already {video.status.value}"
            )
        artifacts = await self.snapshot(video)
        plan = plan_recovery(
            video, artifacts, now, self._policy, force=force, manual=manual
        )
        return await self.execute(video, plan, now)

    async def _dry_run_entry(self, video: Video) -> DryRunEntry:
        action = decide_remediation(await self.snapshot(video))
        attempts = video.metadata.recovery_attempts
        return DryRunEntry(
            video_id=video.id,
            title=video.title,
            status=video.status.value,
            updated_at=video.updated_at,
            would_recover=action is not None and attempts < self._policy.max_attempts,
            proposed_action=action,
            recovery_attempts=attempts,
            reason=f"Would trigger: {action.value}" if action else NO_VIABLE_ACTION_REASON,
        )

    def _log_summary(self, message: str, summary: RecoverySweepSummary) -> None:
        self._logger.info(
            message,
            extra={
                "recovered": summary.recovered,
                "failed": summary.failed,
                "skipped": summary.skipped,
                "total": summary.total,
                "execution_time_ms": summary.execution_time_ms,
            },
        )


def _result(
    video: Video,
    outcome: RecoveryOutcome,
    reason: str,
    action: RecoveryAction | None = None,
) -> RecoveryResult:
    return RecoveryResult(video_id=video.id, outcome=outcome, reason=reason, action=action)


def _preview(transcript: str | None) -> str | None:
    if not transcript:
        return None
    if len(transcript) <= TRANSCRIPT_PREVIEW_CHARS:
        return transcript
    return transcript[:TRANSCRIPT_PREVIEW_CHARS] + "..."


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
