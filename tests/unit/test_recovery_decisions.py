"""Unit tests for the recovery decision matrix and planning."""

from datetime import UTC, datetime, timedelta
from itertools import product

import pytest

from chronos.domain.models.video import ProcessingMetadata, Video, VideoStatus
from chronos.domain.pipeline import ArtifactSnapshot
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

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


def _video(attempts: int = 0, last_attempt: datetime | None = None) -> Video:
    return Video(
        creator_id="creator-1",
        title="Stuck video",
        status=VideoStatus.EMBEDDING,
        transcript="Welcome to the course.",
        updated_at=NOW - timedelta(hours=2),
        metadata=ProcessingMetadata(
            recovery_attempts=attempts,
            last_recovery_attempt=last_attempt,
        ),
    )


def _artifacts(transcript: bool = True, chunks: int = 2, embedded: int = 2):
    return ArtifactSnapshot(
        has_transcript=transcript,
        chunk_count=chunks,
        embedded_chunk_count=embedded,
    )


class TestDecideRemediation:
    """Exhaustive tests over (transcript, chunks, embeddings)."""

    @pytest.mark.parametrize(
        ("has_transcript", "has_chunks", "has_embeddings"),
        list(product([False, True], repeat=3)),
    )
    def test_matrix(self, has_transcript, has_chunks, has_embeddings):
        chunks = 2 if has_chunks else 0
        embedded = (1 if has_embeddings else 0) if has_chunks else 0
        artifacts = _artifacts(has_transcript, chunks, embedded)

        action = decide_remediation(artifacts)

        if not has_transcript:
            assert action is None
        elif not has_chunks or not has_embeddings:
            assert action == RecoveryAction.RETRY_EMBEDDINGS
        else:
            assert action == RecoveryAction.FIX_STATUS

    def test_partial_embeddings_count_as_embedded(self):
        assert decide_remediation(_artifacts(chunks=10, embedded=1)) == (
            RecoveryAction.FIX_STATUS
        )

    def test_action_wire_values(self):
        assert RecoveryAction.RETRY_EMBEDDINGS.value == "retry-embeddings"
        assert RecoveryAction.FIX_STATUS.value == "fix-status"


class TestArtifactSnapshot:
    """Tests for chunked/embedded predicates."""

    def test_embedded_requires_chunks(self):
        snapshot = _artifacts(chunks=3, embedded=2)
        assert snapshot.is_chunked
        assert snapshot.is_embedded
        assert snapshot.pending_embeddings == 1

    def test_not_chunked(self):
        snapshot = _artifacts(chunks=0, embedded=0)
        assert not snapshot.is_chunked
        assert not snapshot.is_embedded


class TestCooldownRemaining:
    """Tests for cooldown_remaining."""

    def test_never_attempted(self):
        assert cooldown_remaining(None, NOW, timedelta(hours=1)) is None

    def test_inside_window(self):
        last = NOW - timedelta(minutes=20)
        assert cooldown_remaining(last, NOW, timedelta(hours=1)) == timedelta(minutes=40)

    def test_window_elapsed(self):
        last = NOW - timedelta(hours=1)
        assert cooldown_remaining(last, NOW, timedelta(hours=1)) is None


class TestPlanRecovery:
    """Tests for plan_recovery ordering and outcomes."""

    def test_remediate_increments_attempt(self):
        plan = plan_recovery(_video(attempts=1), _artifacts(), NOW)
        assert plan.kind == PlanKind.REMEDIATE
        assert plan.action == RecoveryAction.FIX_STATUS
        assert plan.attempt == 2
        assert plan.outcome == RecoveryOutcome.RECOVERED

    def test_budget_exhausted_on_scheduled_sweep(self):
        plan = plan_recovery(_video(attempts=3), _artifacts(), NOW)
        assert plan.kind == PlanKind.EXHAUST
        assert plan.reason == "Max recovery attempts (3) reached"
        assert plan.error_message == "Auto-recovery failed after 3 attempts"
        assert plan.outcome == RecoveryOutcome.FAILED

    def test_budget_checked_before_cooldown(self):
        video = _video(attempts=3, last_attempt=NOW - timedelta(minutes=5))
        assert plan_recovery(video, _artifacts(), NOW).kind == PlanKind.EXHAUST

    def test_budget_exhausted_on_manual_run_is_held(self):
        plan = plan_recovery(_video(attempts=3), _artifacts(), NOW, manual=True)
        assert plan.kind == PlanKind.BUDGET_HOLD
        assert plan.reason.endswith("Use force=true to override.")
        assert plan.outcome == RecoveryOutcome.SKIPPED

    def test_cooldown(self):
        video = _video(attempts=1, last_attempt=NOW - timedelta(minutes=30, seconds=10))
        plan = plan_recovery(video, _artifacts(), NOW)
        assert plan.kind == PlanKind.COOLDOWN
        assert plan.reason == "Rate limited: retry in 30 minutes"
        assert plan.outcome == RecoveryOutcome.SKIPPED

    def test_cooldown_rounds_up(self):
        video = _video(attempts=1, last_attempt=NOW - timedelta(minutes=59, seconds=30))
        plan = plan_recovery(video, _artifacts(), NOW)
        assert plan.reason == "Rate limited: retry in 1 minutes"

    def test_no_transcript_is_no_action(self):
        plan = plan_recovery(_video(), _artifacts(transcript=False), NOW)
        assert plan.kind == PlanKind.NO_ACTION
        assert plan.reason == NO_VIABLE_ACTION_REASON
        assert plan.outcome == RecoveryOutcome.FAILED
        assert plan.attempt == 0

    def test_force_bypasses_budget_and_cooldown(self):
        video = _video(attempts=5, last_attempt=NOW - timedelta(minutes=1))
        plan = plan_recovery(video, _artifacts(embedded=0), NOW, force=True, manual=True)
        assert plan.kind == PlanKind.REMEDIATE
        assert plan.action == RecoveryAction.RETRY_EMBEDDINGS
        assert plan.attempt == 6

    def test_custom_policy(self):
        policy = RecoveryPolicy(max_attempts=1, min_retry_interval=timedelta(minutes=5))
        video = _video(attempts=0, last_attempt=NOW - timedelta(minutes=10))
        assert plan_recovery(video, _artifacts(), NOW, policy).kind == PlanKind.REMEDIATE

        spent = _video(attempts=1)
        assert plan_recovery(spent, _artifacts(), NOW, policy).kind == PlanKind.EXHAUST

    def test_plan_is_immutable(self):
        plan = RecoveryPlan(kind=PlanKind.NO_ACTION, reason="x")
        with pytest.raises(AttributeError):
            plan.reason = "y"  # type: ignore[misc]
