"""Recovery decisions for stuck videos.

Pure functions: they inspect a video snapshot and its persisted artifacts and
return the intended action. Performing the action (store writes, event
publishing) is the job of the recovery service.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from chronos.domain.models.video import Video
from chronos.domain.pipeline import ArtifactSnapshot


class RecoveryAction(str, Enum):
    """Remediation chosen by the decision matrix."""

    RETRY_EMBEDDINGS = "retry-embeddings"  # Re-run chunk + embed from transcript
    FIX_STATUS = "fix-status"  # Work is done, only the status is stale


class RecoveryOutcome(str, Enum):
    """Per-candidate result of a sweep."""

    RECOVERED = "recovered"
    FAILED = "failed"
    SKIPPED = "skipped"


class PlanKind(str, Enum):
    """What the executor should do with a candidate."""

    EXHAUST = "exhaust"  # Budget spent: mark the video failed
    COOLDOWN = "cooldown"  # Attempted too recently
    NO_ACTION = "no_action"  # Nothing safe to do, leave for an operator
    REMEDIATE = "remediate"  # Perform ``action``
    BUDGET_HOLD = "budget_hold"  # Budget spent on a manual run, status untouched


@dataclass(frozen=True)
class RecoveryPolicy:
    """Attempt budget and cooldown applied to every candidate."""

    max_attempts: int = 3
    min_retry_interval: timedelta = timedelta(hours=1)


@dataclass(frozen=True)
class RecoveryPlan:
    """Decision for one candidate, before any side effect."""

    kind: PlanKind
    reason: str
    action: RecoveryAction | None = None
    attempt: int = 0
    error_message: str | None = None

    @property
    def outcome(self) -> RecoveryOutcome:
        """Outcome to report if the plan is executed without error."""
        if self.kind == PlanKind.REMEDIATE:
            return RecoveryOutcome.RECOVERED
        if self.kind in (PlanKind.COOLDOWN, PlanKind.BUDGET_HOLD):
            return RecoveryOutcome.SKIPPED
        return RecoveryOutcome.FAILED


NO_VIABLE_ACTION_REASON = "No viable recovery action"
RECOVERY_TRIGGERED_REASON = "Recovery action triggered"


def decide_remediation(artifacts: ArtifactSnapshot) -> RecoveryAction | None:
    """Choose a remediation from persisted artifacts alone.

    Status is deliberately ignored: it can lag the true progress when a
    worker crashed between writing its rows and writing the status.

    Args:
        artifacts: Transcript presence and chunk counts for the video.

    Returns:
        The action to take, or None when there is no transcript to work from.
    """
    if not artifacts.has_transcript:
        return None
    if not artifacts.has_chunks:
        return RecoveryAction.RETRY_EMBEDDINGS
    if not artifacts.has_embeddings:
        return RecoveryAction.RETRY_EMBEDDINGS
    return RecoveryAction.FIX_STATUS


def cooldown_remaining(
    last_attempt: datetime | None,
    now: datetime,
    interval: timedelta,
) -> timedelta | None:
    """Time left before another attempt is allowed, or None if allowed now."""
    if last_attempt is None:
        return None
    elapsed = now - last_attempt
    if elapsed >= interval:
        return None
    return interval - elapsed


def plan_recovery(
    video: Video,
    artifacts: ArtifactSnapshot,
    now: datetime,
    policy: RecoveryPolicy | None = None,
    *,
    force: bool = False,
    manual: bool = False,
) -> RecoveryPlan:
    """Decide what to do with one stuck video.

    Checks run in order: attempt budget, cooldown, decision matrix.

    Args:
        video: The candidate snapshot.
        artifacts: Its persisted artifacts.
        now: Reference time for the cooldown check.
        policy: Budget and cooldown. Defaults to 3 attempts / 1 hour.
        force: Bypass the budget and cooldown checks.
        manual: Operator-triggered run. A spent budget is reported as
            skipped instead of failing the video.

    Returns:
        The plan for the executor.
    """
    policy = policy or RecoveryPolicy()
    attempts = video.metadata.recovery_attempts
    hint = ". Use force=true to override." if manual else ""

    if not force and attempts >= policy.max_attempts:
        reason = f"Max recovery attempts ({policy.max_attempts}) reached{hint}"
        if manual:
            return RecoveryPlan(kind=PlanKind.BUDGET_HOLD, reason=reason)
        return RecoveryPlan(
            kind=PlanKind.EXHAUST,
            reason=reason,
            error_message=f"Auto-recovery failed after {attempts} attempts",
        )

    if not force:
        remaining = cooldown_remaining(
            video.metadata.last_recovery_attempt, now, policy.min_retry_interval
        )
        if remaining is not None:
            minutes = math.ceil(remaining.total_seconds() / 60)
            return RecoveryPlan(
                kind=PlanKind.COOLDOWN,
                reason=f"Rate limited: retry in {minutes} minutes{hint}",
            )

    action = decide_remediation(artifacts)
    if action is None:
        return RecoveryPlan(kind=PlanKind.NO_ACTION, reason=NO_VIABLE_ACTION_REASON)

    return RecoveryPlan(
        kind=PlanKind.REMEDIATE,
        reason=RECOVERY_TRIGGERED_REASON,
        action=action,
        attempt=attempts + 1,
    )
