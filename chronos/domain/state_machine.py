"""Video processing state machine.

Pure functions over a video's status and timestamps. Nothing here touches the
store, and nothing raises on an unrecognised status: status is a persisted
value and must stay renderable even if the enum evolves.

Happy path::

    pending -> uploading -> transcribing -> processing -> embedding -> completed

``failed`` is reachable from every non-terminal status; ``failed -> pending``
is the manual retry edge.
"""

from dataclasses import dataclass
from datetime import UTC, datetime

from chronos.domain.models.video import TERMINAL_STATUSES, VideoStatus


@dataclass(frozen=True)
class StageMetadata:
    """Static description of one pipeline stage."""

    name: str
    description: str
    retryable: bool
    max_retries: int
    timeout_minutes: int
    expected_minutes: float


HAPPY_PATH: tuple[VideoStatus, ...] = (
    VideoStatus.PENDING,
    VideoStatus.UPLOADING,
    VideoStatus.TRANSCRIBING,
    VideoStatus.PROCESSING,
    VideoStatus.EMBEDDING,
    VideoStatus.COMPLETED,
)

VALID_TRANSITIONS: dict[VideoStatus, frozenset[VideoStatus]] = {
    VideoStatus.PENDING: frozenset({VideoStatus.UPLOADING, VideoStatus.FAILED}),
    VideoStatus.UPLOADING: frozenset({VideoStatus.TRANSCRIBING, VideoStatus.FAILED}),
    VideoStatus.TRANSCRIBING: frozenset({VideoStatus.PROCESSING, VideoStatus.FAILED}),
    VideoStatus.PROCESSING: frozenset({VideoStatus.EMBEDDING, VideoStatus.FAILED}),
    VideoStatus.EMBEDDING: frozenset({VideoStatus.COMPLETED, VideoStatus.FAILED}),
    VideoStatus.COMPLETED: frozenset(),
    VideoStatus.FAILED: frozenset({VideoStatus.PENDING}),
}

_PROGRESS: dict[VideoStatus, int] = {
    VideoStatus.PENDING: 0,
    VideoStatus.UPLOADING: 10,
    VideoStatus.TRANSCRIBING: 30,
    VideoStatus.PROCESSING: 50,
    VideoStatus.EMBEDDING: 70,
    VideoStatus.COMPLETED: 100,
    VideoStatus.FAILED: 0,
}

_STAGES: dict[VideoStatus, StageMetadata] = {
    VideoStatus.PENDING: StageMetadata(
        name="Pending",
        description="Video is queued for processing",
        retryable=False,
        max_retries=0,
        timeout_minutes=60,
        expected_minutes=1,
    ),
    VideoStatus.UPLOADING: StageMetadata(
        name="Uploading",
        description="Video is being uploaded to storage",
        retryable=True,
        max_retries=3,
        timeout_minutes=30,
        expected_minutes=5,
    ),
    VideoStatus.TRANSCRIBING: StageMetadata(
        name="Transcribing",
        description="Generating transcript from the audio track",
        retryable=True,
        max_retries=3,
        timeout_minutes=60,
        expected_minutes=10,
    ),
    VideoStatus.PROCESSING: StageMetadata(
        name="Processing",
        description="Chunking transcript into segments",
        retryable=True,
        max_retries=3,
        timeout_minutes=15,
        expected_minutes=2,
    ),
    VideoStatus.EMBEDDING: StageMetadata(
        name="Embedding",
        description="Generating vector embeddings",
        retryable=True,
        max_retries=3,
        timeout_minutes=30,
        expected_minutes=5,
    ),
    VideoStatus.COMPLETED: StageMetadata(
        name="Completed",
        description="Video processing completed successfully",
        retryable=False,
        max_retries=0,
        timeout_minutes=0,
        expected_minutes=0,
    ),
    VideoStatus.FAILED: StageMetadata(
        name="Failed",
        description="Processing failed with errors",
        retryable=False,
        max_retries=0,
        timeout_minutes=0,
        expected_minutes=0,
    ),
}

_NEXT_STEPS: dict[VideoStatus, tuple[str, ...]] = {
    VideoStatus.PENDING: ("Video will be uploaded to storage",),
    VideoStatus.UPLOADING: ("Upload will complete", "Transcription will begin"),
    VideoStatus.TRANSCRIBING: (
        "Transcript will be generated",
        "Text will be chunked",
    ),
    VideoStatus.PROCESSING: (
        "Transcript chunks will be created",
        "Embeddings will be generated",
    ),
    VideoStatus.EMBEDDING: (
        "Vector embeddings will be stored",
        "Processing will complete",
    ),
    VideoStatus.COMPLETED: ("Video is ready for AI chat",),
    VideoStatus.FAILED: ("Retry processing", "Check error logs", "Contact support"),
}

UNKNOWN_STAGE = StageMetadata(
    name="Unknown",
    description="Unknown processing stage",
    retryable=False,
    max_retries=0,
    timeout_minutes=0,
    expected_minutes=0,
)

# Adding a status must be reflected in every table above.
for _table in (VALID_TRANSITIONS, _PROGRESS, _STAGES, _NEXT_STEPS):
    _missing = set(VideoStatus) - set(_table)
    if _missing:
        raise RuntimeError(f"State machine table missing statuses: {_missing}")


def coerce_status(status: VideoStatus | str | None) -> VideoStatus | None:
    """Parse a persisted status value, returning None when unrecognised."""
    if isinstance(status, VideoStatus):
        return status
    try:
        return VideoStatus(status)
    except ValueError:
        return None


def progress(status: VideoStatus | str | None) -> int:
    """Progress percentage for UI estimation. Unknown statuses map to 0."""
    parsed = coerce_status(status)
    return _PROGRESS[parsed] if parsed is not None else 0


def is_terminal(status: VideoStatus | str | None) -> bool:
    """True for ``completed`` and ``failed`` only."""
    return coerce_status(status) in TERMINAL_STATUSES


def stage_metadata(status: VideoStatus | str | None) -> StageMetadata:
    """Static metadata for the stage, or an "Unknown" stage description."""
    parsed = coerce_status(status)
    return _STAGES[parsed] if parsed is not None else UNKNOWN_STAGE


def next_steps(status: VideoStatus | str | None) -> list[str]:
    """Human-readable next steps keyed purely off status."""
    parsed = coerce_status(status)
    return list(_NEXT_STEPS[parsed]) if parsed is not None else []


def next_states(status: VideoStatus | str | None) -> list[VideoStatus]:
    """Statuses reachable from ``status`` in one step, in a stable order."""
    parsed = coerce_status(status)
    if parsed is None:
        return []
    allowed = VALID_TRANSITIONS[parsed]
    return [s for s in VideoStatus if s in allowed]


def is_valid_transition(
    current: VideoStatus | str | None,
    new: VideoStatus | str | None,
) -> bool:
    """Check whether ``current -> new`` is an edge of the pipeline."""
    parsed_current = coerce_status(current)
    parsed_new = coerce_status(new)
    if parsed_current is None or parsed_new is None:
        return False
    return parsed_new in VALID_TRANSITIONS[parsed_current]


def estimated_time_remaining(
    status: VideoStatus | str | None,
    processing_started_at: datetime | None,
    now: datetime | None = None,
) -> float | None:
    """Estimate minutes left until completion.

    Sums the expected duration of the current and remaining happy-path stages
    and subtracts the time already spent since processing started.

    Args:
        status: Current status.
        processing_started_at: When processing began, if it has.
        now: Reference time. Defaults to the current UTC time.

    Returns:
        Remaining minutes (never negative), or None when terminal, unknown,
        or not started.
    """
    parsed = coerce_status(status)
    if parsed is None or parsed in TERMINAL_STATUSES or processing_started_at is None:
        return None

    reference = now or datetime.now(UTC)
    elapsed_minutes = (reference - processing_started_at).total_seconds() / 60
    position = HAPPY_PATH.index(parsed)
    expected_done = sum(_STAGES[s].expected_minutes for s in HAPPY_PATH[:position])
    expected_left = sum(_STAGES[s].expected_minutes for s in HAPPY_PATH[position:])
    # Only time beyond the expected cost of finished stages eats into what's left
    overrun = max(0.0, elapsed_minutes - expected_done)
    return max(0.0, expected_left - overrun)


def processing_duration(
    started_at: datetime | None,
    completed_at: datetime | None,
) -> int | None:
    """Whole seconds between start and completion; None unless both are set."""
    if started_at is None or completed_at is None:
        return None
    return max(0, int((completed_at - started_at).total_seconds()))
