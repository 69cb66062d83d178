"""Domain layer - pipeline models, state machine and recovery decisions."""

from chronos.domain.exceptions import (
    ArtifactStoreException,
    ChatSessionNotFoundException,
    DimensionMismatchException,
    DomainException,
    EmbeddingUnavailableException,
    InvalidStatusTransitionException,
    RetryLimitExceededException,
    VideoNotFoundException,
    VideoNotReadyException,
)
from chronos.domain.models import (
    TERMINAL_STATUSES,
    ChatSession,
    Chunk,
    LastError,
    ProcessingMetadata,
    Video,
    VideoStatus,
)
from chronos.domain.pipeline import ArtifactSnapshot, PipelineEvent, PipelineEventName
from chronos.domain.recovery import (
    PlanKind,
    RecoveryAction,
    RecoveryOutcome,
    RecoveryPlan,
    RecoveryPolicy,
    decide_remediation,
    plan_recovery,
)

__all__ = [
    # Exceptions
    "DomainException",
    "VideoNotFoundException",
    "ChatSessionNotFoundException",
    "VideoNotReadyException",
    "InvalidStatusTransitionException",
    "RetryLimitExceededException",
    "EmbeddingUnavailableException",
    "DimensionMismatchException",
    "ArtifactStoreException",
    # Models
    "Video",
    "VideoStatus",
    "ProcessingMetadata",
    "LastError",
    "TERMINAL_STATUSES",
    "Chunk",
    "ChatSession",
    # Pipeline contract
    "ArtifactSnapshot",
    "PipelineEvent",
    "PipelineEventName",
    # Recovery
    "RecoveryAction",
    "RecoveryOutcome",
    "RecoveryPlan",
    "RecoveryPolicy",
    "PlanKind",
    "decide_remediation",
    "plan_recovery",
]
