"""Data Transfer Objects for application layer."""

from chronos.application.dtos.recovery import (
    DryRunEntry,
    DryRunSummary,
    RecoveryOptions,
    RecoveryResult,
    RecoverySweepSummary,
    StuckVideoInfo,
    VideoDiagnostics,
)
from chronos.application.dtos.retrieval import (
    CostBreakdown,
    RetrievalResponse,
    RetrievalUsage,
    RetrievedChunk,
)
from chronos.application.dtos.status import (
    ProcessingDetails,
    ProcessingError,
    ProcessingStats,
    ProcessingStatusResponse,
)

__all__ = [
    # Recovery DTOs
    "RecoveryOptions",
    "RecoveryResult",
    "RecoverySweepSummary",
    "DryRunEntry",
    "DryRunSummary",
    "StuckVideoInfo",
    "VideoDiagnostics",
    # Status DTOs
    "ProcessingStatusResponse",
    "ProcessingError",
    "ProcessingDetails",
    "ProcessingStats",
    # Retrieval DTOs
    "RetrievedChunk",
    "RetrievalUsage",
    "RetrievalResponse",
    "CostBreakdown",
]
