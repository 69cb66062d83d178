"""Application layer - use cases and orchestration.

This layer contains:
- Services: recovery sweeps, status views, pipeline writes and retrieval
- DTOs: Data transfer objects for API boundaries
"""

from chronos.application.dtos import (
    ProcessingStatusResponse,
    RecoveryOptions,
    RecoverySweepSummary,
    RetrievalResponse,
)
from chronos.application.services import (
    CostCalculator,
    PipelineService,
    RecoveryService,
    RetrievalService,
    VideoStatusService,
)

__all__ = [
    # DTOs
    "RecoveryOptions",
    "RecoverySweepSummary",
    "ProcessingStatusResponse",
    "RetrievalResponse",
    # Services
    "RecoveryService",
    "VideoStatusService",
    "PipelineService",
    "RetrievalService",
    "CostCalculator",
]
