"""Application services."""

from chronos.application.services.cost import CostCalculator, format_cost
from chronos.application.services.pipeline import PipelineService
from chronos.application.services.recovery import RecoveryService, resolve_stage_timeouts
from chronos.application.services.retrieval import (
    RetrievalService,
    cosine_similarity,
    rank_top_k,
)
from chronos.application.services.status import VideoStatusService

__all__ = [
    "RecoveryService",
    "resolve_stage_timeouts",
    "VideoStatusService",
    "PipelineService",
    "RetrievalService",
    "cosine_similarity",
    "rank_top_k",
    "CostCalculator",
    "format_cost",
]
