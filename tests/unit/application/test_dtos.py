"""Unit tests for application DTOs."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from chronos.application.dtos.recovery import (
    DryRunSummary,
    RecoveryOptions,
    RecoveryResult,
    RecoverySweepSummary,
)
from chronos.application.dtos.retrieval import RetrievedChunk
from chronos.application.dtos.status import ProcessingStatusResponse
from chronos.domain.models.chunk import Chunk
from chronos.domain.recovery import RecoveryAction, RecoveryOutcome


class TestRecoveryOptions:
    def test_defaults(self):
        options = RecoveryOptions()
        assert options.force is False
        assert options.video_ids is None
        assert options.dry_run is False

    def test_from_json_body(self):
        options = RecoveryOptions.model_validate(
            {"force": True, "video_ids": ["v1", "v2"]}
        )
        assert options.force is True
        assert options.video_ids == ["v1", "v2"]


class TestRecoverySweepSummary:
    """Tests for summary aggregation."""

    def test_from_results(self):
        results = [
            RecoveryResult(
                video_id="v1",
                outcome=RecoveryOutcome.RECOVERED,
                reason="Recovery action triggered",
                action=RecoveryAction.FIX_STATUS,
            ),
            RecoveryResult(video_id="v2", outcome=RecoveryOutcome.FAILED, reason="x"),
            RecoveryResult(video_id="v3", outcome=RecoveryOutcome.SKIPPED, reason="y"),
            RecoveryResult(video_id="v4", outcome=RecoveryOutcome.SKIPPED, reason="z"),
        ]

        summary = RecoverySweepSummary.from_results(results, execution_time_ms=12)

        assert summary.success is True
        assert (summary.recovered, summary.failed, summary.skipped) == (1, 1, 2)
        assert summary.total == 4
        assert summary.execution_time_ms == 12

    def test_serialized_action_uses_wire_value(self):
        result = RecoveryResult(
            video_id="v1",
            outcome=RecoveryOutcome.RECOVERED,
            reason="ok",
            action=RecoveryAction.RETRY_EMBEDDINGS,
        )
        data = result.model_dump(mode="json")
        assert data["action"] == "retry-embeddings"
        assert data["outcome"] == "recovered"

    def test_empty_dry_run(self):
        summary = DryRunSummary(message="No stuck videos found")
        assert summary.dry_run is True
        assert summary.total == 0


class TestProcessingStatusResponse:
    def test_progress_bounds(self):
        with pytest.raises(ValidationError):
            ProcessingStatusResponse(
                video_id="v1",
                status="pending",
                progress=120,
                current_stage="Pending",
                stage_description="",
                is_terminal=False,
            )

    def test_minimal(self):
        response = ProcessingStatusResponse(
            video_id="v1",
            status="pending",
            progress=0,
            current_stage="Pending",
            stage_description="Video is queued for processing",
            is_terminal=False,
            created_at=datetime(2025, 1, 1, tzinfo=UTC),
        )
        assert response.error is None
        assert response.metadata.chunk_count is None


class TestRetrievedChunk:
    def test_rank_starts_at_one(self):
        chunk = Chunk(video_id="v1", text="hello", embedding=[1.0])
        with pytest.raises(ValidationError):
            RetrievedChunk(chunk=chunk, similarity=0.5, rank=0)
