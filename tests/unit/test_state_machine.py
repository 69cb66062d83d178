"""Unit tests for the video processing state machine."""

from datetime import UTC, datetime, timedelta

import pytest

from chronos.domain import state_machine
from chronos.domain.models.video import VideoStatus

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=UTC)


class TestProgress:
    """Tests for progress percentages."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (VideoStatus.PENDING, 0),
            (VideoStatus.UPLOADING, 10),
            (VideoStatus.TRANSCRIBING, 30),
            (VideoStatus.PROCESSING, 50),
            (VideoStatus.EMBEDDING, 70),
            (VideoStatus.COMPLETED, 100),
            (VideoStatus.FAILED, 0),
        ],
    )
    def test_progress_table(self, status, expected):
        assert state_machine.progress(status) == expected

    def test_progress_accepts_raw_strings(self):
        assert state_machine.progress("embedding") == 70

    def test_unknown_status_is_zero(self):
        assert state_machine.progress("archived") == 0
        assert state_machine.progress(None) == 0

    def test_progress_monotonic_along_happy_path(self):
        values = [state_machine.progress(s) for s in state_machine.HAPPY_PATH]
        assert values == sorted(values)


class TestTerminality:
    """Tests for is_terminal."""

    @pytest.mark.parametrize("status", list(VideoStatus))
    def test_only_completed_and_failed_are_terminal(self, status):
        expected = status in (VideoStatus.COMPLETED, VideoStatus.FAILED)
        assert state_machine.is_terminal(status) is expected

    def test_unknown_is_not_terminal(self):
        assert state_machine.is_terminal("archived") is False


class TestStageMetadata:
    """Tests for stage metadata lookups."""

    @pytest.mark.parametrize(
        ("status", "timeout"),
        [
            (VideoStatus.PENDING, 60),
            (VideoStatus.UPLOADING, 30),
            (VideoStatus.TRANSCRIBING, 60),
            (VideoStatus.PROCESSING, 15),
            (VideoStatus.EMBEDDING, 30),
            (VideoStatus.COMPLETED, 0),
            (VideoStatus.FAILED, 0),
        ],
    )
    def test_timeouts(self, status, timeout):
        assert state_machine.stage_metadata(status).timeout_minutes == timeout

    def test_descriptions(self):
        assert (
            state_machine.stage_metadata(VideoStatus.EMBEDDING).description
            == "Generating vector embeddings"
        )
        assert state_machine.stage_metadata("failed").name == "Failed"

    def test_unknown_status_renders_unknown_stage(self):
        stage = state_machine.stage_metadata("archived")
        assert stage.name == "Unknown"
        assert stage.description == "Unknown processing stage"
        assert stage.timeout_minutes == 0

    def test_next_steps(self):
        assert state_machine.next_steps(VideoStatus.COMPLETED) == [
            "Video is ready for AI chat"
        ]
        assert "Retry processing" in state_machine.next_steps("failed")
        assert state_machine.next_steps("archived") == []

    def test_next_steps_returns_copy(self):
        steps = state_machine.next_steps(VideoStatus.FAILED)
        steps.clear()
        assert state_machine.next_steps(VideoStatus.FAILED)


class TestTransitions:
    """Tests for the transition table."""

    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (VideoStatus.PENDING, VideoStatus.UPLOADING),
            (VideoStatus.UPLOADING, VideoStatus.TRANSCRIBING),
            (VideoStatus.TRANSCRIBING, VideoStatus.PROCESSING),
            (VideoStatus.PROCESSING, VideoStatus.EMBEDDING),
            (VideoStatus.EMBEDDING, VideoStatus.COMPLETED),
            (VideoStatus.EMBEDDING, VideoStatus.FAILED),
            (VideoStatus.FAILED, VideoStatus.PENDING),
        ],
    )
    def test_valid_edges(self, current, new):
        assert state_machine.is_valid_transition(current, new)

    @pytest.mark.parametrize(
        ("current", "new"),
        [
            (VideoStatus.PENDING, VideoStatus.COMPLETED),
            (VideoStatus.TRANSCRIBING, VideoStatus.EMBEDDING),
            (VideoStatus.COMPLETED, VideoStatus.PENDING),
            (VideoStatus.COMPLETED, VideoStatus.FAILED),
            (VideoStatus.EMBEDDING, VideoStatus.PROCESSING),
        ],
    )
    def test_invalid_edges(self, current, new):
        assert not state_machine.is_valid_transition(current, new)

    def test_every_non_terminal_status_can_fail(self):
        for status in state_machine.HAPPY_PATH[:-1]:
            assert state_machine.is_valid_transition(status, VideoStatus.FAILED)

    def test_completed_is_a_sink(self):
        assert state_machine.next_states(VideoStatus.COMPLETED) == []

    def test_next_states_in_enum_order(self):
        assert state_machine.next_states(VideoStatus.EMBEDDING) == [
            VideoStatus.COMPLETED,
            VideoStatus.FAILED,
        ]

    def test_unknown_statuses_have_no_edges(self):
        assert not state_machine.is_valid_transition("archived", "pending")
        assert state_machine.next_states("archived") == []


class TestEstimatedTimeRemaining:
    """Tests for the ETA estimate."""

    def test_none_when_not_started(self):
        assert state_machine.estimated_time_remaining("transcribing", None, NOW) is None

    @pytest.mark.parametrize("status", ["completed", "failed", "archived"])
    def test_none_when_terminal_or_unknown(self, status):
        started = NOW - timedelta(minutes=5)
        assert state_machine.estimated_time_remaining(status, started, NOW) is None

    def test_on_schedule_returns_remaining_stages(self):
        # Pending + uploading are expected to take 6 minutes
        started = NOW - timedelta(minutes=3)
        eta = state_machine.estimated_time_remaining("transcribing", started, NOW)
        assert eta == pytest.approx(17.0)

    def test_overrun_reduces_estimate(self):
        started = NOW - timedelta(minutes=10)
        eta = state_machine.estimated_time_remaining("transcribing", started, NOW)
        assert eta == pytest.approx(13.0)

    def test_never_negative(self):
        started = NOW - timedelta(hours=5)
        assert state_machine.estimated_time_remaining("embedding", started, NOW) == 0.0


class TestProcessingDuration:
    """Tests for processing_duration."""

    def test_duration_seconds(self):
        started = NOW - timedelta(minutes=2, seconds=30)
        assert state_machine.processing_duration(started, NOW) == 150

    def test_none_unless_both_set(self):
        assert state_machine.processing_duration(None, NOW) is None
        assert state_machine.processing_duration(NOW, None) is None


class TestCoerceStatus:
    """Tests for coerce_status."""

    def test_enum_passthrough(self):
        assert state_machine.coerce_status(VideoStatus.PENDING) is VideoStatus.PENDING

    def test_string(self):
        assert state_machine.coerce_status("processing") is VideoStatus.PROCESSING

    def test_unknown(self):
        assert state_machine.coerce_status("archived") is None
        assert state_machine.coerce_status(None) is None
