"""Unit tests for pipeline event payloads."""

from chronos.domain.pipeline import PipelineEvent, PipelineEventName


class TestPipelineEvent:
    """Tests for PipelineEvent constructors."""

    def test_transcribe_requested(self):
        event = PipelineEvent.transcribe_requested("v1", "c1", "creators/c1/v1.mp4")
        assert event.name == PipelineEventName.TRANSCRIBE_REQUESTED
        assert event.name.value == "video/transcribe.requested"
        assert event.data == {
            "video_id": "v1",
            "creator_id": "c1",
            "storage_path": "creators/c1/v1.mp4",
        }
        assert event.video_id == "v1"

    def test_chunks_requested_carries_transcript(self):
        event = PipelineEvent.chunks_requested("v1", "c1", "full transcript")
        assert event.name.value == "video/chunks.requested"
        assert event.data["transcript"] == "full transcript"

    def test_embeddings_requested_skips_existing_by_default(self):
        event = PipelineEvent.embeddings_requested("v1", "c1", "text")
        assert event.name.value == "video/embeddings.requested"
        assert event.data["skip_if_exists"] is True

    def test_transcription_completed_regenerates_by_default(self):
        event = PipelineEvent.transcription_completed("v1", "c1", "text")
        assert event.name.value == "video/transcription.completed"
        assert event.data["skip_if_exists"] is False

    def test_video_id_missing(self):
        event = PipelineEvent(name=PipelineEventName.CHUNKS_REQUESTED, data={})
        assert event.video_id is None
