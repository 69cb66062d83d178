"""Unit tests for domain exceptions."""

import pytest

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


class TestDomainException:
    """Tests for base DomainException."""

    def test_is_exception(self):
        assert isinstance(DomainException("Test error"), Exception)

    def test_message(self):
        assert str(DomainException("Custom message")) == "Custom message"


class TestVideoNotFoundException:
    def test_attributes(self):
        exc = VideoNotFoundException("video-123")
        assert exc.video_id == "video-123"
        assert "video-123" in str(exc)
        assert isinstance(exc, DomainException)


class TestInvalidStatusTransitionException:
    def test_attributes(self):
        exc = InvalidStatusTransitionException("video-1", "completed", "pending")
        assert exc.current == "completed"
        assert exc.attempted == "pending"
        assert "completed -> pending" in str(exc)


class TestRetryLimitExceededException:
    def test_attributes(self):
        exc = RetryLimitExceededException("video-1", 3)
        assert exc.max_retries == 3
        assert "(3)" in str(exc)


class TestEmbeddingUnavailableException:
    def test_attributes(self):
        exc = EmbeddingUnavailableException("rate limited", model="text-embedding-3-small")
        assert exc.reason == "rate limited"
        assert exc.model == "text-embedding-3-small"
        assert str(exc) == "Embedding unavailable: rate limited"

    def test_model_optional(self):
        assert EmbeddingUnavailableException("timeout").model is None


class TestDimensionMismatchException:
    def test_is_value_error(self):
        exc = DimensionMismatchException(1536, 3072)
        assert isinstance(exc, ValueError)
        assert isinstance(exc, DomainException)
        assert (exc.left, exc.right) == (1536, 3072)

    def test_catchable_as_value_error(self):
        with pytest.raises(ValueError, match="1536 vs 3"):
            raise DimensionMismatchException(1536, 3)


class TestArtifactStoreException:
    def test_attributes(self):
        exc = ArtifactStoreException("select_candidates", "connection refused")
        assert exc.operation == "select_candidates"
        assert "connection refused" in str(exc)


class TestNotFoundAndNotReady:
    def test_session_not_found(self):
        exc = ChatSessionNotFoundException("session-9")
        assert exc.session_id == "session-9"
        assert "session-9" in str(exc)

    def test_video_not_ready(self):
        exc = VideoNotReadyException("video-2", "storage path not set")
        assert exc.reason == "storage path not set"
        assert str(exc) == "Video video-2 is not ready: storage path not set"
