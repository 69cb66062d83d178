"""Domain exceptions for the video pipeline core."""

from __future__ import annotations


class DomainException(Exception):
    """Base exception for domain errors."""


class VideoNotFoundException(DomainException):
    """Raised when a requested video is not found."""

    def __init__(self, video_id: str) -> None:
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class InvalidStatusTransitionException(DomainException):
    """Raised when a status write is not a legal edge of the pipeline.

    Also raised when an optimistic status write loses a race: the row no
    longer holds the status the writer read.
    """

    def __init__(self, video_id: str, current: str, attempted: str) -> None:
        self.video_id = video_id
        self.current = current
        self.attempted = attempted
        super().__init__(
            f"Invalid status transition for {video_id}: {current} -> {attempted}"
        )


class RetryLimitExceededException(DomainException):
    """Raised when a manual retry would exceed the stage retry budget."""

    def __init__(self, video_id: str, max_retries: int) -> None:
        self.video_id = video_id
        self.max_retries = max_retries
        super().__init__(
            f"Maximum retry attempts ({max_retries}) exceeded for video {video_id}"
        )


class EmbeddingUnavailableException(DomainException):
    """Raised when the embedding provider cannot produce a query vector."""

    def __init__(self, reason: str, model: str | None = None) -> None:
        self.reason = reason
        self.model = model
        super().__init__(f"Embedding unavailable: {reason}")


class DimensionMismatchException(DomainException, ValueError):
    """Raised when two vectors of different dimensionality are compared."""

    def __init__(self, left: int, right: int) -> None:
        self.left = left
        self.right = right
        super().__init__(f"Vector dimensions must match: {left} vs {right}")


class ArtifactStoreException(DomainException):
    """Raised when the record store fails during a batch-level operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Artifact store failure during {operation}: {reason}")


class ChatSessionNotFoundException(DomainException):
    """Raised when a chat session used as retrieval scope does not exist."""

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Chat session not found: {session_id}")


class VideoNotReadyException(DomainException):
    """Raised when a video is not in a state that allows the requested operation."""

    def __init__(self, video_id: str, reason: str) -> None:
        self.video_id = video_id
        self.reason = reason
        super().__init__(f"Video {video_id} is not ready: {reason}")
