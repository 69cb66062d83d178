"""Pipeline service - status writes and event emission for stage handlers."""

from datetime import UTC, datetime
from typing import Any

from chronos.commons.infrastructure.blob.base import BlobStorageBase
from chronos.commons.settings.models import BlobStorageSettings
from chronos.commons.telemetry import get_logger
from chronos.domain import state_machine
from chronos.domain.exceptions import (
    InvalidStatusTransitionException,
    RetryLimitExceededException,
    VideoNotFoundException,
    VideoNotReadyException,
)
from chronos.domain.models.video import (
    LastError,
    ProcessingMetadata,
    Video,
    VideoStatus,
)
from chronos.domain.pipeline import PipelineEvent
from chronos.infrastructure.events.base import EventDispatcherBase
from chronos.infrastructure.repositories import ChunkRepository, VideoRepository

# Used when a failed video carries no stage information.
DEFAULT_STAGE_RETRIES = 3

RETRYABLE_STATUSES: frozenset[VideoStatus] = frozenset(
    {
        VideoStatus.PENDING,
        VideoStatus.TRANSCRIBING,
        VideoStatus.PROCESSING,
        VideoStatus.EMBEDDING,
    }
)


class PipelineService:
    """Moves videos through the pipeline on behalf of stage handlers.

    Every status write is conditional on the status that was read, so a late
    handler cannot overwrite a transition made by another writer (including
    the recovery sweep) in the meantime.
    """

    def __init__(
        self,
        videos: VideoRepository,
        chunks: ChunkRepository,
        dispatcher: EventDispatcherBase,
        blob_storage: BlobStorageBase,
        blob_settings: BlobStorageSettings | None = None,
    ) -> None:
        self._videos = videos
        self._chunks = chunks
        self._dispatcher = dispatcher
        self._blob = blob_storage
        self._blob_settings = blob_settings or BlobStorageSettings()
        self._logger = get_logger(__name__)

    # =========================================================================
    # Status writes
    # =========================================================================

    async def transition(
        self,
        video_id: str,
        new_status: VideoStatus,
        error_message: str | None = None,
        now: datetime | None = None,
    ) -> Video:
        """Move a video along a legal pipeline edge.

        Args:
            video_id: Video to move.
            new_status: Target status.
            error_message: Stored with the write; only kept for ``failed``.
            now: Timestamp for the write. Defaults to the current UTC time.

        Returns:
            The video as written.

        Raises:
            VideoNotFoundException: If the video does not exist.
            InvalidStatusTransitionException: If the edge is not legal, or
                another writer changed the status after it was read.
        """
        video = await self._require(video_id)
        return await self._move(video, new_status, now or datetime.now(UTC), error_message)

    async def mark_failed(
        self,
        video_id: str,
        stage: str,
        message: str,
        error: Exception | None = None,
        now: datetime | None = None,
    ) -> Video:
        """Record a stage failure and move the video to ``failed``.

        ``metadata.last_error`` and the incremented ``metadata.retry_count``
        go out in the same conditional write as the status, so nothing is
        recorded when the video already left the stage.
        """
        stamp = now or datetime.now(UTC)
        video = await self._require(video_id)

        last_error = LastError(
            stage=stage,
            message=message,
            timestamp=stamp,
            error_type=type(error).__name__ if error else None,
        )
        metadata = video.metadata.model_copy(
            update={"last_error": last_error, "retry_count": video.metadata.retry_count + 1}
        )
        moved = await self._move(
            video,
            VideoStatus.FAILED,
            stamp,
            message,
            metadata,
            {
                "metadata.last_error": last_error,
                "metadata.retry_count": metadata.retry_count,
            },
        )

        self._logger.error(
            "Video processing failed",
            extra={"video_id": video_id, "stage": stage, "error": message},
        )
        return moved

    async def retry_failed(self, video_id: str, now: datetime | None = None) -> Video:
        """Send a failed video back to ``pending``.

        Allowed while ``retry_count`` is below the failed stage's
        ``max_retries``, so the counter never goes past the budget.

        Raises:
            VideoNotReadyException: If the video is not failed.
            RetryLimitExceededException: If the failed stage's retry budget
                is used up.
        """
        video = await self._require(video_id)
        if video.status != VideoStatus.FAILED:
            raise VideoNotReadyException(video_id, f"status is {video.status.value}")

        last_error = video.metadata.last_error
        if last_error is not None:
            max_retries = state_machine.stage_metadata(last_error.stage).max_retries
        else:
            max_retries = DEFAULT_STAGE_RETRIES
        if video.metadata.retry_count >= max_retries:
            raise RetryLimitExceededException(video_id, max_retries)

        stamp = now or datetime.now(UTC)
        metadata = video.metadata.model_copy(update={"retried_at": stamp})
        return await self._move(
            video,
            VideoStatus.PENDING,
            stamp,
            metadata=metadata,
            extra_updates={"metadata.retried_at": stamp},
        )

    # =========================================================================
    # Event emission
    # =========================================================================

    async def issue_upload_url(self, video_id: str) -> str:
        """Presigned PUT URL for the video's storage object."""
        video = await self._require(video_id)
        if not video.storage_path:
            raise VideoNotReadyException(video_id, "storage path not set")
        return await self._blob.generate_presigned_url(
            self._blob_settings.videos_bucket,
            video.storage_path,
            expiry_seconds=self._blob_settings.presigned_url_expiry_seconds,
            method="PUT",
        )

    async def confirm_upload(self, video_id: str, now: datetime | None = None) -> Video:
        """Confirm the binary landed in storage and start transcription.

        Raises:
            VideoNotReadyException: If the video is not uploading, has no
                storage path, or the object is missing from storage.
        """
        video = await self._require(video_id)
        if video.status != VideoStatus.UPLOADING:
            raise VideoNotReadyException(video_id, "video is not in uploading state")
        if not video.storage_path:
            raise VideoNotReadyException(video_id, "storage path not set")
        if not await self._blob.exists(
            self._blob_settings.videos_bucket, video.storage_path
        ):
            raise VideoNotReadyException(video_id, "file not found in storage")

        moved = await self.transition(video_id, VideoStatus.TRANSCRIBING, now=now)
        await self._dispatcher.send(
            PipelineEvent.transcribe_requested(
                video.id, video.creator_id, video.storage_path
            )
        )
        return moved

    async def retry_stuck(self, video_id: str, now: datetime | None = None) -> str:
        """Re-send the event for a video's current stage.

        Returns:
            Name of the event that was sent.

        Raises:
            VideoNotReadyException: If the video is not in a processing state.
        """
        video = await self._require(video_id)
        if video.status not in RETRYABLE_STATUSES:
            raise VideoNotReadyException(
                video_id, f"video is not in a processing state ({video.status.value})"
            )

        if video.status == VideoStatus.EMBEDDING:
            event = PipelineEvent.embeddings_requested(
                video.id, video.creator_id, video.transcript or ""
            )
        elif video.status == VideoStatus.TRANSCRIBING and video.has_transcript:
            event = PipelineEvent.chunks_requested(
                video.id, video.creator_id, video.transcript or ""
            )
        else:
            event = PipelineEvent.transcribe_requested(
                video.id, video.creator_id, video.storage_path
            )

        await self._dispatcher.send(event)
        await self._videos.update(
            video_id,
            {"error_message": None, "updated_at": now or datetime.now(UTC)},
        )

        self._logger.info(
            "Retry initiated",
            extra={"video_id": video_id, "status": video.status.value, "event": event.name},
        )
        return event.name

    # =========================================================================
    # Deletion
    # =========================================================================

    async def soft_delete(self, video_id: str, now: datetime | None = None) -> None:
        await self._require(video_id)
        await self._videos.soft_delete(video_id, now or datetime.now(UTC))

    async def hard_delete(self, video_id: str) -> int:
        """Delete a video with its chunks and stored binary.

        Returns:
            Number of chunks removed.
        """
        video = await self._videos.get(video_id, include_deleted=True)
        if video is None:
            raise VideoNotFoundException(video_id)

        removed = await self._chunks.delete_by_video(video_id)
        if video.storage_path:
            await self._blob.delete(self._blob_settings.videos_bucket, video.storage_path)
        await self._videos.hard_delete(video_id)

        self._logger.info(
            "Video deleted",
            extra={"video_id": video_id, "chunks_removed": removed},
        )
        return removed

    async def _require(self, video_id: str) -> Video:
        video = await self._videos.get(video_id)
        if video is None:
            raise VideoNotFoundException(video_id)
        return video

    async def _move(
        self,
        video: Video,
        new_status: VideoStatus,
        stamp: datetime,
        error_message: str | None = None,
        metadata: ProcessingMetadata | None = None,
        extra_updates: dict[str, Any] | None = None,
    ) -> Video:
        """Write ``new_status`` plus ``extra_updates`` in one conditional write."""
        if not state_machine.is_valid_transition(video.status, new_status):
            raise InvalidStatusTransitionException(
                video.id, video.status.value, new_status.value
            )

        moved = video.with_status(new_status, stamp)
        if new_status == VideoStatus.FAILED and error_message:
            moved = moved.model_copy(update={"error_message": error_message})
        if metadata is not None:
            moved = moved.model_copy(update={"metadata": metadata})

        updates: dict[str, Any] = {
            "status": moved.status,
            "updated_at": moved.updated_at,
            "processing_started_at": moved.processing_started_at,
            "processing_completed_at": moved.processing_completed_at,
            "error_message": moved.error_message,
            **(extra_updates or {}),
        }
        if not await self._videos.update_if_status(video.id, video.status, updates):
            current = await self._videos.get(video.id)
            raise InvalidStatusTransitionException(
                video.id,
                current.status.value if current else "deleted",
                new_status.value,
            )

        self._logger.info(
            "Video status changed",
            extra={
                "video_id": video.id,
                "from_status": video.status.value,
                "to_status": new_status.value,
            },
        )
        return moved
