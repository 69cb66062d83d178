"""Processing status surface for dashboards."""

from datetime import UTC, datetime
from typing import Any

from chronos.application.dtos.status import (
    ProcessingDetails,
    ProcessingError,
    ProcessingStats,
    ProcessingStatusResponse,
)
from chronos.commons.telemetry import get_logger
from chronos.domain import state_machine
from chronos.domain.exceptions import VideoNotFoundException
from chronos.domain.models.video import ProcessingMetadata, VideoStatus
from chronos.infrastructure.repositories import ChunkRepository, VideoRepository


class VideoStatusService:
    """Builds renderable status views from stored rows.

    Works on the raw document rather than the validated model so a status
    value this code does not know still renders (as an unknown stage).
    """

    def __init__(self, videos: VideoRepository, chunks: ChunkRepository) -> None:
        self._videos = videos
        self._chunks = chunks
        self._logger = get_logger(__name__)

    async def get_status(
        self,
        video_id: str,
        now: datetime | None = None,
    ) -> ProcessingStatusResponse:
        """Current processing status of a video.

        Args:
            video_id: Video to describe.
            now: Reference time for the ETA. Defaults to the current UTC time.

        Raises:
            VideoNotFoundException: If the video does not exist or is deleted.
        """
        doc = await self._videos.get_document(video_id)
        if doc is None:
            raise VideoNotFoundException(video_id)

        status = str(doc.get("status", ""))
        if state_machine.coerce_status(status) is None:
            self._logger.warning(
                "Unknown video status",
                extra={"video_id": video_id, "status": status},
            )

        stage = state_machine.stage_metadata(status)
        metadata = ProcessingMetadata.from_raw(doc.get("metadata"))
        started_at = doc.get("processing_started_at")
        completed_at = doc.get("processing_completed_at")

        chunk_count = None
        if status == VideoStatus.COMPLETED.value:
            chunk_count = await self._chunks.count(video_id)

        return ProcessingStatusResponse(
            video_id=video_id,
            title=doc.get("title"),
            status=status,
            progress=state_machine.progress(status),
            current_stage=stage.name,
            stage_description=stage.description,
            created_at=doc.get("created_at"),
            updated_at=doc.get("updated_at"),
            processing_started_at=started_at,
            processing_completed_at=completed_at,
            processing_duration_seconds=state_machine.processing_duration(
                started_at, completed_at
            ),
            estimated_time_remaining_minutes=state_machine.estimated_time_remaining(
                status, started_at, now or datetime.now(UTC)
            ),
            error=_error_block(doc, status, metadata),
            metadata=ProcessingDetails(
                file_size=doc.get("file_size_bytes") or 0,
                duration_seconds=doc.get("duration_seconds") or 0,
                transcript_language=doc.get("transcript_language"),
                chunk_count=chunk_count,
            ),
            is_terminal=state_machine.is_terminal(status),
            next_steps=state_machine.next_steps(status),
        )

    async def get_processing_stats(self, creator_id: str | None = None) -> ProcessingStats:
        """Count videos per status, optionally for one creator."""
        counts = await self._videos.count_by_status(creator_id)
        in_progress = sum(
            n
            for status, n in counts.items()
            if state_machine.coerce_status(status) is not None
            and not state_machine.is_terminal(status)
        )
        return ProcessingStats(
            total=sum(counts.values()),
            by_status=counts,
            in_progress=in_progress,
            completed=counts.get(VideoStatus.COMPLETED.value, 0),
            failed=counts.get(VideoStatus.FAILED.value, 0),
        )


def _error_block(
    doc: dict[str, Any],
    status: str,
    metadata: ProcessingMetadata,
) -> ProcessingError | None:
    message = doc.get("error_message")
    if status != VideoStatus.FAILED.value and not message:
        return None

    last = metadata.last_error
    return ProcessingError(
        message=message or (last.message if last else "Unknown error"),
        stage=last.stage if last else status,
        timestamp=last.timestamp if last else doc.get("updated_at"),
        retry_count=metadata.retry_count,
    )
