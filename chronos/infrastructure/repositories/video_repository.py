"""Video record accessors over the document database."""

from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from chronos.commons.infrastructure.documentdb.base import DocumentDBBase
from chronos.commons.telemetry import get_logger
from chronos.domain.models.video import ProcessingMetadata, Video, VideoStatus


def video_to_document(video: Video) -> dict[str, Any]:
    """Serialize a video for storage, keeping datetimes native for range queries."""
    doc = video.model_dump()
    doc["status"] = video.status.value
    return doc


def document_to_video(doc: dict[str, Any]) -> Video:
    """Validate a stored document into a Video.

    The metadata bag is parsed leniently: unknown keys are dropped and
    malformed values fall back to defaults instead of failing the read.
    """
    data = dict(doc)
    data["metadata"] = ProcessingMetadata.from_raw(data.get("metadata"))
    return Video.model_validate(data)


class VideoRepository:
    """Reads and writes Video rows.

    Every mutation is a single atomic update keyed by video id. Status writes
    go through ``update_if_status`` so a late stage handler and the recovery
    sweep cannot overwrite each other.
    """

    def __init__(self, document_db: DocumentDBBase, collection: str = "videos") -> None:
        self._db = document_db
        self._collection = collection
        self._logger = get_logger(__name__)

    async def ensure_indexes(self) -> None:
        """Index the stuck-candidate scan and the per-creator listings."""
        await self._db.create_index(
            self._collection, [("status", 1), ("updated_at", 1)], name="status_updated_at"
        )
        await self._db.create_index(
            self._collection, [("creator_id", 1), ("status", 1)], name="creator_status"
        )

    async def insert(self, video: Video) -> str:
        return await self._db.insert(self._collection, video_to_document(video))

    async def get(self, video_id: str, include_deleted: bool = False) -> Video | None:
        doc = await self.get_document(video_id, include_deleted=include_deleted)
        return document_to_video(doc) if doc else None

    async def get_document(
        self,
        video_id: str,
        include_deleted: bool = False,
    ) -> dict[str, Any] | None:
        """Raw stored document, for callers that must tolerate unknown statuses."""
        doc = await self._db.find_by_id(self._collection, video_id)
        if doc is None or (doc.get("is_deleted") and not include_deleted):
            return None
        return doc

    async def list_by_ids(self, video_ids: list[str]) -> list[Video]:
        if not video_ids:
            return []
        docs = await self._db.find(
            self._collection,
            {"id": {"$in": video_ids}, "is_deleted": False},
            limit=len(video_ids),
        )
        return self._valid_videos(docs)

    async def list_ids(
        self,
        creator_id: str,
        status: VideoStatus | None = None,
        limit: int = 1000,
    ) -> list[str]:
        filters: dict[str, Any] = {"creator_id": creator_id, "is_deleted": False}
        if status is not None:
            filters["status"] = status.value
        docs = await self._db.find(self._collection, filters, limit=limit)
        return [d["id"] for d in docs]

    async def find_stuck_candidates(
        self,
        timeouts: dict[VideoStatus, int],
        now: datetime,
        limit: int = 100,
    ) -> list[Video]:
        """Non-terminal videos whose last stage write is older than its timeout.

        Args:
            timeouts: Timeout in minutes per status to consider.
            now: Reference time.
            limit: Maximum number of candidates, oldest first.

        Returns:
            Candidate videos ordered by ``updated_at`` ascending.
        """
        clauses = [
            {
                "status": status.value,
                "updated_at": {"$lt": now - timedelta(minutes=minutes)},
            }
            for status, minutes in timeouts.items()
            if minutes > 0
        ]
        if not clauses:
            return []

        docs = await self._db.find(
            self._collection,
            {"$or": clauses, "is_deleted": False},
            limit=limit,
            sort=[("updated_at", 1)],
        )
        return self._valid_videos(docs)

    async def count_by_status(self, creator_id: str | None = None) -> dict[str, int]:
        filters: dict[str, Any] = {"is_deleted": False}
        if creator_id is not None:
            filters["creator_id"] = creator_id
        return await self._db.count_by(self._collection, "status", filters)

    async def update(self, video_id: str, updates: dict[str, Any]) -> bool:
        return await self._db.update(self._collection, video_id, _to_store(updates))

    async def update_if_status(
        self,
        video_id: str,
        expected: VideoStatus,
        updates: dict[str, Any],
    ) -> bool:
        """Apply ``updates`` only if the row still has status ``expected``.

        Returns:
            False if the row is gone or another writer moved its status.
        """
        written = await self._db.update_where(
            self._collection,
            video_id,
            {"status": expected.value},
            _to_store(updates),
        )
        if not written:
            self._logger.warning(
                "Conditional status write lost",
                extra={"video_id": video_id, "expected_status": expected.value},
            )
        return written

    async def record_recovery_attempt(
        self,
        video_id: str,
        *,
        status: VideoStatus,
        previous_attempts: int,
        attempt: int,
        action: str,
        now: datetime,
    ) -> bool:
        """Stamp the recovery bookkeeping in one conditional write.

        The write only lands if the row still has the status and attempt count
        the sweep read, so two overlapping sweeps cannot both claim the same
        attempt. ``updated_at`` is left alone: it measures time in stage, and a
        video that is still stuck after this attempt must keep qualifying.

        Returns:
            False if the row is gone or another writer got there first.
        """
        conditions: dict[str, Any] = {
            "status": status.value,
            # Rows that were never recovered have no counter stored.
            "metadata.recovery_attempts": (
                previous_attempts if previous_attempts else {"$in": [0, None]}
            ),
        }
        written = await self._db.update_where(
            self._collection,
            video_id,
            conditions,
            {
                "metadata.recovery_attempts": attempt,
                "metadata.last_recovery_attempt": now,
                "metadata.last_recovery_action": action,
            },
        )
        if not written:
            self._logger.warning(
                "Recovery attempt already claimed",
                extra={"video_id": video_id, "attempt": attempt},
            )
        return written

    async def soft_delete(self, video_id: str, now: datetime) -> bool:
        return await self._db.update(
            self._collection,
            video_id,
            {"is_deleted": True, "updated_at": now},
        )

    async def hard_delete(self, video_id: str) -> bool:
        return await self._db.delete(self._collection, video_id)

    def _valid_videos(self, docs: list[dict[str, Any]]) -> list[Video]:
        """Validate rows, skipping the ones that no longer fit the model."""
        videos: list[Video] = []
        for doc in docs:
            try:
                videos.append(document_to_video(doc))
            except ValidationError as exc:
                self._logger.warning(
                    "Skipping invalid video row",
                    extra={"video_id": doc.get("id"), "error": str(exc)},
                )
        return videos


def _to_store(updates: dict[str, Any]) -> dict[str, Any]:
    """Flatten model values (enums, nested models) into storable values."""
    stored: dict[str, Any] = {}
    for key, value in updates.items():
        if isinstance(value, VideoStatus):
            stored[key] = value.value
        elif hasattr(value, "model_dump"):
            stored[key] = value.model_dump()
        else:
            stored[key] = value
    return stored
