"""Chunk record accessors over the document database."""

from typing import Any

from chronos.commons.infrastructure.documentdb.base import DocumentDBBase
from chronos.domain.models.chunk import Chunk

_HAS_EMBEDDING = {"embedding": {"$ne": None}}


class ChunkRepository:
    """Reads and writes transcript chunks.

    "Chunked" means at least one row exists for the video; "embedded" means at
    least one of them carries a vector.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str = "video_chunks",
    ) -> None:
        self._db = document_db
        self._collection = collection

    async def ensure_indexes(self) -> None:
        await self._db.create_index(
            self._collection,
            [("video_id", 1), ("chunk_index", 1)],
            unique=True,
            name="video_chunk_index",
        )

    async def count(self, video_id: str) -> int:
        return await self._db.count(self._collection, {"video_id": video_id})

    async def count_embedded(self, video_id: str) -> int:
        return await self._db.count(
            self._collection, {"video_id": video_id, **_HAS_EMBEDDING}
        )

    async def list_by_video(self, video_id: str, limit: int = 10_000) -> list[Chunk]:
        docs = await self._db.find(
            self._collection,
            {"video_id": video_id},
            limit=limit,
            sort=[("chunk_index", 1)],
        )
        return [Chunk.model_validate(d) for d in docs]

    async def list_by_videos(
        self,
        video_ids: list[str],
        embedded_only: bool = True,
        limit: int = 10_000,
    ) -> list[Chunk]:
        """Chunks of several videos in a stable (video, index) order."""
        if not video_ids:
            return []
        filters: dict[str, Any] = {"video_id": {"$in": video_ids}}
        if embedded_only:
            filters.update(_HAS_EMBEDDING)
        docs = await self._db.find(
            self._collection,
            filters,
            limit=limit,
            sort=[("video_id", 1), ("chunk_index", 1)],
        )
        return [Chunk.model_validate(d) for d in docs]

    async def insert_many(self, chunks: list[Chunk]) -> list[str]:
        return await self._db.insert_many(
            self._collection, [c.model_dump() for c in chunks]
        )

    async def delete_by_video(self, video_id: str) -> int:
        return await self._db.delete_many(self._collection, {"video_id": video_id})
