"""MongoDB implementation of the document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from chronos.commons.infrastructure.blob.base import HealthStatus
from chronos.commons.infrastructure.documentdb.base import DocumentDBBase


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Map the domain ``id`` key onto Mongo's ``_id``."""
    doc = dict(document)
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    doc = dict(document)
    if "_id" in doc:
        doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of the document database.

    Uses Motor for async operations. The client is created timezone-aware so
    datetimes read back carry UTC tzinfo and compare with ``datetime.now(UTC)``.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def insert_many(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[str]:
        if not documents:
            return []
        result = await self._db[collection].insert_many(
            [_to_mongo(d) for d in documents]
        )
        return [str(id_) for id_ in result.inserted_ids]

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        doc = await self._db[collection].find_one({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        cursor = self._db[collection].find(_to_mongo(filters))
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        return [_from_mongo(doc) async for doc in cursor]

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        return await self.update_where(collection, document_id, {}, updates)

    async def update_where(
        self,
        collection: str,
        document_id: str,
        conditions: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Single ``update_one`` keyed by ``_id`` plus the given conditions."""
        query = {**_to_mongo(conditions), "_id": document_id}
        result = await self._db[collection].update_one(query, {"$set": updates})
        return bool(result.matched_count > 0)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def delete_many(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        result = await self._db[collection].delete_many(_to_mongo(filters))
        return int(result.deleted_count)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        if filters:
            return int(await self._db[collection].count_documents(_to_mongo(filters)))
        return int(await self._db[collection].estimated_document_count())

    async def count_by(
        self,
        collection: str,
        field: str,
        filters: dict[str, Any] | None = None,
    ) -> dict[str, int]:
        pipeline: list[dict[str, Any]] = []
        if filters:
            pipeline.append({"$match": _to_mongo(filters)})
        pipeline.append({"$group": {"_id": f"${field}", "count": {"$sum": 1}}})

        counts: dict[str, int] = {}
        async for row in self._db[collection].aggregate(pipeline):
            counts[str(row["_id"])] = int(row["count"])
        return counts

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        index_name = await self._db[collection].create_index(
            fields,
            unique=unique,
            name=name,
        )
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MongoDB is healthy",
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        self._client.close()
