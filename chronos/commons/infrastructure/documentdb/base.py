"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from chronos.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Abstract base class for the artifact record store.

    Documents expose their identifier as ``id``; backends map it to whatever
    key they use natively. Filters may reference ``id`` the same way.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert.

        Returns:
            Document ID.
        """

    @abstractmethod
    async def insert_many(
        self,
        collection: str,
        documents: list[dict[str, Any]],
    ) -> list[str]:
        """Insert multiple documents, returning their IDs in order."""

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID, or None."""

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort specification [(field, direction)].
                  Direction: 1 for ascending, -1 for descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on one document in a single atomic write.

        Dotted keys (``metadata.recovery_attempts``) address nested fields.

        Returns:
            True if the document exists.
        """

    @abstractmethod
    async def update_where(
        self,
        collection: str,
        document_id: str,
        conditions: dict[str, Any],
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on one document only if it still matches ``conditions``.

        This is the optimistic write used to avoid clobbering a concurrent
        writer: e.g. "set status=completed only if status is still embedding".

        Args:
            collection: Collection name.
            document_id: Document ID to update.
            conditions: Extra filters the document must satisfy.
            updates: Fields to set.

        Returns:
            True if the document matched and was written.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document. Returns False if not found."""

    @abstractmethod
    async def delete_many(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> int:
        """Delete documents matching filters, returning the count."""

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""

    @abstractmethod
    async def count_by(
        self,
        collection: str,
        field: str,
        filters: dict[str, Any] | None = None,
    ) -> dict[str, int]:
        """Count documents grouped by the value of ``field``.

        Args:
            collection: Collection name.
            field: Field to group on.
            filters: Optional query filters applied before grouping.

        Returns:
            Mapping of field value (as string) to count.
        """

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index, returning its name."""

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources."""
