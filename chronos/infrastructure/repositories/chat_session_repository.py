"""Chat session accessors (read-only; sessions are owned by the chat feature)."""

from chronos.commons.infrastructure.documentdb.base import DocumentDBBase
from chronos.domain.models.chat import ChatSession


class ChatSessionRepository:
    """Loads chat sessions to resolve their retrieval scope."""

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str = "chat_sessions",
    ) -> None:
        self._db = document_db
        self._collection = collection

    async def get(self, session_id: str) -> ChatSession | None:
        doc = await self._db.find_by_id(self._collection, session_id)
        return ChatSession.model_validate(doc) if doc else None
