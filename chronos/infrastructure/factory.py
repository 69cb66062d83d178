"""Infrastructure factory building concrete providers from settings."""

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast

from chronos.commons.infrastructure.blob import BlobStorageBase, MinioBlobStorage
from chronos.commons.infrastructure.documentdb import DocumentDBBase, MongoDBDocumentDB
from chronos.commons.settings.models import DocumentDBSettings, Settings
from chronos.commons.telemetry import get_logger
from chronos.infrastructure.embeddings import EmbeddingServiceBase, OpenAIEmbeddingService
from chronos.infrastructure.events import EventDispatcherBase, HttpEventDispatcher
from chronos.infrastructure.repositories import (
    ChatSessionRepository,
    ChunkRepository,
    VideoRepository,
)
from chronos.infrastructure.upload import (
    ChunkedUploader,
    HttpxUploadTransport,
    UploadTransportBase,
)

T = TypeVar("T")


def mongo_connection_string(settings: DocumentDBSettings) -> str:
    """Build a MongoDB URI, with credentials only when both are set."""
    if settings.username and settings.password:
        return (
            f"mongodb://{settings.username}:{settings.password}"
            f"@{settings.host}:{settings.port}/?authSource={settings.auth_source}"
        )
    return f"mongodb://{settings.host}:{settings.port}"


class InfrastructureFactory:
    """Creates and caches infrastructure instances for one application.

    One factory is built per process entry point (API lifespan, CLI script)
    and handed to whoever needs providers; nothing here is module-global.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._instances: dict[str, Any] = {}
        self._logger = get_logger(__name__)

    @property
    def settings(self) -> Settings:
        return self._settings

    def _cached(self, key: str, build: Callable[[], T]) -> T:
        if key not in self._instances:
            self._instances[key] = build()
        return cast("T", self._instances[key])

    def get_document_db(self) -> DocumentDBBase:
        doc = self._settings.document_db
        return self._cached(
            "document_db",
            lambda: MongoDBDocumentDB(
                connection_string=mongo_connection_string(doc),
                database_name=doc.database,
            ),
        )

    def get_blob_storage(self) -> BlobStorageBase:
        blob = self._settings.blob_storage
        return self._cached(
            "blob_storage",
            lambda: MinioBlobStorage(
                endpoint=blob.endpoint,
                access_key=blob.access_key,
                secret_key=blob.secret_key,
                secure=blob.use_ssl,
                region=blob.region,
            ),
        )

    def get_embedding_service(self) -> EmbeddingServiceBase:
        embed = self._settings.embeddings
        return self._cached(
            "embeddings",
            lambda: OpenAIEmbeddingService(
                api_key=embed.api_key,
                model=embed.model,
                base_url=embed.endpoint,
                timeout_seconds=embed.timeout_seconds,
                batch_size=embed.batch_size,
            ),
        )

    def get_event_dispatcher(self) -> EventDispatcherBase:
        events = self._settings.events
        return self._cached(
            "events",
            lambda: HttpEventDispatcher(
                base_url=events.base_url,
                event_key=events.event_key,
                timeout=events.timeout_seconds,
            ),
        )

    def get_upload_transport(self) -> UploadTransportBase:
        return self._cached(
            "upload_transport",
            lambda: HttpxUploadTransport(timeout=self._settings.upload.timeout_seconds),
        )

    def get_video_repository(self) -> VideoRepository:
        return self._cached(
            "video_repository",
            lambda: VideoRepository(
                self.get_document_db(),
                self._settings.document_db.collections.videos,
            ),
        )

    def get_chunk_repository(self) -> ChunkRepository:
        return self._cached(
            "chunk_repository",
            lambda: ChunkRepository(
                self.get_document_db(),
                self._settings.document_db.collections.chunks,
            ),
        )

    def get_chat_session_repository(self) -> ChatSessionRepository:
        return self._cached(
            "chat_session_repository",
            lambda: ChatSessionRepository(
                self.get_document_db(),
                self._settings.document_db.collections.chat_sessions,
            ),
        )

    def create_uploader(self, path: Path, upload_url: str, **callbacks: Any) -> ChunkedUploader:
        """Build an uploader for one file using the configured policy.

        Args:
            path: Local file to upload.
            upload_url: Presigned PUT URL.
            **callbacks: ``on_progress`` / ``on_complete`` / ``on_error``.
        """
        upload = self._settings.upload
        return ChunkedUploader(
            path,
            upload_url,
            self.get_upload_transport(),
            chunk_size=upload.chunk_size_bytes,
            large_file_threshold=upload.large_file_threshold_bytes,
            max_retries=upload.max_retries,
            retry_delay_seconds=upload.retry_base_delay_seconds,
            **callbacks,
        )

    async def ensure_indexes(self) -> None:
        """Create the record store indexes the pipeline queries rely on."""
        await self.get_video_repository().ensure_indexes()
        await self.get_chunk_repository().ensure_indexes()

    async def close_all(self) -> None:
        """Close every created client, logging failures instead of raising."""
        for key, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                self._logger.warning(
                    "Failed to close infrastructure client",
                    extra={"client": key, "error": str(e)},
                )
        self._instances.clear()
