"""Infrastructure layer - external service implementations."""

from chronos.infrastructure.embeddings import (
    EmbeddingResult,
    EmbeddingServiceBase,
    OpenAIEmbeddingService,
)
from chronos.infrastructure.events import (
    EventDispatcherBase,
    EventDispatchError,
    HttpEventDispatcher,
)
from chronos.infrastructure.factory import InfrastructureFactory
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

__all__ = [
    # Factory
    "InfrastructureFactory",
    # Embeddings
    "EmbeddingServiceBase",
    "EmbeddingResult",
    "OpenAIEmbeddingService",
    # Events
    "EventDispatcherBase",
    "EventDispatchError",
    "HttpEventDispatcher",
    # Repositories
    "VideoRepository",
    "ChunkRepository",
    "ChatSessionRepository",
    # Upload
    "ChunkedUploader",
    "UploadTransportBase",
    "HttpxUploadTransport",
]
