"""Embedding services."""

from chronos.infrastructure.embeddings.base import EmbeddingResult, EmbeddingServiceBase
from chronos.infrastructure.embeddings.openai_embeddings import OpenAIEmbeddingService

__all__ = [
    # Base classes
    "EmbeddingServiceBase",
    "EmbeddingResult",
    # Implementations
    "OpenAIEmbeddingService",
]
