"""Abstract base class for text embedding services."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class EmbeddingResult:
    """Result from embedding generation."""

    vector: list[float]
    dimensions: int
    model: str
    tokens_used: int | None = None


class EmbeddingServiceBase(ABC):
    """Abstract base class for text embedding generation.

    Implementations raise ``EmbeddingUnavailableException`` when the provider
    cannot produce a vector, and never retry internally.
    """

    @abstractmethod
    async def embed_text(
        self,
        text: str,
        model: str | None = None,
    ) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.
            model: Optional model override.

        Returns:
            Embedding result with vector and token usage.

        Raises:
            EmbeddingUnavailableException: If the provider call fails.
        """

    @abstractmethod
    async def embed_texts(
        self,
        texts: list[str],
        model: str | None = None,
    ) -> list[EmbeddingResult]:
        """Generate embeddings for multiple texts, in input order."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Default model name, used for cost attribution."""

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Dimensions of the produced vectors."""
