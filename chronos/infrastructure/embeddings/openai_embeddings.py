"""OpenAI implementation of the text embedding service."""

from typing import ClassVar

from openai import AsyncOpenAI, OpenAIError

from chronos.commons.telemetry import get_logger
from chronos.domain.exceptions import EmbeddingUnavailableException
from chronos.infrastructure.embeddings.base import EmbeddingResult, EmbeddingServiceBase


class OpenAIEmbeddingService(EmbeddingServiceBase):
    """OpenAI text embeddings (text-embedding-3-small/large, ada-002)."""

    _MODEL_DIMENSIONS: ClassVar[dict[str, int]] = {
        "text-embedding-3-small": 1536,
        "text-embedding-3-large": 3072,
        "text-embedding-ada-002": 1536,
    }
    MAX_BATCH_SIZE: ClassVar[int] = 2048

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        timeout_seconds: float = 30.0,
        batch_size: int = 100,
    ) -> None:
        """Initialize the OpenAI client.

        Args:
            api_key: OpenAI API key.
            model: Embedding model to use.
            base_url: Optional custom API endpoint (Azure, proxies).
            timeout_seconds: Per-request timeout.
            batch_size: Texts per request in ``embed_texts``.
        """
        # Retries are the caller's decision
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
            max_retries=0,
        )
        self._model = model
        self._batch_size = min(batch_size, self.MAX_BATCH_SIZE)
        self._logger = get_logger(__name__)

    @property
    def model(self) -> str:
        return self._model

    @property
    def dimensions(self) -> int:
        return self._MODEL_DIMENSIONS.get(self._model, 1536)

    async def embed_text(
        self,
        text: str,
        model: str | None = None,
    ) -> EmbeddingResult:
        results = await self._create([text], model or self._model)
        return results[0]

    async def embed_texts(
        self,
        texts: list[str],
        model: str | None = None,
    ) -> list[EmbeddingResult]:
        if not texts:
            return []

        use_model = model or self._model
        results: list[EmbeddingResult] = []
        for start in range(0, len(texts), self._batch_size):
            results.extend(
                await self._create(texts[start : start + self._batch_size], use_model)
            )
        return results

    async def _create(self, texts: list[str], model: str) -> list[EmbeddingResult]:
        # The API rejects empty strings
        inputs = [text if text.strip() else " " for text in texts]
        try:
            response = await self._client.embeddings.create(model=model, input=inputs)
        except OpenAIError as e:
            self._logger.warning(
                "Embedding request failed",
                extra={"model": model, "batch": len(inputs), "error": str(e)},
            )
            raise EmbeddingUnavailableException(str(e), model=model) from e

        tokens_per_item = None
        if response.usage:
            tokens_per_item = response.usage.total_tokens // len(inputs)

        return [
            EmbeddingResult(
                vector=list(item.embedding),
                dimensions=len(item.embedding),
                model=model,
                tokens_used=tokens_per_item,
            )
            for item in response.data
        ]
