"""Retrieval engine: similarity ranking over materialized chunk embeddings."""

import math
from collections.abc import Sequence

from chronos.application.dtos.retrieval import (
    RetrievalResponse,
    RetrievalUsage,
    RetrievedChunk,
)
from chronos.application.services.cost import CostCalculator
from chronos.commons.settings.models import RetrievalSettings
from chronos.commons.telemetry import get_logger
from chronos.domain.exceptions import (
    ChatSessionNotFoundException,
    DimensionMismatchException,
    DomainException,
    EmbeddingUnavailableException,
)
from chronos.domain.models.chat import ChatSession
from chronos.domain.models.chunk import Chunk
from chronos.domain.models.video import VideoStatus
from chronos.infrastructure.embeddings.base import EmbeddingServiceBase
from chronos.infrastructure.repositories import (
    ChatSessionRepository,
    ChunkRepository,
    VideoRepository,
)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Returns 0.0 when either vector has zero magnitude.

    Raises:
        DimensionMismatchException: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise DimensionMismatchException(len(a), len(b))

    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def rank_top_k(
    query_vector: Sequence[float],
    candidates: Sequence[Chunk],
    k: int = 3,
    similarity_threshold: float | None = None,
) -> list[RetrievedChunk]:
    """Rank candidates by similarity to the query and keep the best ``k``.

    The sort is stable, so equal scores keep their candidate order. Chunks
    without an embedding are not scored. When fewer than ``k`` candidates
    qualify, all of them are returned in ranked order.
    """
    if k < 1:
        raise ValueError(f"k must be at least 1, got {k}")

    scored = [
        (chunk, cosine_similarity(query_vector, chunk.embedding))
        for chunk in candidates
        if chunk.embedding is not None
    ]
    if similarity_threshold is not None:
        scored = [(c, s) for c, s in scored if s >= similarity_threshold]

    scored.sort(key=lambda item: item[1], reverse=True)

    return [
        RetrievedChunk(chunk=chunk, similarity=score, rank=i)
        for i, (chunk, score) in enumerate(scored[:k], start=1)
    ]


class RetrievalService:
    """Answers chat queries with the most relevant transcript chunks.

    Each query costs exactly one embedding call. Provider failures surface as
    ``EmbeddingUnavailableException`` and are never retried here.
    """

    def __init__(
        self,
        embedder: EmbeddingServiceBase,
        chunks: ChunkRepository,
        videos: VideoRepository,
        sessions: ChatSessionRepository,
        cost_calculator: CostCalculator | None = None,
        settings: RetrievalSettings | None = None,
    ) -> None:
        self._embedder = embedder
        self._chunks = chunks
        self._videos = videos
        self._sessions = sessions
        self._settings = settings or RetrievalSettings()
        self._costs = cost_calculator or CostCalculator(
            chat_model=self._settings.chat_model,
            embedding_model=embedder.model,
        )
        self._logger = get_logger(__name__)

    async def retrieve(
        self,
        query: str,
        candidates: Sequence[Chunk],
        k: int | None = None,
    ) -> RetrievalResponse:
        """Rank a pre-filtered candidate set against a query.

        Args:
            query: Natural-language question.
            candidates: Chunks already restricted to the caller's scope.
            k: Number of results; defaults to ``retrieval.default_k``.

        Raises:
            EmbeddingUnavailableException: If the query cannot be embedded.
            DimensionMismatchException: If stored vectors do not match the
                query vector's dimensionality.
        """
        k = k or self._settings.default_k

        try:
            embedding = await self._embedder.embed_text(query)
        except DomainException:
            raise
        except Exception as e:
            raise EmbeddingUnavailableException(str(e), model=self._embedder.model) from e

        results = rank_top_k(
            embedding.vector,
            candidates,
            k=k,
            similarity_threshold=self._settings.similarity_threshold,
        )

        tokens = embedding.tokens_used or 0
        usage = RetrievalUsage(
            embedding_queries=1,
            tokens_used=tokens,
            model=embedding.model,
        )
        cost = self._costs.complete_cost(
            embedding_queries=1,
            embedding_tokens=tokens or None,
        )

        self._logger.info(
            "Retrieved chunks",
            extra={
                "candidates": len(candidates),
                "results": len(results),
                "k": k,
                "tokens_used": tokens,
            },
        )

        return RetrievalResponse(
            query=query,
            results=results,
            candidates_considered=len(candidates),
            usage=usage,
            cost=cost,
        )

    async def retrieve_for_session(
        self,
        session: ChatSession,
        query: str,
        k: int | None = None,
    ) -> RetrievalResponse:
        """Retrieve over a session's scope.

        Scoped sessions search their own videos; unscoped sessions search
        every completed video of the creator.
        """
        if session.is_scoped:
            video_ids = session.video_ids
        else:
            video_ids = await self._videos.list_ids(
                session.creator_id, status=VideoStatus.COMPLETED
            )

        candidates = await self._chunks.list_by_videos(video_ids, embedded_only=True)
        return await self.retrieve(query, candidates, k)

    async def retrieve_for_session_id(
        self,
        session_id: str,
        query: str,
        k: int | None = None,
    ) -> RetrievalResponse:
        session = await self._sessions.get(session_id)
        if session is None:
            raise ChatSessionNotFoundException(session_id)
        return await self.retrieve_for_session(session, query, k)
