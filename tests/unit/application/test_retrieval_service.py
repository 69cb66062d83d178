"""Unit tests for the retrieval engine."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from chronos.application.services.cost import CostCalculator
from chronos.application.services.retrieval import (
    RetrievalService,
    cosine_similarity,
    rank_top_k,
)
from chronos.commons.settings.models import RetrievalSettings
from chronos.domain.exceptions import (
    ChatSessionNotFoundException,
    DimensionMismatchException,
    EmbeddingUnavailableException,
)
from chronos.domain.models.chat import ChatSession
from chronos.domain.models.chunk import Chunk
from chronos.domain.models.video import VideoStatus
from chronos.infrastructure.embeddings.base import EmbeddingResult


def make_chunk(chunk_id: str, embedding: list[float] | None, index: int = 0) -> Chunk:
    return Chunk(
        id=chunk_id,
        video_id="video-1",
        chunk_index=index,
        text=f"text of {chunk_id}",
        embedding=embedding,
    )


# =============================================================================
# Similarity and ranking
# =============================================================================


class TestCosineSimilarity:
    """Tests for cosine_similarity."""

    def test_identical_vectors(self):
        assert cosine_similarity([1.0, 2.0, 3.0], [1.0, 2.0, 3.0]) == pytest.approx(1.0)

    def test_orthogonal_vectors(self):
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)

    def test_opposite_vectors(self):
        assert cosine_similarity([1.0, 1.0], [-1.0, -1.0]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert cosine_similarity([1.0, 2.0], [10.0, 20.0]) == pytest.approx(1.0)

    def test_zero_vector(self):
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0

    def test_zero_vector_on_right(self):
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    @pytest.mark.parametrize(
        ("a", "b"),
        [
            ([0.3, -1.2, 4.5], [2.0, 0.7, -0.1]),
            ([0.12, 0.98, 0.05, -0.4], [0.5, -0.25, 0.75, 0.33]),
            ([1e-3, 2.5], [-7.0, 1e3]),
        ],
    )
    def test_symmetric(self, a, b):
        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchException) as exc_info:
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

        assert (exc_info.value.left, exc_info.value.right) == (2, 3)


class TestRankTopK:
    """Tests for rank_top_k."""

    def test_orders_by_similarity(self):
        candidates = [
            make_chunk("far", [0.0, 1.0]),
            make_chunk("near", [1.0, 0.1]),
            make_chunk("exact", [1.0, 0.0]),
        ]

        results = rank_top_k([1.0, 0.0], candidates, k=3)

        assert [r.chunk.id for r in results] == ["exact", "near", "far"]
        assert [r.rank for r in results] == [1, 2, 3]
        assert results[0].similarity == pytest.approx(1.0)

    def test_truncates_to_k(self):
        candidates = [make_chunk(f"c{i}", [1.0, float(i)]) for i in range(5)]
        assert len(rank_top_k([1.0, 0.0], candidates, k=2)) == 2

    def test_fewer_candidates_than_k(self):
        results = rank_top_k([1.0, 0.0], [make_chunk("only", [1.0, 0.0])], k=3)
        assert len(results) == 1

    def test_ties_keep_candidate_order(self):
        candidates = [
            make_chunk("first", [2.0, 0.0]),
            make_chunk("second", [1.0, 0.0]),
            make_chunk("third", [3.0, 0.0]),
        ]

        results = rank_top_k([1.0, 0.0], candidates, k=3)

        assert [r.chunk.id for r in results] == ["first", "second", "third"]

    def test_skips_chunks_without_embedding(self):
        candidates = [make_chunk("pending", None), make_chunk("ready", [1.0, 0.0])]
        results = rank_top_k([1.0, 0.0], candidates)
        assert [r.chunk.id for r in results] == ["ready"]

    def test_similarity_threshold(self):
        candidates = [make_chunk("close", [1.0, 0.0]), make_chunk("far", [0.0, 1.0])]
        results = rank_top_k([1.0, 0.0], candidates, similarity_threshold=0.5)
        assert [r.chunk.id for r in results] == ["close"]

    def test_repeated_calls_rank_identically(self):
        candidates = [
            make_chunk("a", [0.9, 0.1, 0.3]),
            make_chunk("b", [0.2, 0.8, 0.1]),
            make_chunk("c", [0.9, 0.1, 0.3]),
            make_chunk("d", [-0.5, 0.4, 0.9]),
            make_chunk("e", [0.6, 0.6, 0.0]),
        ]
        query = [0.7, 0.2, 0.4]

        first = rank_top_k(query, candidates, k=4)
        second = rank_top_k(query, candidates, k=4)

        assert [r.chunk.id for r in first] == [r.chunk.id for r in second]
        assert [r.similarity for r in first] == [r.similarity for r in second]
        assert [r.chunk.id for r in first][:2] == ["a", "c"]

    def test_empty(self):
        assert rank_top_k([1.0, 0.0], []) == []

    def test_invalid_k(self):
        with pytest.raises(ValueError):
            rank_top_k([1.0], [], k=0)

    def test_mismatched_candidate(self):
        with pytest.raises(DimensionMismatchException):
            rank_top_k([1.0, 0.0], [make_chunk("wide", [1.0, 0.0, 0.0])])


# =============================================================================
# Service
# =============================================================================


@pytest.fixture
def embedder():
    mock = AsyncMock()
    mock.model = "text-embedding-3-small"
    mock.embed_text.return_value = EmbeddingResult(
        vector=[1.0, 0.0],
        dimensions=2,
        model="text-embedding-3-small",
        tokens_used=8,
    )
    return mock


@pytest.fixture
def chunks():
    mock = AsyncMock()
    mock.list_by_videos.return_value = [
        make_chunk("a", [1.0, 0.0], 0),
        make_chunk("b", [0.0, 1.0], 1),
    ]
    return mock


@pytest.fixture
def videos():
    mock = AsyncMock()
    mock.list_ids.return_value = ["video-1", "video-2"]
    return mock


@pytest.fixture
def sessions():
    return AsyncMock()


@pytest.fixture
def service(embedder, chunks, videos, sessions):
    return RetrievalService(
        embedder=embedder,
        chunks=chunks,
        videos=videos,
        sessions=sessions,
        settings=RetrievalSettings(default_k=3),
    )


class TestRetrieve:
    """Tests for RetrievalService.retrieve."""

    async def test_single_embedding_call(self, service, embedder, chunks):
        candidates = chunks.list_by_videos.return_value

        response = await service.retrieve("how do refunds work?", candidates)

        embedder.embed_text.assert_awaited_once_with("how do refunds work?")
        assert response.query == "how do refunds work?"
        assert [r.chunk.id for r in response.results] == ["a", "b"]
        assert response.candidates_considered == 2
        assert response.usage.embedding_queries == 1
        assert response.usage.tokens_used == 8
        assert response.usage.model == "text-embedding-3-small"

    async def test_cost_uses_reported_tokens(self, service, chunks):
        response = await service.retrieve("q", chunks.list_by_videos.return_value)

        assert response.cost.embedding_queries == 1
        assert response.cost.embedding_cost == pytest.approx(8 * 0.02 / 1_000_000)
        assert response.cost.chat_cost == 0.0

    async def test_cost_falls_back_to_average_tokens(self, service, embedder):
        embedder.embed_text.return_value = EmbeddingResult(
            vector=[1.0, 0.0], dimensions=2, model="text-embedding-3-small"
        )

        response = await service.retrieve("q", [])

        assert response.usage.tokens_used == 0
        assert response.cost.embedding_cost == pytest.approx(50 * 0.02 / 1_000_000)

    async def test_explicit_k(self, service, chunks):
        response = await service.retrieve("q", chunks.list_by_videos.return_value, k=1)
        assert len(response.results) == 1

    async def test_provider_failure_is_wrapped(self, service, embedder):
        embedder.embed_text.side_effect = RuntimeError("429 rate limited")

        with pytest.raises(EmbeddingUnavailableException) as exc_info:
            await service.retrieve("q", [])

        assert exc_info.value.model == "text-embedding-3-small"
        assert "429" in exc_info.value.reason
        assert embedder.embed_text.await_count == 1

    async def test_domain_errors_pass_through(self, service, embedder):
        embedder.embed_text.side_effect = EmbeddingUnavailableException("timeout")

        with pytest.raises(EmbeddingUnavailableException, match="timeout"):
            await service.retrieve("q", [])

    async def test_dimension_mismatch_propagates(self, service):
        with pytest.raises(DimensionMismatchException):
            await service.retrieve("q", [make_chunk("wide", [1.0, 0.0, 0.0])])

    async def test_custom_cost_calculator(self, embedder, chunks, videos, sessions):
        calculator = MagicMock(spec=CostCalculator)
        calculator.complete_cost.return_value = CostCalculator().complete_cost()
        service = RetrievalService(
            embedder, chunks, videos, sessions, cost_calculator=calculator
        )

        await service.retrieve("q", [])

        calculator.complete_cost.assert_called_once_with(
            embedding_queries=1, embedding_tokens=8
        )


class TestRetrieveForSession:
    """Tests for session-scoped retrieval."""

    async def test_scoped_session(self, service, chunks, videos):
        session = ChatSession(creator_id="creator-1", video_ids=["video-9"])

        await service.retrieve_for_session(session, "q")

        chunks.list_by_videos.assert_awaited_once_with(["video-9"], embedded_only=True)
        videos.list_ids.assert_not_awaited()

    async def test_unscoped_session_searches_completed_videos(
        self, service, chunks, videos
    ):
        session = ChatSession(creator_id="creator-1")

        await service.retrieve_for_session(session, "q")

        videos.list_ids.assert_awaited_once_with(
            "creator-1", status=VideoStatus.COMPLETED
        )
        chunks.list_by_videos.assert_awaited_once_with(
            ["video-1", "video-2"], embedded_only=True
        )

    async def test_by_session_id(self, service, sessions):
        sessions.get.return_value = ChatSession(
            id="session-1", creator_id="creator-1", video_ids=["video-1"]
        )

        response = await service.retrieve_for_session_id("session-1", "q", k=1)

        assert len(response.results) == 1

    async def test_missing_session(self, service, sessions):
        sessions.get.return_value = None

        with pytest.raises(ChatSessionNotFoundException):
            await service.retrieve_for_session_id("missing", "q")
