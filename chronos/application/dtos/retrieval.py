"""DTOs for chunk retrieval and cost accounting."""

from pydantic import BaseModel, Field

from chronos.domain.models.chunk import Chunk


class RetrievedChunk(BaseModel):
    """One ranked result."""

    chunk: Chunk
    similarity: float
    rank: int = Field(ge=1)


class RetrievalUsage(BaseModel):
    """Provider usage attributable to one query."""

    embedding_queries: int = 1
    tokens_used: int = 0
    model: str


class CostBreakdown(BaseModel):
    """Spend in USD split by operation."""

    chat_cost: float = 0.0
    embedding_cost: float = 0.0
    total_cost: float = 0.0
    input_tokens: int = 0
    output_tokens: int = 0
    embedding_queries: int = 0
    model: str | None = None


class RetrievalResponse(BaseModel):
    """Ranked chunks plus usage for the cost calculator."""

    query: str
    results: list[RetrievedChunk] = Field(default_factory=list)
    candidates_considered: int = 0
    usage: RetrievalUsage
    cost: CostBreakdown
