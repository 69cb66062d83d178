"""Per-token cost accounting for chat and query embeddings.

Prices are USD per token as published by the providers in January 2025.
"""

import math
from dataclasses import dataclass

from chronos.application.dtos.retrieval import CostBreakdown


@dataclass(frozen=True)
class ChatPricing:
    """USD per token for one chat model tier."""

    input: float
    output: float
    cache_write: float
    cache_read: float


HAIKU_PRICING = ChatPricing(
    input=1.0 / 1_000_000,
    output=5.0 / 1_000_000,
    cache_write=1.25 / 1_000_000,
    cache_read=0.1 / 1_000_000,
)

SONNET_PRICING = ChatPricing(
    input=3.0 / 1_000_000,
    output=15.0 / 1_000_000,
    cache_write=3.75 / 1_000_000,
    cache_read=0.3 / 1_000_000,
)

EMBEDDING_PRICING: dict[str, float] = {
    "text-embedding-3-small": 0.02 / 1_000_000,
    "text-embedding-3-large": 0.13 / 1_000_000,
    "text-embedding-ada-002": 0.1 / 1_000_000,
}

DEFAULT_CHAT_MODEL = "claude-3-5-haiku-20241022"
DEFAULT_EMBEDDING_MODEL = "text-embedding-3-small"

# Used when the provider does not report token usage for a query.
AVG_TOKENS_PER_EMBEDDING = 50


def chat_pricing(model: str) -> ChatPricing:
    """Pricing tier for a chat model name."""
    return SONNET_PRICING if "sonnet" in model else HAIKU_PRICING


def embedding_price(model: str) -> float:
    """Per-token price for an embedding model, defaulting to 3-small."""
    return EMBEDDING_PRICING.get(model, EMBEDDING_PRICING[DEFAULT_EMBEDDING_MODEL])


class CostCalculator:
    """Attributes provider spend to chat interactions.

    Example:
        >>> calc = CostCalculator()
        >>> round(calc.complete_cost(input_tokens=500, output_tokens=800).total_cost, 6)
        0.004501
    """

    def __init__(
        self,
        chat_model: str = DEFAULT_CHAT_MODEL,
        embedding_model: str = DEFAULT_EMBEDDING_MODEL,
    ) -> None:
        self._chat_model = chat_model
        self._embedding_model = embedding_model

    @property
    def chat_model(self) -> str:
        return self._chat_model

    @property
    def embedding_model(self) -> str:
        return self._embedding_model

    def embedding_cost(
        self,
        queries: int,
        model: str | None = None,
        tokens_used: int | None = None,
    ) -> float:
        """Cost of query embeddings.

        Args:
            queries: Number of embedding computations.
            model: Embedding model; defaults to the calculator's model.
            tokens_used: Reported token usage. When absent or zero, each
                query is charged ``AVG_TOKENS_PER_EMBEDDING`` tokens.
        """
        tokens = tokens_used or queries * AVG_TOKENS_PER_EMBEDDING
        return tokens * embedding_price(model or self._embedding_model)

    def chat_cost(
        self,
        input_tokens: int,
        output_tokens: int,
        model: str | None = None,
    ) -> CostBreakdown:
        """Cost of one chat completion without embeddings."""
        model = model or self._chat_model
        pricing = chat_pricing(model)
        cost = input_tokens * pricing.input + output_tokens * pricing.output
        return CostBreakdown(
            chat_cost=cost,
            total_cost=cost,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            model=model,
        )

    def complete_cost(
        self,
        input_tokens: int = 0,
        output_tokens: int = 0,
        embedding_queries: int = 1,
        embedding_tokens: int | None = None,
        model: str | None = None,
    ) -> CostBreakdown:
        """Chat plus embedding cost; every chat query needs one embedding."""
        chat = self.chat_cost(input_tokens, output_tokens, model)
        embedding = self.embedding_cost(embedding_queries, tokens_used=embedding_tokens)
        return chat.model_copy(
            update={
                "embedding_cost": embedding,
                "embedding_queries": embedding_queries,
                "total_cost": chat.chat_cost + embedding,
            }
        )

    def estimate_session_cost(
        self,
        message_count: int,
        avg_input_tokens: int = 500,
        avg_output_tokens: int = 800,
        model: str | None = None,
    ) -> CostBreakdown:
        """Estimate a session's cost from its message count.

        Half the messages (rounded up) are assumed to be user questions,
        each triggering one embedding and one completion.
        """
        user_messages = math.ceil(message_count / 2)
        return self.complete_cost(
            input_tokens=user_messages * avg_input_tokens,
            output_tokens=user_messages * avg_output_tokens,
            embedding_queries=user_messages,
            model=model,
        )


def format_cost(cost: float) -> str:
    """Format a USD amount for display; sub-cent amounts are shown in cents."""
    if cost < 0.01:
        return f"{cost * 100:.4f}¢"
    return f"${cost:.4f}"
