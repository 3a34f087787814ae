"""Embedding-based consistency telemetry across successive evaluations.

Observability only: nothing here can fail a generation.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

import structlog

from speech_evaluator.config import settings
from speech_evaluator.evaluation.clients import EmbeddingClient
from speech_evaluator.evaluation.models import StructuredEvaluation

logger = structlog.get_logger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 for empty, mismatched or all-zero vectors."""
    if not a or not b or len(a) != len(b):
        return 0.0
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class ConsistencyTelemetry:
    """Tracks the last evaluation embedding for one engine instance.

    The cached vector is not keyed by session; use one instance per session
    to track per-session drift.
    """

    def __init__(
        self,
        embedding_client: EmbeddingClient | None = None,
        model: str | None = None,
    ) -> None:
        self._client = embedding_client
        self.model = model or settings.embedding_model
        self._last_embedding: list[float] | None = None

    async def log(self, evaluation: StructuredEvaluation) -> None:
        """Embed the item summaries and log similarity to the previous evaluation."""
        try:
            if self._client is None:
                raise RuntimeError("embedding service unavailable")

            text = ". ".join(item.summary for item in evaluation.items)
            response = await self._client.embeddings.create(model=self.model, input=text)
            embedding = [float(value) for value in response.data[0].embedding]

            if self._last_embedding is None:
                logger.info(
                    "First evaluation, caching embedding for consistency tracking",
                    model=self.model,
                    dimensions=len(embedding),
                )
            else:
                similarity = cosine_similarity(self._last_embedding, embedding)
                logger.info(
                    "Evaluation consistency similarity",
                    model=self.model,
                    similarity=round(similarity, 4),
                )
            self._last_embedding = embedding
        except Exception as e:
            logger.warning("Consistency telemetry failed", error=str(e))
