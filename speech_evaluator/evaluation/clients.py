"""Completion and embedding service interfaces consumed by the engine.

Only the call shape is assumed: ``chat.completions.create(...)`` returning
``choices[0].message.content`` and ``embeddings.create(...)`` returning
``data[0].embedding``. The OpenAI SDK satisfies both; tests inject fakes.
"""

from __future__ import annotations

from typing import Any, Protocol

from speech_evaluator.config import Settings, settings as default_settings


class _ChatCompletions(Protocol):
    async def create(self, **kwargs: Any) -> Any: ...


class _Chat(Protocol):
    completions: _ChatCompletions


class CompletionClient(Protocol):
    """Anything exposing an async ``chat.completions.create``."""

    chat: _Chat


class _Embeddings(Protocol):
    async def create(self, *, model: str, input: str) -> Any: ...


class EmbeddingClient(Protocol):
    """Anything exposing an async ``embeddings.create``."""

    embeddings: _Embeddings


def build_openai_client(settings: Settings | None = None) -> Any:
    """Create an AsyncOpenAI client usable as both completion and embedding service."""
    from openai import AsyncOpenAI

    settings = settings or default_settings
    if settings.openai_api_key:
        return AsyncOpenAI(api_key=settings.openai_api_key)
    return AsyncOpenAI()
