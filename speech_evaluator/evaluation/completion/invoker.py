"""Issues one JSON-mode completion request per attempt."""

from __future__ import annotations

import time

import structlog

from speech_evaluator.config import settings
from speech_evaluator.evaluation.clients import CompletionClient
from speech_evaluator.evaluation.completion.parser import parse_evaluation, parse_item_response
from speech_evaluator.evaluation.errors import EmptyResponseError
from speech_evaluator.evaluation.models import EvaluationItem, ItemType, StructuredEvaluation
from speech_evaluator.evaluation.prompts import PromptMessages
from speech_evaluator.utils.model_settings import build_completion_kwargs

logger = structlog.get_logger(__name__)


class CompletionInvoker:
    """Thin boundary around the completion service; every response is validated here."""

    def __init__(
        self,
        client: CompletionClient,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self._client = client
        self.model = model or settings.evaluation_model
        self.temperature = (
            settings.evaluation_temperature if temperature is None else temperature
        )
        self.calls_made = 0

    async def complete(self, prompt: PromptMessages, *, kind: str) -> str:
        """Send one request and return the raw message content."""
        self.calls_made += 1
        start_time = time.time()
        logger.info("Requesting completion", kind=kind, model=self.model, call=self.calls_made)

        response = await self._client.chat.completions.create(
            messages=prompt.as_messages(),
            **build_completion_kwargs(self.model, temperature=self.temperature),
        )

        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        if not content:
            logger.error("Completion returned empty response", kind=kind)
            raise EmptyResponseError()

        logger.info(
            "Completion received",
            kind=kind,
            response_chars=len(content),
            request_time_ms=int((time.time() - start_time) * 1000),
        )
        return content

    async def request_evaluation(
        self,
        prompt: PromptMessages,
        *,
        kind: str = "evaluation",
    ) -> StructuredEvaluation:
        raw = await self.complete(prompt, kind=kind)
        return parse_evaluation(raw)

    async def request_item(
        self,
        prompt: PromptMessages,
        expected_type: ItemType,
    ) -> EvaluationItem:
        raw = await self.complete(prompt, kind="item_retry")
        return parse_item_response(raw, expected_type)
