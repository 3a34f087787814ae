"""Evaluation orchestrator implementing the retry/regeneration/fallback ladder.

Stages run strictly in this order, one service round trip at a time:

    GENERATE_1 -> ITEM_RETRY_1 -> SHAPE_CHECK_1
    GENERATE_2 -> ITEM_RETRY_2 -> SHAPE_CHECK_2
    SHORT_FORM_CHECK -> BEST_EFFORT -> DONE

Service calls are bounded by ``2 generations + 2 x (items needing retry) + 1
best-effort``. Errors raised by a generation or best-effort request propagate
to the caller; any error during an item retry drops that item.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

import structlog

from speech_evaluator.evaluation.completion import CompletionInvoker
from speech_evaluator.evaluation.models import (
    DeliveryMetrics,
    EvaluationConfig,
    EvaluationItem,
    GenerateResult,
    ItemType,
    StructuredEvaluation,
    TranscriptSegment,
    VisualObservations,
)
from speech_evaluator.evaluation.prompts import (
    PromptMessages,
    build_evaluation_prompt,
    build_item_retry_prompt,
)
from speech_evaluator.evaluation.validation import (
    EvidenceValidator,
    TranscriptIndex,
    build_transcript_index,
)

logger = structlog.get_logger(__name__)

# Shape invariant bounds
MIN_COMMENDATIONS = 2
MAX_COMMENDATIONS = 3
MIN_RECOMMENDATIONS = 1
MAX_RECOMMENDATIONS = 2

MAX_FULL_GENERATIONS = 2


class GenerationStage(str, Enum):
    GENERATE = "generate"
    ITEM_RETRY = "item_retry"
    SHAPE_CHECK = "shape_check"
    SHORT_FORM_CHECK = "short_form_check"
    BEST_EFFORT = "best_effort"
    DONE = "done"


@dataclass(frozen=True)
class AttemptOutcome:
    """Items surviving one generate + item-retry pass."""

    evaluation: StructuredEvaluation
    first_pass_count: int

    @property
    def delivered_count(self) -> int:
        return len(self.evaluation.items)

    @property
    def pass_rate(self) -> float:
        if self.delivered_count == 0:
            return 0.0
        return self.first_pass_count / self.delivered_count


def meets_shape_invariant(evaluation: StructuredEvaluation) -> bool:
    """2-3 commendations and 1-2 recommendations."""
    commendations = evaluation.count(ItemType.COMMENDATION)
    recommendations = evaluation.count(ItemType.RECOMMENDATION)
    return (
        MIN_COMMENDATIONS <= commendations <= MAX_COMMENDATIONS
        and MIN_RECOMMENDATIONS <= recommendations <= MAX_RECOMMENDATIONS
    )


def meets_short_form(evaluation: StructuredEvaluation) -> bool:
    """Relaxed acceptance: at least one item of each type."""
    return (
        evaluation.count(ItemType.COMMENDATION) >= 1
        and evaluation.count(ItemType.RECOMMENDATION) >= 1
    )


class EvaluationOrchestrator:
    """Coordinates prompt building, invocation and validation to satisfy the shape invariant."""

    def __init__(
        self,
        invoker: CompletionInvoker,
        validator: EvidenceValidator | None = None,
    ) -> None:
        self._invoker = invoker
        self._validator = validator or EvidenceValidator()

    async def generate(
        self,
        transcript: Sequence[TranscriptSegment],
        metrics: DeliveryMetrics,
        config: EvaluationConfig | None = None,
        visual_observations: VisualObservations | None = None,
    ) -> GenerateResult:
        """Run the ladder and return the accepted evaluation with its pass rate."""
        start_time = time.time()
        calls_before = self._invoker.calls_made
        prompt = build_evaluation_prompt(transcript, metrics, config, visual_observations)
        index = build_transcript_index(transcript)

        logger.info(
            "Evaluation generation starting",
            segments=len(transcript),
            transcript_tokens=len(index.tokens),
            has_config=config is not None,
            has_visual_observations=visual_observations is not None,
        )

        outcome: AttemptOutcome | None = None
        for attempt in range(1, MAX_FULL_GENERATIONS + 1):
            outcome = await self._run_attempt(attempt, prompt, transcript, index)

            accepted = meets_shape_invariant(outcome.evaluation)
            logger.info(
                "Shape check completed",
                stage=GenerationStage.SHAPE_CHECK.value,
                attempt=attempt,
                commendations=outcome.evaluation.count(ItemType.COMMENDATION),
                recommendations=outcome.evaluation.count(ItemType.RECOMMENDATION),
                passed=accepted,
            )
            if accepted:
                return self._finish(outcome.evaluation, outcome.pass_rate, start_time, calls_before)

        if outcome is not None and meets_short_form(outcome.evaluation):
            logger.warning(
                "Accepting short-form evaluation",
                stage=GenerationStage.SHORT_FORM_CHECK.value,
                items=outcome.delivered_count,
            )
            return self._finish(outcome.evaluation, outcome.pass_rate, start_time, calls_before)

        logger.warning(
            "Short-form fallback failed, requesting unvalidated best-effort evaluation",
            stage=GenerationStage.BEST_EFFORT.value,
        )
        evaluation = await self._invoker.request_evaluation(
            prompt, kind=GenerationStage.BEST_EFFORT.value
        )
        return self._finish(evaluation, 0.0, start_time, calls_before)

    async def _run_attempt(
        self,
        attempt: int,
        prompt: PromptMessages,
        transcript: Sequence[TranscriptSegment],
        index: TranscriptIndex,
    ) -> AttemptOutcome:
        """Generate once, then give each failing item exactly one retry."""
        evaluation = await self._invoker.request_evaluation(
            prompt, kind=GenerationStage.GENERATE.value
        )

        accepted: list[EvaluationItem] = []
        first_pass_count = 0
        for position, item in enumerate(evaluation.items):
            issues = self._validator.validate_item(item, index)
            if not issues:
                accepted.append(item)
                first_pass_count += 1
                continue

            logger.info(
                "Evaluation item failed evidence validation",
                stage=GenerationStage.ITEM_RETRY.value,
                attempt=attempt,
                item_index=position,
                item_type=item.type.value,
                issues=issues,
            )
            retried = await self._retry_item(item, transcript, index, issues)
            if retried is not None:
                accepted.append(retried)

        logger.info(
            "Evaluation attempt validated",
            attempt=attempt,
            generated_items=len(evaluation.items),
            first_pass_items=first_pass_count,
            delivered_items=len(accepted),
        )
        return AttemptOutcome(
            evaluation=evaluation.model_copy(update={"items": accepted}),
            first_pass_count=first_pass_count,
        )

    async def _retry_item(
        self,
        item: EvaluationItem,
        transcript: Sequence[TranscriptSegment],
        index: TranscriptIndex,
        issues: list[str],
    ) -> EvaluationItem | None:
        """Re-prompt for one item; None means the item is dropped."""
        prompt = build_item_retry_prompt(item, transcript, issues)
        try:
            retried = await self._invoker.request_item(prompt, item.type)
        except Exception as e:
            logger.warning(
                "Item retry failed, dropping item",
                item_type=item.type.value,
                error_kind=getattr(e, "error_kind", type(e).__name__),
                error=str(e),
            )
            return None

        retry_issues = self._validator.validate_item(retried, index)
        if retry_issues:
            logger.info(
                "Item retry failed evidence validation, dropping item",
                item_type=item.type.value,
                issues=retry_issues,
            )
            return None
        return retried

    def _finish(
        self,
        evaluation: StructuredEvaluation,
        pass_rate: float,
        start_time: float,
        calls_before: int,
    ) -> GenerateResult:
        logger.info(
            "Evaluation accepted",
            stage=GenerationStage.DONE.value,
            items=len(evaluation.items),
            pass_rate=round(pass_rate, 3),
            service_calls=self._invoker.calls_made - calls_before,
            total_time_ms=int((time.time() - start_time) * 1000),
        )
        return GenerateResult(evaluation=evaluation, pass_rate=pass_rate)
