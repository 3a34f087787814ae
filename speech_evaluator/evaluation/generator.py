"""Public entry point for evidence-grounded evaluation generation.

Typical session flow:

    generator = EvaluationGenerator(build_openai_client())
    result = await generator.generate(segments, metrics)
    script = generator.render_script(result.evaluation, metrics=metrics)
    public = generator.redact(RedactionInput(script=script, evaluation=result.evaluation, consent=consent))
    await generator.log_consistency_telemetry(result.evaluation)

Logging is configured by the owning entry point via ``configure_structlog()``,
or here at construction when ``SPEECH_EVALUATOR_CONFIGURE_LOGGING`` is set.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from speech_evaluator.config import configure_structlog, settings
from speech_evaluator.evaluation.clients import CompletionClient, EmbeddingClient
from speech_evaluator.evaluation.completion import CompletionInvoker
from speech_evaluator.evaluation.models import (
    DeliveryMetrics,
    EvaluationConfig,
    GenerateResult,
    RedactionInput,
    RedactionOutput,
    StructuredEvaluation,
    TranscriptSegment,
    ValidationResult,
    VisualObservations,
)
from speech_evaluator.evaluation.orchestration import EvaluationOrchestrator
from speech_evaluator.evaluation.redaction import Redactor
from speech_evaluator.evaluation.rendering import ScriptRenderer
from speech_evaluator.evaluation.telemetry import ConsistencyTelemetry
from speech_evaluator.evaluation.validation import EvidenceValidator

logger = structlog.get_logger(__name__)


class EvaluationGenerator:
    """Wires the engine's components behind the session-facing operations.

    Only the consistency telemetry carries state between calls; one instance
    per session keeps its drift tracking per session.
    """

    def __init__(
        self,
        client: CompletionClient,
        embedding_client: EmbeddingClient | None = None,
        model: str | None = None,
        temperature: float | None = None,
        embedding_model: str | None = None,
    ) -> None:
        if settings.configure_logging:
            configure_structlog()

        self.invoker = CompletionInvoker(client, model=model, temperature=temperature)
        self.validator = EvidenceValidator()
        self.orchestrator = EvaluationOrchestrator(self.invoker, self.validator)
        self.renderer = ScriptRenderer()
        self.redactor = Redactor()
        self.telemetry = ConsistencyTelemetry(embedding_client, model=embedding_model)

        logger.info(
            "EvaluationGenerator initialized",
            model=self.invoker.model,
            embedding_enabled=embedding_client is not None,
        )

    async def generate(
        self,
        transcript: Sequence[TranscriptSegment],
        metrics: DeliveryMetrics,
        config: EvaluationConfig | None = None,
        visual_observations: VisualObservations | None = None,
    ) -> GenerateResult:
        return await self.orchestrator.generate(
            transcript, metrics, config=config, visual_observations=visual_observations
        )

    def validate(
        self,
        evaluation: StructuredEvaluation,
        segments: Sequence[TranscriptSegment],
    ) -> ValidationResult:
        return self.validator.validate(evaluation, segments)

    def render_script(
        self,
        evaluation: StructuredEvaluation,
        speaker_name: str | None = None,
        metrics: DeliveryMetrics | None = None,
        visual_observations: VisualObservations | None = None,
    ) -> str:
        """Render narration with markers; ``speaker_name`` does not affect the output.

        Names are handled by ``redact``, which runs on the rendered script.
        """
        return self.renderer.render_script(
            evaluation,
            speaker_name=speaker_name,
            metrics=metrics,
            visual_observations=visual_observations,
        )

    def redact(self, redaction_input: RedactionInput) -> RedactionOutput:
        return self.redactor.redact(redaction_input)

    async def log_consistency_telemetry(self, evaluation: StructuredEvaluation) -> None:
        """Best-effort; never raises."""
        await self.telemetry.log(evaluation)
