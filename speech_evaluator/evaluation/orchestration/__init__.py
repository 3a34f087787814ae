"""Retry/regeneration orchestration."""

from speech_evaluator.evaluation.orchestration.evaluation_orchestrator import (
    EvaluationOrchestrator,
    GenerationStage,
    meets_shape_invariant,
    meets_short_form,
)

__all__ = [
    "EvaluationOrchestrator",
    "GenerationStage",
    "meets_shape_invariant",
    "meets_short_form",
]
