"""Evidence-grounded evaluation generation, validation, rendering and redaction."""

from speech_evaluator.evaluation.generator import EvaluationGenerator

__all__ = ["EvaluationGenerator"]
