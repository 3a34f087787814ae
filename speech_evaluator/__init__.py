"""Evidence-grounded speech evaluation engine."""

from speech_evaluator.evaluation import EvaluationGenerator

__all__ = ["EvaluationGenerator"]
