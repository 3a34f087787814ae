"""Consistency telemetry."""

from speech_evaluator.evaluation.telemetry.consistency import (
    ConsistencyTelemetry,
    cosine_similarity,
)

__all__ = ["ConsistencyTelemetry", "cosine_similarity"]
