"""Narration rendering with inline evidence and metric markers."""

from speech_evaluator.evaluation.rendering.script_renderer import (
    METRIC_KEYWORDS,
    ScriptRenderer,
    metric_fields_for,
    strip_markers,
)

__all__ = ["METRIC_KEYWORDS", "ScriptRenderer", "metric_fields_for", "strip_markers"]
