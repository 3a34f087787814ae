"""Prompt templates and builders for evaluation generation."""

from speech_evaluator.evaluation.prompts.builder import (
    PromptMessages,
    assess_transcript_quality,
    build_evaluation_prompt,
    build_item_retry_prompt,
    format_transcript,
    high_confidence_segments,
)

__all__ = [
    "PromptMessages",
    "assess_transcript_quality",
    "build_evaluation_prompt",
    "build_item_retry_prompt",
    "format_transcript",
    "high_confidence_segments",
]
