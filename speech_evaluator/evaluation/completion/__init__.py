"""Completion invocation and response parsing."""

from speech_evaluator.evaluation.completion.invoker import CompletionInvoker
from speech_evaluator.evaluation.completion.parser import (
    parse_evaluation,
    parse_item,
    parse_item_response,
)

__all__ = [
    "CompletionInvoker",
    "parse_evaluation",
    "parse_item",
    "parse_item_response",
]
