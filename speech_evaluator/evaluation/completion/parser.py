"""Validation of untrusted completion JSON into evaluation models."""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError
import structlog

from speech_evaluator.evaluation.errors import ResponseParseError, SchemaValidationError
from speech_evaluator.evaluation.models import (
    EvaluationItem,
    ItemType,
    StructureCommentary,
    StructuredEvaluation,
    VisualFeedbackItem,
)

logger = structlog.get_logger(__name__)

_COMMENTARY_FIELDS = ("opening_comment", "body_comment", "closing_comment")


def load_json(raw: str) -> Any:
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ResponseParseError(
            f"Failed to parse completion response as JSON: {str(raw)[:200]}"
        ) from exc


def error_path(error: ValidationError) -> str:
    """Render the location of the first validation error as ``items[0].type``."""
    path = ""
    for part in error.errors()[0]["loc"]:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def parse_item(raw: Any, prefix: str = "item") -> EvaluationItem:
    """Validate one commendation/recommendation object."""
    try:
        return EvaluationItem.model_validate(raw)
    except ValidationError as e:
        path = error_path(e)
        if not path:
            raise SchemaValidationError(f"{prefix}: missing or invalid item object") from e
        raise SchemaValidationError(f"{prefix}: missing or invalid '{path}'") from e


def parse_structure_commentary(raw: Any) -> StructureCommentary:
    """Absent or non-object commentary becomes all-null; empty strings become null."""
    if not isinstance(raw, dict):
        return StructureCommentary()
    values: dict[str, str | None] = {}
    for field in _COMMENTARY_FIELDS:
        value = raw.get(field)
        values[field] = value if isinstance(value, str) and value.strip() else None
    return StructureCommentary(**values)


def parse_visual_feedback(raw: Any) -> list[VisualFeedbackItem] | None:
    """Keep well-formed visual observations; malformed entries are dropped."""
    if not isinstance(raw, list):
        return None
    items: list[VisualFeedbackItem] = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, dict) or entry.get("type") != "visual_observation":
            logger.debug("Dropping visual feedback entry", index=index, reason="type")
            continue
        try:
            item = VisualFeedbackItem.model_validate(entry)
        except ValidationError as e:
            logger.debug("Dropping visual feedback entry", index=index, reason=error_path(e))
            continue
        if all(text.strip() for text in (item.summary, item.observation_data, item.explanation)):
            items.append(item)
    return items


def parse_evaluation(raw: str) -> StructuredEvaluation:
    """Parse a full-evaluation response; raises on invalid JSON or schema."""
    data = load_json(raw)
    if isinstance(data, dict):
        data = {
            **data,
            "structure_commentary": parse_structure_commentary(data.get("structure_commentary")),
            "visual_feedback": parse_visual_feedback(data.get("visual_feedback")),
        }
    try:
        return StructuredEvaluation.model_validate(data)
    except ValidationError as e:
        path = error_path(e)
        if not path:
            raise SchemaValidationError(
                "Completion response missing or invalid top-level object"
            ) from e
        raise SchemaValidationError(
            f"Completion response missing or invalid '{path}'"
        ) from e


def parse_item_response(raw: str, expected_type: ItemType) -> EvaluationItem:
    """Parse a single-item retry response against the item schema alone."""
    item = parse_item(load_json(raw), prefix="item")
    if item.type != expected_type:
        raise SchemaValidationError(
            f"item: missing or invalid 'type' (expected {expected_type.value!r}, got {item.type.value!r})"
        )
    return item
