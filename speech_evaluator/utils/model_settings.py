"""Utilities for shaping completion requests per model capability."""

from __future__ import annotations

from typing import Any

_REASONING_PREFIXES = ("o1", "o2", "o3", "o4", "o-")

JSON_RESPONSE_FORMAT = {"type": "json_object"}


def supports_temperature(model_name: str | None) -> bool:
    """Reasoning-family models reject sampling parameters."""
    if not model_name:
        return True
    return not model_name.strip().lower().startswith(_REASONING_PREFIXES)


def build_completion_kwargs(
    model_name: str,
    *,
    temperature: float | None = None,
    **overrides: Any,
) -> dict[str, Any]:
    """Create JSON-mode completion kwargs, gating temperature by model capability."""
    kwargs: dict[str, Any] = {
        "model": model_name,
        "response_format": dict(JSON_RESPONSE_FORMAT),
    }
    if temperature is not None and supports_temperature(model_name):
        kwargs["temperature"] = temperature
    kwargs.update(overrides)
    return kwargs
