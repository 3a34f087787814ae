"""Checks for visual feedback citations against aggregate visual observations."""

from __future__ import annotations

import math
import re
from typing import Any

from speech_evaluator.evaluation.models import VisualFeedbackItem, VisualObservations

OBSERVATION_SOURCE = "visualObservations"
RELATIVE_TOLERANCE = 0.01

_OBSERVATION_DATA = re.compile(
    r"^\s*metric\s*=\s*(?P<metric>[^;]+?)\s*;"
    r"\s*value\s*=\s*(?P<value>[^;]+?)\s*;"
    r"\s*source\s*=\s*(?P<source>[^;]+?)\s*;?\s*$"
)

# Reliability flag guarding each metric; unknown metrics count as reliable.
_RELIABILITY_FLAGS: dict[str, str] = {
    "gazeBreakdown": "gaze_reliable",
    "faceNotDetectedCount": "gaze_reliable",
    "totalGestureCount": "gesture_reliable",
    "gestureFrequency": "gesture_reliable",
    "gesturePerSentenceRatio": "gesture_reliable",
    "handsDetectedFrames": "gesture_reliable",
    "handsNotDetectedFrames": "gesture_reliable",
    "meanBodyStabilityScore": "stability_reliable",
    "stageCrossingCount": "stability_reliable",
    "movementClassification": "stability_reliable",
    "meanFacialEnergyScore": "facial_energy_reliable",
    "facialEnergyVariation": "facial_energy_reliable",
    "facialEnergyLowSignal": "facial_energy_reliable",
}


def parse_observation_data(observation_data: str) -> tuple[str, str, str] | None:
    """Split ``metric=<path>; value=<v>; source=<tag>`` into its parts."""
    match = _OBSERVATION_DATA.match(observation_data or "")
    if not match:
        return None
    return match.group("metric"), match.group("value"), match.group("source")


def resolve_metric_path(data: dict[str, Any], path: str) -> Any | None:
    """Dotted lookup (``gazeBreakdown.audienceFacing``) into a nested mapping."""
    current: Any = data
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return None
        current = current[part]
    return current


def metric_reliability_flag(metric: str) -> str | None:
    return _RELIABILITY_FLAGS.get(metric.split(".", 1)[0])


def is_metric_reliable(metric: str, observations: VisualObservations) -> bool:
    flag = metric_reliability_flag(metric)
    if flag is None:
        return True
    return bool(getattr(observations, flag))


def validate_observation_data(
    item: VisualFeedbackItem,
    observations: VisualObservations,
) -> bool:
    """Accept iff the source tag matches and the cited value is within ±1% of actual."""
    parsed = parse_observation_data(item.observation_data)
    if parsed is None:
        return False
    metric, raw_value, source = parsed
    if source != OBSERVATION_SOURCE:
        return False

    actual = resolve_metric_path(observations.model_dump(by_alias=True, mode="json"), metric)
    if actual is None:
        actual = resolve_metric_path(observations.model_dump(mode="json"), metric)
    if isinstance(actual, bool) or not isinstance(actual, (int, float)):
        return False

    try:
        cited = float(raw_value.rstrip("%"))
    except ValueError:
        return False
    if not math.isfinite(cited):
        return False

    if actual == 0:
        return cited == 0
    return abs(cited - actual) <= RELATIVE_TOLERANCE * abs(actual)
