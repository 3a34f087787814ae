"""Evidence and observation validation."""

from speech_evaluator.evaluation.validation.observations import (
    is_metric_reliable,
    validate_observation_data,
)
from speech_evaluator.evaluation.validation.validator import (
    EvidenceValidator,
    TranscriptIndex,
    build_transcript_index,
    find_contiguous_match,
)

__all__ = [
    "EvidenceValidator",
    "TranscriptIndex",
    "build_transcript_index",
    "find_contiguous_match",
    "is_metric_reliable",
    "validate_observation_data",
]
