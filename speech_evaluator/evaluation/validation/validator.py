"""Evidence validation: every item quote must be a verbatim, well-placed transcript run."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from speech_evaluator.evaluation.models import (
    EvaluationItem,
    StructuredEvaluation,
    TranscriptSegment,
    ValidationResult,
)
from speech_evaluator.utils.text import is_placeholder_word, tokenize

MIN_QUOTE_TOKENS = 6
MAX_QUOTE_TOKENS = 15
TIMESTAMP_TOLERANCE_SECONDS = 20.0


@dataclass(frozen=True)
class TimedToken:
    """Normalized transcript token carrying the timing it originated from."""

    text: str
    start_time: float
    segment_index: int
    word_level: bool


@dataclass(frozen=True)
class TranscriptIndex:
    """Flattened token view of a transcript, built once per validation pass."""

    tokens: tuple[TimedToken, ...]

    @property
    def texts(self) -> list[str]:
        return [token.text for token in self.tokens]


def find_contiguous_match(
    quote_tokens: Sequence[str],
    transcript_tokens: Sequence[str],
) -> int | None:
    """Return the first index where ``quote_tokens`` occur contiguously, else None."""
    q_len = len(quote_tokens)
    if q_len == 0 or q_len > len(transcript_tokens):
        return None

    first = quote_tokens[0]
    for start in range(len(transcript_tokens) - q_len + 1):
        if transcript_tokens[start] != first:
            continue
        if list(transcript_tokens[start : start + q_len]) == list(quote_tokens):
            return start
    return None


def build_transcript_index(segments: Sequence[TranscriptSegment]) -> TranscriptIndex:
    """Tokenize segment texts, attaching word timings when they align one-to-one."""
    tokens: list[TimedToken] = []
    for index, segment in enumerate(segments):
        segment_tokens = tokenize(segment.text)
        word_times = _word_token_times(segment)
        aligned = bool(word_times) and len(word_times) == len(segment_tokens)
        for position, token in enumerate(segment_tokens):
            if aligned:
                tokens.append(TimedToken(token, word_times[position], index, True))
            else:
                # Segment-level fallback
                tokens.append(TimedToken(token, segment.start_time, index, False))
    return TranscriptIndex(tokens=tuple(tokens))


def _word_token_times(segment: TranscriptSegment) -> list[float]:
    times: list[float] = []
    for word in segment.words:
        if is_placeholder_word(word.word):
            continue
        times.extend([word.start_time] * len(tokenize(word.word)))
    return times


class EvidenceValidator:
    """Decides grounding independently of the generating service. Stateless."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger(__name__)

    def validate(
        self,
        evaluation: StructuredEvaluation,
        segments: Sequence[TranscriptSegment],
    ) -> ValidationResult:
        """Validate every item; one issue string per failing item/reason."""
        index = build_transcript_index(segments)
        issues: list[str] = []
        for item in evaluation.items:
            issues.extend(self.validate_item(item, index))

        self._logger.debug(
            "Evidence validation completed",
            items=len(evaluation.items),
            issues=len(issues),
        )
        return ValidationResult(valid=not issues, issues=issues)

    def validate_item(
        self,
        item: EvaluationItem,
        index: TranscriptIndex,
    ) -> list[str]:
        """Return the issues for a single item (empty when it is grounded)."""
        label = f'[{item.type.value}] "{item.summary}"'
        quote_tokens = tokenize(item.evidence_quote)
        token_count = len(quote_tokens)

        if token_count < MIN_QUOTE_TOKENS or token_count > MAX_QUOTE_TOKENS:
            return [
                f"{label}: evidence quote has {token_count} tokens; "
                f"expected {MIN_QUOTE_TOKENS}-{MAX_QUOTE_TOKENS}."
            ]

        match_index = find_contiguous_match(quote_tokens, index.texts)
        if match_index is None:
            return [
                f"{label}: evidence quote not found as a contiguous run in the "
                "transcript (fabricated)."
            ]

        matched_time = index.tokens[match_index].start_time
        if abs(item.evidence_timestamp - matched_time) > TIMESTAMP_TOLERANCE_SECONDS:
            return [
                f"{label}: evidence timestamp {item.evidence_timestamp:g}s is more than "
                f"{TIMESTAMP_TOLERANCE_SECONDS:g}s from the matched position at "
                f"{matched_time:g}s (timestamp mismatch)."
            ]
        return []
