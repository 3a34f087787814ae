"""Renders an accepted evaluation into a spoken narration with inline markers.

Markers are machine-parseable and stripped before speech synthesis:

    [[Q:item-N]]   after the sentence carrying item N's evidence quote
    [[M:<field>]]  after a sentence whose explanation mentions a delivery metric
"""

from __future__ import annotations

import re

import structlog

from speech_evaluator.evaluation.models import (
    DeliveryMetrics,
    EvaluationItem,
    ItemType,
    StructuredEvaluation,
    VisualObservations,
)
from speech_evaluator.evaluation.redaction.redactor import is_common_word
from speech_evaluator.evaluation.validation import (
    find_contiguous_match,
    is_metric_reliable,
    validate_observation_data,
)
from speech_evaluator.evaluation.validation.observations import parse_observation_data
from speech_evaluator.utils.text import ensure_terminal_punctuation, split_sentences, tokenize

logger = structlog.get_logger(__name__)

SECTION_SEPARATOR = "\n\n"
VISUAL_TRANSITION = "Looking at your delivery from a visual perspective..."

ITEM_LEAD_INS: dict[ItemType, str] = {
    ItemType.COMMENDATION: "One thing that really stood out",
    ItemType.RECOMMENDATION: "One area to consider for growth",
}

# Keyword (whole word, case-insensitive) -> DeliveryMetrics field in camelCase
METRIC_KEYWORDS: dict[str, str] = {
    "pace": "wordsPerMinute",
    "pacing": "wordsPerMinute",
    "speaking rate": "wordsPerMinute",
    "words per minute": "wordsPerMinute",
    "pause": "pauseCount",
    "pauses": "pauseCount",
    "pausing": "pauseCount",
    "vocal variety": "energyVariationCoefficient",
    "vocal energy": "energyVariationCoefficient",
    "energy": "energyVariationCoefficient",
    "filler": "fillerWordCount",
    "fillers": "fillerWordCount",
    "filler words": "fillerWordCount",
    "duration": "durationSeconds",
    "time limit": "durationSeconds",
}

_KEYWORD_PATTERNS = [
    (re.compile(rf"\b{re.escape(keyword)}\b", re.IGNORECASE), field)
    for keyword, field in METRIC_KEYWORDS.items()
]

_INITIAL_WORD = re.compile(r"[A-Z][a-z]+\b")
_MARKER = re.compile(r"\[\[(?:Q|M):[^\]]*\]\]")
_DOUBLE_SPACE = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT = re.compile(r"[ \t]+([.,!?;:])")


def quote_marker(index: int) -> str:
    return f"[[Q:item-{index}]]"


def metric_marker(field: str) -> str:
    return f"[[M:{field}]]"


def metric_fields_for(text: str) -> list[str]:
    """Distinct metric fields mentioned in ``text``, in order of first mention."""
    first_seen: dict[str, int] = {}
    for pattern, field in _KEYWORD_PATTERNS:
        match = pattern.search(text)
        if match and (field not in first_seen or match.start() < first_seen[field]):
            first_seen[field] = match.start()
    return sorted(first_seen, key=first_seen.__getitem__)


def _continue_sentence(sentence: str) -> str:
    """Lowercase a common opening word so the sentence reads as a continuation.

    Anything that could be a proper noun keeps its capital, leaving it visible
    to redaction.
    """
    match = _INITIAL_WORD.match(sentence)
    if match and is_common_word(match.group(0)):
        return sentence[0].lower() + sentence[1:]
    return sentence


def strip_markers(script: str) -> str:
    """Remove every [[Q:*]]/[[M:*]] marker and tidy the spacing left behind."""
    without = _MARKER.sub("", script)
    lines = [_DOUBLE_SPACE.sub(" ", line).rstrip() for line in without.split("\n")]
    return _SPACE_BEFORE_PUNCT.sub(r"\1", "\n".join(lines)).strip()


class ScriptRenderer:
    """Pure, synchronous rendering; safe to share across sessions."""

    def render_script(
        self,
        evaluation: StructuredEvaluation,
        speaker_name: str | None = None,
        metrics: DeliveryMetrics | None = None,
        visual_observations: VisualObservations | None = None,
    ) -> str:
        """Opening, commentary, items, visual section and closing joined by blank lines.

        ``speaker_name`` is accepted for call compatibility; names are handled by
        the redaction step that runs after rendering.
        """
        sections: list[str] = []

        opening = evaluation.opening.strip()
        if opening:
            sections.append(opening)

        commentary = self._render_commentary(evaluation)
        if commentary:
            sections.append(commentary)

        for index, item in enumerate(evaluation.items):
            sections.append(self._render_item(index, item, with_metrics=metrics is not None))

        visual = self._render_visual_section(evaluation, visual_observations)
        if visual:
            sections.append(visual)

        closing = evaluation.closing.strip()
        if closing:
            sections.append(closing)

        logger.debug(
            "Rendered evaluation script",
            sections=len(sections),
            items=len(evaluation.items),
            has_visual_section=visual is not None,
        )
        return SECTION_SEPARATOR.join(sections)

    def _render_commentary(self, evaluation: StructuredEvaluation) -> str | None:
        comments = [
            ensure_terminal_punctuation(comment.strip())
            for comment in evaluation.structure_commentary.non_null()
            if comment.strip()
        ]
        return " ".join(comments) if comments else None

    def _render_item(self, index: int, item: EvaluationItem, *, with_metrics: bool) -> str:
        lead_in = ensure_terminal_punctuation(
            f"{ITEM_LEAD_INS[item.type]}: {item.summary.strip()}"
        )
        explanation = split_sentences(item.explanation)
        quote = item.evidence_quote.strip()
        first_explanation = _continue_sentence(explanation[0]) if explanation else ""
        quote_sentence = ensure_terminal_punctuation(
            f'When you said, "{quote}", {first_explanation}'.rstrip(", ")
        )

        # (spoken sentence, text checked for metric keywords)
        sentences: list[tuple[str, str]] = [(lead_in, "")]
        sentences.append((quote_sentence, first_explanation))
        sentences.extend((sentence, sentence) for sentence in explanation[1:])

        quote_at = self._locate_quote(quote, [sentence for sentence, _ in sentences])

        rendered: list[str] = []
        for position, (sentence, keyword_text) in enumerate(sentences):
            markers: list[str] = []
            if position == quote_at:
                markers.append(quote_marker(index))
            if with_metrics and keyword_text:
                markers.extend(metric_marker(field) for field in metric_fields_for(keyword_text))
            rendered.append(" ".join([sentence, *markers]))
        return " ".join(rendered)

    @staticmethod
    def _locate_quote(quote: str, sentences: list[str]) -> int:
        """Index of the sentence holding the quote; the lead-in is never chosen."""
        quote_tokens = tokenize(quote)
        if quote_tokens:
            for position, sentence in enumerate(sentences[1:], start=1):
                if find_contiguous_match(quote_tokens, tokenize(sentence)) is not None:
                    return position
        return 1

    def _render_visual_section(
        self,
        evaluation: StructuredEvaluation,
        visual_observations: VisualObservations | None,
    ) -> str | None:
        if visual_observations is None or not evaluation.visual_feedback:
            return None

        explanations: list[str] = []
        for item in evaluation.visual_feedback:
            parsed = parse_observation_data(item.observation_data)
            if parsed is None or not is_metric_reliable(parsed[0], visual_observations):
                continue
            if not validate_observation_data(item, visual_observations):
                logger.info(
                    "Dropping visual observation with unverifiable data",
                    observation_data=item.observation_data,
                )
                continue
            explanations.append(ensure_terminal_punctuation(item.explanation.strip()))

        if not explanations:
            return None
        return " ".join([VISUAL_TRANSITION, *explanations])
