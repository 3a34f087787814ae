"""Best-effort third-party name redaction.

Capitalized word runs that are not sentence-initial, not a known non-name
word, and not part of the speaker's own name are replaced with
"a fellow member". This is a heuristic safety net behind the prompt's
instruction not to name third parties; it is not a privacy guarantee.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

import structlog

from speech_evaluator.evaluation.models import (
    EvaluationItemPublic,
    RedactionInput,
    RedactionOutput,
    StructuredEvaluation,
    StructuredEvaluationPublic,
    VisualFeedbackItem,
)

logger = structlog.get_logger(__name__)

FELLOW_MEMBER = "a fellow member"

_CAPITALIZED_RUN = re.compile(r"\b[A-Z][a-z]+(?:[ \t]+[A-Z][a-z]+)*(?:['’]s)?\b")
_CAPITALIZED_WORD = re.compile(r"[A-Z][a-z]+")
_OPENING_QUOTES = "\"“‘'("
_SENTENCE_BOUNDARIES = ".!?:"

_ORGANIZATION_WORDS = {
    "toastmasters", "toastmaster", "pathways", "international", "club", "district",
    "division", "area", "level", "project", "path", "icebreaker", "table", "topics",
    "topicsmaster", "grammarian", "timer", "evaluator", "general", "speaker",
    "google", "microsoft", "apple", "amazon", "zoom", "youtube", "internet",
    "university", "college", "school", "church", "hospital", "company", "community",
    "team", "office", "library", "museum", "park",
}
_DAYS_AND_MONTHS = {
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
    "january", "february", "march", "april", "may", "june", "july", "august",
    "september", "october", "november", "december",
}
_NATIONALITIES_AND_FAITHS = {
    "american", "british", "english", "canadian", "australian", "french", "german",
    "spanish", "italian", "portuguese", "dutch", "irish", "scottish", "welsh",
    "chinese", "japanese", "korean", "indian", "african", "european", "asian",
    "mexican", "brazilian", "russian", "arabic", "latin",
    "christian", "catholic", "muslim", "jewish", "hindu", "buddhist",
}
_PLACES = {
    "america", "canada", "mexico", "europe", "asia", "africa", "australia", "india",
    "china", "japan", "england", "britain", "france", "germany", "spain", "italy",
    "london", "paris", "york", "new", "san", "los", "angeles", "francisco",
    "chicago", "boston", "seattle", "toronto", "sydney", "earth", "north", "south",
    "east", "west", "city", "state", "street",
}
_CONNECTIVES_AND_OPENERS = {
    "the", "a", "an", "and", "but", "or", "so", "yet", "also", "then", "however",
    "overall", "additionally", "finally", "first", "second", "third", "next",
    "lastly", "meanwhile", "instead", "still", "well", "now", "today", "tonight",
    "furthermore", "moreover", "therefore", "similarly", "ultimately", "again",
    "this", "that", "these", "those", "it", "its", "there", "here", "when", "while",
    "if", "as", "because", "although", "after", "before", "during", "with", "by",
    "for", "from", "in", "on", "at", "to", "of", "my", "your", "you", "we", "our",
    "they", "their", "he", "she", "his", "her", "one", "two", "three", "each",
    "every", "all", "some", "many", "most", "more", "what", "how", "why", "where",
    "who", "which", "thank", "thanks", "please", "yes", "no", "not", "just",
    "really", "great", "good", "keep", "try", "consider", "continue", "remember",
    "imagine", "think", "let", "lets", "looking", "building", "using", "going",
    "mr", "mrs", "ms", "dr",
}
_EVALUATION_VOCABULARY = {
    "commendation", "commendations", "recommendation", "recommendations",
    "evaluation", "opening", "body", "closing", "conclusion", "introduction",
    "speech", "story", "message", "audience", "delivery", "structure", "pace",
    "pacing", "pause", "pauses", "vocal", "variety", "energy", "eye", "contact",
    "gestures", "gesture", "filler", "fillers", "strong", "clear", "powerful",
    "effective", "impressive", "nice", "excellent", "wonderful",
}

# Lowercase words that never count as personal names when capitalized.
NON_NAME_WORDS = frozenset(
    _ORGANIZATION_WORDS
    | _DAYS_AND_MONTHS
    | _NATIONALITIES_AND_FAITHS
    | _PLACES
    | _CONNECTIVES_AND_OPENERS
    | _EVALUATION_VOCABULARY
)


_COMMON_WORDS = frozenset(_CONNECTIVES_AND_OPENERS | _EVALUATION_VOCABULARY)


def is_non_name_word(word: str) -> bool:
    return word.lower() in NON_NAME_WORDS


def is_common_word(word: str) -> bool:
    """Ordinary vocabulary that is safe to lowercase mid-sentence."""
    return word.lower() in _COMMON_WORDS


def _name_tokens(speaker_name: str | None) -> set[str]:
    if not speaker_name:
        return set()
    tokens = {token.strip(".,'\"").lower() for token in speaker_name.split()}
    tokens.update(word.lower() for word in _CAPITALIZED_WORD.findall(speaker_name))
    return tokens


def is_sentence_initial(text: str, position: int) -> bool:
    """Whether the word at ``position`` starts a sentence, line, quote or marker-delimited span."""
    if position == 0:
        return True
    if text[position - 1] in _OPENING_QUOTES:
        return True
    gap_start = position
    while gap_start > 0 and text[gap_start - 1].isspace():
        gap_start -= 1
    if gap_start == 0 or "\n" in text[gap_start:position]:
        return True
    preceding = text[:gap_start]
    return preceding.endswith("]]") or preceding[-1] in _SENTENCE_BOUNDARIES


def _candidate_groups(words: list[re.Match]) -> Iterable[list[re.Match]]:
    """Consecutive runs of words that are not on the non-name list."""
    group: list[re.Match] = []
    for word in words:
        if is_non_name_word(word.group(0)):
            if group:
                yield group
            group = []
            continue
        group.append(word)
    if group:
        yield group


def _redact(text: str, speaker_tokens: set[str]) -> tuple[str, int]:
    pieces: list[str] = []
    cursor = 0
    replacements = 0
    for run in _CAPITALIZED_RUN.finditer(text):
        words = list(_CAPITALIZED_WORD.finditer(text, run.start(), run.end()))
        if is_sentence_initial(text, run.start()):
            words = words[1:]
        for group in _candidate_groups(words):
            if any(word.group(0).lower() in speaker_tokens for word in group):
                continue
            pieces.append(text[cursor : group[0].start()])
            pieces.append(FELLOW_MEMBER)
            # a trailing possessive is consumed with the name
            cursor = run.end() if group[-1] is words[-1] else group[-1].end()
            replacements += 1
    pieces.append(text[cursor:])
    return "".join(pieces), replacements


def redact_text(text: str, speaker_name: str | None = None) -> str:
    """Replace third-party names in ``text``; the speaker's own name survives."""
    if not text:
        return text
    redacted, _ = _redact(text, _name_tokens(speaker_name))
    return redacted


class Redactor:
    """Produces the redacted script and public evaluation for a consented session."""

    def redact(self, redaction_input: RedactionInput) -> RedactionOutput:
        speaker_tokens = _name_tokens(redaction_input.consent.speaker_name)
        counter = _ReplacementCounter(speaker_tokens)

        script_redacted = counter(redaction_input.script)
        evaluation_public = self._public_evaluation(redaction_input.evaluation, counter)

        logger.info(
            "Redaction applied",
            replacements=counter.total,
            items=len(evaluation_public.items),
            consent_confirmed=redaction_input.consent.consent_confirmed,
        )
        return RedactionOutput(
            script_redacted=script_redacted,
            evaluation_public=evaluation_public,
        )

    @staticmethod
    def _public_evaluation(
        evaluation: StructuredEvaluation,
        redact: _ReplacementCounter,
    ) -> StructuredEvaluationPublic:
        items = [
            EvaluationItemPublic(
                type=item.type,
                summary=redact(item.summary),
                explanation=redact(item.explanation),
                evidence_quote=redact(item.evidence_quote),
                evidence_timestamp=item.evidence_timestamp,
            )
            for item in evaluation.items
        ]
        visual_feedback = None
        if evaluation.visual_feedback is not None:
            visual_feedback = [
                VisualFeedbackItem(
                    summary=redact(item.summary),
                    observation_data=item.observation_data,
                    explanation=redact(item.explanation),
                )
                for item in evaluation.visual_feedback
            ]
        return StructuredEvaluationPublic(
            opening=redact(evaluation.opening),
            items=items,
            closing=redact(evaluation.closing),
            structure_commentary=evaluation.structure_commentary,
            visual_feedback=visual_feedback,
        )


class _ReplacementCounter:
    def __init__(self, speaker_tokens: set[str]) -> None:
        self._speaker_tokens = speaker_tokens
        self.total = 0

    def __call__(self, text: str) -> str:
        if not text:
            return text
        redacted, replacements = _redact(text, self._speaker_tokens)
        self.total += replacements
        return redacted
