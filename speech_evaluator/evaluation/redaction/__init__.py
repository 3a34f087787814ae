"""Third-party name redaction."""

from speech_evaluator.evaluation.redaction.redactor import (
    FELLOW_MEMBER,
    NON_NAME_WORDS,
    Redactor,
    redact_text,
)

__all__ = ["FELLOW_MEMBER", "NON_NAME_WORDS", "Redactor", "redact_text"]
