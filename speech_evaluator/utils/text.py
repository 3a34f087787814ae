"""Deterministic text helpers shared by validation, rendering and redaction."""

from __future__ import annotations

import re

_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")

# Terminal punctuation run, optional closing quotes/brackets, then whitespace or end
_SENTENCE_END = re.compile(r"[.!?]+[\"'”’)]*(?=\s|$)")

# Lowercase, without the trailing period
ABBREVIATIONS = frozenset(
    {
        "mr", "mrs", "ms", "dr", "prof", "rev", "sr", "jr", "sgt", "cpl",
        "gen", "col", "capt", "lt", "cmdr", "st", "ave", "blvd", "rd",
        "dept", "bldg", "vs", "etc", "approx", "ca", "ph", "e.g", "i.e",
    }
)


def normalize(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace."""
    stripped = _NON_WORD.sub("", text.lower())
    return _WHITESPACE.sub(" ", stripped).strip()


def tokenize(text: str) -> list[str]:
    """Split normalized text into whitespace tokens."""
    normalized = normalize(text)
    if not normalized:
        return []
    return normalized.split(" ")


def is_placeholder_word(word: str) -> bool:
    """Blank or bracketed tokens ("[silence]", "<sil>") inserted by recognizers."""
    stripped = word.strip()
    if not stripped:
        return True
    return (stripped[0], stripped[-1]) in {("[", "]"), ("<", ">")}


def split_sentences(text: str) -> list[str]:
    """Split text at sentence-ending punctuation, keeping the punctuation.

    Abbreviations such as "Dr." or "e.g." and decimals such as "3.5" do not
    end a sentence. Returns trimmed, non-empty sentences.
    """
    if not text or not text.strip():
        return []

    sentences: list[str] = []
    start = 0
    for match in _SENTENCE_END.finditer(text):
        punct = match.group(0)
        if punct.startswith(".") and punct.rstrip("\"'”’)") == ".":
            preceding = text[start : match.start()].split()
            last_word = preceding[-1].lower() if preceding else ""
            if last_word.strip("(\"'“") in ABBREVIATIONS:
                continue
        sentence = text[start : match.end()].strip()
        if sentence:
            sentences.append(sentence)
        start = match.end()

    tail = text[start:].strip()
    if tail:
        sentences.append(tail)
    return sentences


def ensure_terminal_punctuation(sentence: str) -> str:
    """Append a period when the sentence has no terminal punctuation."""
    stripped = sentence.rstrip()
    if not stripped:
        return stripped
    if stripped.rstrip("\"'”’)")[-1:] in {".", "!", "?"}:
        return stripped
    return f"{stripped}."
