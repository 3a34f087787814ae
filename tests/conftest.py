"""Shared test configuration and fixtures for all tests."""

from collections.abc import Callable
import json
import os
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest

# Mock environment variables for testing
os.environ["SPEECH_EVALUATOR_OPENAI_API_KEY"] = "test-key-123"

from speech_evaluator.evaluation.models import (  # noqa: E402
    DeliveryMetrics,
    TranscriptSegment,
    TranscriptWord,
)

WORD_STEP_SECONDS = 0.3


def make_segment(text: str, start_time: float, confidence: float = 0.95) -> TranscriptSegment:
    """Segment with one evenly spaced word timing per whitespace token."""
    words = [
        TranscriptWord(
            word=word,
            start_time=round(start_time + i * WORD_STEP_SECONDS, 2),
            end_time=round(start_time + (i + 1) * WORD_STEP_SECONDS, 2),
            confidence=confidence,
        )
        for i, word in enumerate(text.split())
    ]
    end_time = round(start_time + len(words) * WORD_STEP_SECONDS, 2)
    return TranscriptSegment(text=text, start_time=start_time, end_time=end_time, words=words)


def completion_response(content: str | None) -> SimpleNamespace:
    """Mimic ``{choices: [{message: {content}}]}``."""
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def segment_factory() -> Callable[..., TranscriptSegment]:
    return make_segment


@pytest.fixture
def sample_segments() -> list[TranscriptSegment]:
    """Four-segment speech with word-level timings."""
    # "Today" (fourth word) starts at 0.9s
    return [
        make_segment(
            "Good evening everyone. Today I want to talk about leadership and growth.", 0.0
        ),
        make_segment(
            "When I joined my first team I was terrified of speaking up in meetings.", 30.0
        ),
        make_segment(
            "Um so I learned that listening is the most important skill a leader can have.",
            60.0,
        ),
        make_segment(
            "In conclusion remember that every leader started as a nervous beginner.", 90.0
        ),
    ]


@pytest.fixture
def sample_metrics() -> DeliveryMetrics:
    return DeliveryMetrics(
        duration_seconds=120.0,
        duration_formatted="2:00",
        total_words=55,
        words_per_minute=127.5,
        filler_word_count=1,
        filler_word_frequency=0.5,
        pause_count=4,
        total_pause_duration_seconds=6.2,
        average_pause_duration_seconds=1.55,
        intentional_pause_count=3,
        hesitation_pause_count=1,
        energy_variation_coefficient=0.32,
    )


@pytest.fixture
def grounded_items() -> dict[str, dict[str, Any]]:
    """Raw item dicts as the completion service would return them."""
    return {
        "opening_hook": {
            "type": "commendation",
            "summary": "Clear statement of purpose",
            "evidence_quote": "Today I want to talk about leadership and growth",
            "evidence_timestamp": 1.0,
            "explanation": "You told the audience exactly where the speech was going. That gave everyone a map to follow.",
        },
        "listening_lesson": {
            "type": "commendation",
            "summary": "Memorable central lesson",
            "evidence_quote": "I learned that listening is the most important skill",
            "evidence_timestamp": 61.0,
            "explanation": "The lesson was simple and easy to remember. It tied the story together.",
        },
        "nervous_beginner": {
            "type": "commendation",
            "summary": "Encouraging conclusion",
            "evidence_quote": "every leader started as a nervous beginner",
            "evidence_timestamp": 91.0,
            "explanation": "Ending on encouragement left the room inspired.",
        },
        "terrified_story": {
            "type": "recommendation",
            "summary": "Expand the personal story",
            "evidence_quote": "I was terrified of speaking up in meetings",
            "evidence_timestamp": 32.0,
            "explanation": "This moment deserved more detail. Slowing your pace here would let the feeling land.",
        },
    }


@pytest.fixture
def fabricated_commendation() -> dict[str, Any]:
    return {
        "type": "commendation",
        "summary": "Bold call to action",
        "evidence_quote": "leadership is about shouting louder than everyone else",
        "evidence_timestamp": 10.0,
        "explanation": "The call to action was bold.",
    }


@pytest.fixture
def evaluation_json() -> Callable[..., str]:
    """Factory serializing item dicts into a full evaluation response."""

    def build(items: list[dict[str, Any]], **extra: Any) -> str:
        payload = {
            "opening": "Thank you for a thoughtful speech about leadership.",
            "items": items,
            "closing": "Keep building on this strong foundation.",
            "structure_commentary": {
                "opening_comment": "Your opening clearly framed the topic.",
                "body_comment": None,
                "closing_comment": "The conclusion tied back to your opening.",
            },
        }
        payload.update(extra)
        return json.dumps(payload)

    return build


@pytest.fixture
def completion_client_factory() -> Callable[..., SimpleNamespace]:
    """Factory for a fake completion client answering with queued contents.

    Entries that are exceptions are raised instead of returned.
    """

    def build(*contents: str | None | Exception) -> SimpleNamespace:
        side_effect = [
            content if isinstance(content, Exception) else completion_response(content)
            for content in contents
        ]
        create = AsyncMock(side_effect=side_effect)
        return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))

    return build


@pytest.fixture
def embedding_client_factory() -> Callable[..., SimpleNamespace]:
    """Factory for a fake embedding client returning queued vectors."""

    def build(*vectors: list[float] | Exception) -> SimpleNamespace:
        side_effect = [
            vector
            if isinstance(vector, Exception)
            else SimpleNamespace(data=[SimpleNamespace(embedding=vector)])
            for vector in vectors
        ]
        return SimpleNamespace(embeddings=SimpleNamespace(create=AsyncMock(side_effect=side_effect)))

    return build
