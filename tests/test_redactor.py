"""Tests for third-party name redaction."""

from datetime import datetime, timezone
import re

import pytest

from speech_evaluator.evaluation.completion import parse_evaluation
from speech_evaluator.evaluation.models import ConsentRecord, RedactionInput
from speech_evaluator.evaluation.redaction import FELLOW_MEMBER, Redactor, redact_text


def _tokens(text: str) -> list[str]:
    return [token for token in re.sub(r"[^\w\s']", " ", text).split()]


class TestRedactText:
    """Test the pure redaction function."""

    def test_third_party_name_replaced(self):
        assert (
            redact_text("I spoke with Sarah Johnson yesterday.", "Alex Chen")
            == "I spoke with a fellow member yesterday."
        )

    def test_speaker_name_survives(self):
        text = "Thank you, Alex, for a great speech. Alex Chen delivered it well."
        assert redact_text(text, "Alex Chen") == text

    def test_non_name_entities_survive(self):
        text = "We meet every Monday in January at Toastmasters near London with our Canadian guests."
        assert redact_text(text, "Alex") == text

    def test_sentence_initial_word_kept_rest_of_run_examined(self):
        assert (
            redact_text("Sarah told me. Then Mike agreed.", "Alex")
            == "Sarah told me. Then a fellow member agreed."
        )

    @pytest.mark.parametrize(
        "text",
        [
            "One thing that really stood out: Strong opening.",
            "Nice work. [[Q:item-0]] Keep going.",
            'When you said, "Today I want to talk", it worked.',
            "Great speech\nMaria helped with the timing",
        ],
    )
    def test_sentence_initial_positions(self, text):
        assert redact_text(text, "Alex") == text

    @pytest.mark.parametrize(
        "entity",
        [
            "Toastmasters", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
            "Saturday", "Sunday", "January", "February", "March", "April",
            "June", "July", "August", "September", "October", "November", "December",
            "University", "College", "Church", "Hospital", "Company",
            "American", "English", "Spanish", "French", "German",
            "Chinese", "Japanese", "African", "European", "Asian",
            "Christian", "However", "Finally", "Additionally", "Furthermore",
            "Overall", "Meanwhile",
        ],
    )
    @pytest.mark.parametrize(
        "prefix",
        ["The speaker talked about", "It was clear that", "During the speech we heard"],
    )
    def test_known_entities_survive_mid_sentence(self, prefix, entity):
        text = f"{prefix} {entity} during the talk."
        assert redact_text(text, "Alex") == text

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("I loved hearing about Maria's garden.", "I loved hearing about a fellow member garden."),
            ("We borrowed Sarah Johnson’s notes.", "We borrowed a fellow member notes."),
        ],
    )
    def test_possessive_name_replaced_whole(self, text, expected):
        redacted = redact_text(text, "Alex")
        assert redacted == expected
        allowed = set(_tokens(text)) | {"a", "fellow", "member"}
        assert set(_tokens(redacted)) <= allowed

    def test_speaker_possessive_survives(self):
        text = "We all enjoyed hearing Alex's story."
        assert redact_text(text, "Alex Chen") == text

    def test_output_tokens_come_from_input_or_replacement(self):
        text = "Yesterday I met Priya and Tom at the Toastmasters club in London on Friday."
        redacted = redact_text(text, "Alex")
        assert redacted == (
            "Yesterday I met a fellow member and a fellow member at the "
            "Toastmasters club in London on Friday."
        )
        allowed = set(_tokens(text)) | {"a", "fellow", "member"}
        assert set(_tokens(redacted)) <= allowed

    def test_empty_text(self):
        assert redact_text("", "Alex") == ""


class TestRedactor:
    """Test redaction of the script and public evaluation."""

    @pytest.fixture
    def consent(self) -> ConsentRecord:
        return ConsentRecord(
            speaker_name="Alex Chen",
            consent_confirmed=True,
            consent_timestamp=datetime(2026, 3, 14, 19, 30, tzinfo=timezone.utc),
        )

    @pytest.fixture
    def evaluation(self, evaluation_json, grounded_items):
        named_item = dict(
            grounded_items["terrified_story"],
            explanation="The story about meeting Jordan deserved more detail.",
        )
        return parse_evaluation(
            evaluation_json(
                [grounded_items["opening_hook"], named_item],
                opening="Thank you Alex, and thanks to Priya for the introduction.",
                structure_commentary={"opening_comment": "Like Priya said, a strong start."},
                visual_feedback=[
                    {
                        "type": "visual_observation",
                        "summary": "Audience focus",
                        "observation_data": "metric=gazeBreakdown.audienceFacing; value=72.5; source=visualObservations",
                        "explanation": "You looked at the audience more than Jordan did.",
                    }
                ],
            )
        )

    def test_redacts_script_and_evaluation(self, consent, evaluation):
        output = Redactor().redact(
            RedactionInput(
                script="Great job, Alex. Your story about Jordan was vivid.",
                evaluation=evaluation,
                consent=consent,
            )
        )
        assert output.script_redacted == f"Great job, Alex. Your story about {FELLOW_MEMBER} was vivid."

        public = output.evaluation_public
        assert public.opening == f"Thank you Alex, and thanks to {FELLOW_MEMBER} for the introduction."
        assert public.items[1].explanation == (
            f"The story about meeting {FELLOW_MEMBER} deserved more detail."
        )
        assert public.visual_feedback[0].explanation == (
            f"You looked at the audience more than {FELLOW_MEMBER} did."
        )
        assert public.visual_feedback[0].observation_data == evaluation.visual_feedback[0].observation_data

    def test_item_structure_preserved(self, consent, evaluation):
        public = Redactor().redact(
            RedactionInput(script="", evaluation=evaluation, consent=consent)
        ).evaluation_public
        assert [item.type for item in public.items] == [item.type for item in evaluation.items]
        assert [item.evidence_timestamp for item in public.items] == [
            item.evidence_timestamp for item in evaluation.items
        ]
        assert public.items[0].evidence_quote == evaluation.items[0].evidence_quote

    def test_structure_commentary_passes_through(self, consent, evaluation):
        public = Redactor().redact(
            RedactionInput(script="", evaluation=evaluation, consent=consent)
        ).evaluation_public
        assert public.structure_commentary == evaluation.structure_commentary
        assert public.structure_commentary.opening_comment == "Like Priya said, a strong start."
