"""Deterministic construction of the system/user messages sent to the completion service."""

from __future__ import annotations

import json
from collections.abc import Sequence
from dataclasses import dataclass

from speech_evaluator.evaluation.models import (
    DeliveryMetrics,
    EvaluationConfig,
    EvaluationItem,
    TranscriptSegment,
    VideoQualityGrade,
    VisualObservations,
)
from speech_evaluator.utils.text import is_placeholder_word
from speech_evaluator.utils.time_formatters import format_timestamp_short

# Transcript quality thresholds
MIN_WORDS_PER_MINUTE = 10.0
MIN_AVERAGE_CONFIDENCE = 0.5
HIGH_CONFIDENCE_SEGMENT_THRESHOLD = 0.7


@dataclass(frozen=True)
class PromptMessages:
    system: str
    user: str

    def as_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system},
            {"role": "user", "content": self.user},
        ]


BASE_SYSTEM_PROMPT = """You are an experienced Toastmasters speech evaluator. Your role is to provide supportive, evidence-based evaluations of speeches.

## Counts
- Include 2 to 3 commendations (type: "commendation").
- Include 1 to 2 recommendations (type: "recommendation").

## Evidence Rules
- Every commendation and recommendation MUST include an evidence_quote copied VERBATIM from the transcript.
- Each evidence_quote must be between 6 and 15 words long.
- Each evidence_quote must be one contiguous run of the speaker's words: no ellipses, no joined fragments, no paraphrasing.
- The evidence_timestamp must be the start time (in seconds) of where that quote appears in the speech.
- Do NOT fabricate, paraphrase, or invent quotes. Use only the speaker's actual words.

## Evaluation Style
- Do NOT use the Commend-Recommend-Commend (CRC) sandwich pattern. Vary the order of commendations and recommendations as a skilled evaluator would in conversation.
- Be warm, supportive, and specific. Every point must reference something the speaker actually said.
- Write each summary as a short phrase in sentence case.
- Do not mention anyone by name other than the speaker.

## Structure Commentary
Comment on the speech's opening, body, and closing in structure_commentary.
- Locate the sections by share of speech duration: the opening is roughly the first 10-15%, the body roughly the middle 70-80%, and the closing roughly the last 10-15%.
- For transcripts under about 120 words, percentages are unreliable; instead look for lexical cues such as "today I want to talk about" for the opening and "in conclusion" or "to wrap up" for the closing.
- If a section cannot be identified with confidence, return null for that field rather than speculating.
- Never include numeric scores or ratings in structure commentary.

## Length
- Opening: 1-2 sentences.
- Each item explanation: 2-3 sentences.
- Closing: 1-2 sentences."""

OUTPUT_SCHEMA = """{
  "opening": "string (1-2 sentences, warm greeting and overall impression)",
  "items": [
    {
      "type": "commendation" or "recommendation",
      "summary": "string (brief label for this point)",
      "evidence_quote": "string (verbatim quote from the transcript, 6-15 words)",
      "evidence_timestamp": number (seconds since speech start when the quoted passage begins),
      "explanation": "string (2-3 sentences explaining why this matters)"
    }
  ],
  "closing": "string (1-2 sentences, encouraging wrap-up)",
  "structure_commentary": {
    "opening_comment": "string or null",
    "body_comment": "string or null",
    "closing_comment": "string or null"
  }"""

VISUAL_SCHEMA_FIELD = """,
  "visual_feedback": [
    {
      "type": "visual_observation",
      "summary": "string (brief label)",
      "observation_data": "metric=<metric path>; value=<number>; source=visualObservations",
      "explanation": "string (1-2 sentences referencing the measured value)"
    }
  ]"""

QUALITY_WARNING_PROMPT = """## Audio Quality Warning
The transcript quality appears to be poor (very low word rate or low recognition confidence). Please:
- Use uncertainty qualifiers such as "from what I could hear" when describing what the speaker said.
- Take evidence quotes only from the High-Confidence Segments listed in the user message; if none are listed, quote only passages that read clearly.
- Do NOT fabricate or reconstruct content to fill gaps in the transcript."""

PROJECT_CONTEXT_PROMPT = """## Project Context
This speech was delivered for a specific project; details are in the user message.
- Reference the project type or speech title in your opening.
- Tie at least one commendation or recommendation to a stated project objective.
- Objectives supplement the evidence; they never replace it. Every item still needs a verbatim evidence_quote."""

VISUAL_RULES_PROMPT = """## Visual Observations
Aggregate visual measurements are provided in the user message. You may add up to 2 visual_feedback items.
- Each visual_feedback item must cite exactly one provided metric in observation_data as "metric=<metric path>; value=<number>; source=visualObservations", using the metric path and value exactly as given.
- Describe only what the measurement shows. Do not infer emotions, intent, or psychological states.
- Do not mention metrics that are not provided."""

VISUAL_DEGRADED_NOTE = """- Video quality was degraded; qualify visual observations with appropriate uncertainty."""

RESPONSE_INSTRUCTION = (
    "Please evaluate this speech following the instructions and output format "
    "specified above. Respond with ONLY the JSON object."
)

ITEM_RETRY_SYSTEM_PROMPT = """You are an experienced Toastmasters speech evaluator. You need to fix one evaluation item whose evidence quote could not be verified against the transcript.

## Output Format
Respond with a valid JSON object matching this exact structure:
{{
  "type": "{item_type}",
  "summary": "string",
  "evidence_quote": "string (verbatim quote from the transcript, 6-15 words)",
  "evidence_timestamp": number,
  "explanation": "string"
}}

## Evidence Rules
- The evidence_quote MUST be copied VERBATIM from the transcript as one contiguous run of words.
- It must be between 6 and 15 words.
- The evidence_timestamp must be the start time in seconds of the quoted passage.
- Do NOT paraphrase or invent quotes."""


# ─── Transcript helpers ──────────────────────────────────────────────────────


def format_transcript(segments: Sequence[TranscriptSegment]) -> str:
    """Render one ``[M:SS] text`` line per segment."""
    return "\n".join(
        f"[{format_timestamp_short(segment.start_time)}] {segment.text}"
        for segment in segments
    )


def _genuine_confidences(segments: Sequence[TranscriptSegment]) -> list[float]:
    return [
        word.confidence
        for segment in segments
        for word in segment.words
        if not is_placeholder_word(word.word)
    ]


def assess_transcript_quality(
    segments: Sequence[TranscriptSegment],
    metrics: DeliveryMetrics,
) -> bool:
    """Return True when transcript quality is poor enough to warn the model."""
    if metrics.duration_seconds > 0:
        words_per_minute = metrics.total_words / (metrics.duration_seconds / 60)
        if words_per_minute < MIN_WORDS_PER_MINUTE:
            return True

    confidences = _genuine_confidences(segments)
    if confidences:
        if sum(confidences) / len(confidences) < MIN_AVERAGE_CONFIDENCE:
            return True
    return False


def high_confidence_segments(
    segments: Sequence[TranscriptSegment],
    threshold: float = HIGH_CONFIDENCE_SEGMENT_THRESHOLD,
) -> list[TranscriptSegment]:
    """Segments whose genuine-word mean confidence clears ``threshold``."""
    selected: list[TranscriptSegment] = []
    for segment in segments:
        confidences = _genuine_confidences([segment])
        if confidences and sum(confidences) / len(confidences) >= threshold:
            selected.append(segment)
    return selected


def _has_project_context(config: EvaluationConfig | None) -> bool:
    if config is None:
        return False
    has_type = bool(config.project_type and config.project_type.strip())
    has_objectives = any(objective.strip() for objective in config.objectives)
    return has_type or has_objectives


def _visual_observations_in_scope(
    observations: VisualObservations | None,
) -> VisualObservations | None:
    if observations is None:
        return None
    if observations.video_quality_grade == VideoQualityGrade.POOR:
        return None
    return observations


def reliable_visual_metrics(observations: VisualObservations) -> dict[str, object]:
    """Aggregate metrics keyed by camelCase path, omitting unreliable groups."""
    metrics: dict[str, object] = {}
    if observations.gaze_reliable:
        metrics["gazeBreakdown"] = observations.gaze_breakdown.model_dump(by_alias=True)
        metrics["faceNotDetectedCount"] = observations.face_not_detected_count
    if observations.gesture_reliable:
        metrics["totalGestureCount"] = observations.total_gesture_count
        metrics["gestureFrequency"] = observations.gesture_frequency
        if observations.gesture_per_sentence_ratio is not None:
            metrics["gesturePerSentenceRatio"] = observations.gesture_per_sentence_ratio
    if observations.stability_reliable:
        metrics["meanBodyStabilityScore"] = observations.mean_body_stability_score
        metrics["stageCrossingCount"] = observations.stage_crossing_count
        metrics["movementClassification"] = observations.movement_classification
    if observations.facial_energy_reliable:
        metrics["meanFacialEnergyScore"] = observations.mean_facial_energy_score
        metrics["facialEnergyVariation"] = observations.facial_energy_variation
    return metrics


# ─── Prompt assembly ─────────────────────────────────────────────────────────


def build_system_prompt(
    quality_warning: bool,
    config: EvaluationConfig | None = None,
    visual_observations: VisualObservations | None = None,
) -> str:
    observations = _visual_observations_in_scope(visual_observations)

    schema = OUTPUT_SCHEMA
    if observations is not None:
        schema += VISUAL_SCHEMA_FIELD
    schema += "\n}"

    sections = [
        BASE_SYSTEM_PROMPT,
        "## Output Format\nYou MUST respond with a valid JSON object matching this exact structure:\n"
        + schema,
    ]
    if quality_warning:
        sections.append(QUALITY_WARNING_PROMPT)
    if _has_project_context(config):
        sections.append(PROJECT_CONTEXT_PROMPT)
    if observations is not None:
        visual_rules = VISUAL_RULES_PROMPT
        if observations.video_quality_grade == VideoQualityGrade.DEGRADED:
            visual_rules += "\n" + VISUAL_DEGRADED_NOTE
        sections.append(visual_rules)
    return "\n\n".join(sections)


def build_user_prompt(
    segments: Sequence[TranscriptSegment],
    metrics: DeliveryMetrics,
    quality_warning: bool,
    config: EvaluationConfig | None = None,
    visual_observations: VisualObservations | None = None,
) -> str:
    sections = [
        f"## Speech Transcript\n{format_transcript(segments)}",
        "## Delivery Metrics\n"
        + json.dumps(metrics.model_dump(by_alias=True, mode="json"), indent=2),
    ]

    if quality_warning:
        confident = high_confidence_segments(segments)
        if confident:
            sections.append(
                f"## High-Confidence Segments\n{format_transcript(confident)}"
            )

    if config is not None and _has_project_context(config):
        lines = ["## Speech Context"]
        if config.speech_title and config.speech_title.strip():
            lines.append(f"Speech title: {config.speech_title.strip()}")
        if config.project_type and config.project_type.strip():
            lines.append(f"Project type: {config.project_type.strip()}")
        objectives = [objective.strip() for objective in config.objectives if objective.strip()]
        if objectives:
            lines.append("Project objectives:")
            lines.extend(f"{i}. {objective}" for i, objective in enumerate(objectives, 1))
        sections.append("\n".join(lines))

    observations = _visual_observations_in_scope(visual_observations)
    if observations is not None:
        sections.append(
            "## Visual Observations\n"
            + json.dumps(reliable_visual_metrics(observations), indent=2)
            + f"\nVideo quality: {observations.video_quality_grade.value}"
        )

    sections.append(RESPONSE_INSTRUCTION)
    return "\n\n".join(sections)


def build_evaluation_prompt(
    segments: Sequence[TranscriptSegment],
    metrics: DeliveryMetrics,
    config: EvaluationConfig | None = None,
    visual_observations: VisualObservations | None = None,
) -> PromptMessages:
    """Build the full-evaluation request. Pure function of its inputs."""
    quality_warning = assess_transcript_quality(segments, metrics)
    return PromptMessages(
        system=build_system_prompt(quality_warning, config, visual_observations),
        user=build_user_prompt(
            segments, metrics, quality_warning, config, visual_observations
        ),
    )


def build_item_retry_prompt(
    item: EvaluationItem,
    segments: Sequence[TranscriptSegment],
    issues: Sequence[str],
) -> PromptMessages:
    """Build the narrow request used to repair one failed item."""
    system = ITEM_RETRY_SYSTEM_PROMPT.format(item_type=item.type.value)
    user = "\n\n".join(
        [
            f"## Transcript\n{format_transcript(segments)}",
            "## Original Item (failed validation)\n"
            + json.dumps(item.model_dump(mode="json"), indent=2),
            "## Validation Issues\n" + "\n".join(issues),
            f"Please provide a corrected version of this {item.type.value} with a valid "
            "evidence quote taken verbatim from the transcript. Respond with ONLY the JSON object.",
        ]
    )
    return PromptMessages(system=system, user=user)
