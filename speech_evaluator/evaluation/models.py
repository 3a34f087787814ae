"""Evaluation models and shared schemas for evidence-grounded speech feedback."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Inputs come from collaborators that speak camelCase; attributes stay snake_case.
_INPUT_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ItemType(str, Enum):
    """Kinds of feedback items an evaluation may contain."""

    COMMENDATION = "commendation"
    RECOMMENDATION = "recommendation"


# ─── Transcript + metrics inputs ──────────────────────────────────────────────


class TranscriptWord(BaseModel):
    """Single recognized word with timing and recognizer confidence."""

    model_config = _INPUT_CONFIG

    word: str
    start_time: float = Field(..., ge=0.0)
    end_time: float = Field(..., ge=0.0)
    confidence: float = Field(1.0, ge=0.0, le=1.0)


class TranscriptSegment(BaseModel):
    """Final transcript segment; ``words`` may be empty (segment-level timing only)."""

    model_config = _INPUT_CONFIG

    text: str
    start_time: float = Field(..., ge=0.0)
    end_time: float = Field(..., ge=0.0)
    words: list[TranscriptWord] = Field(default_factory=list)
    is_final: bool = True


class FillerWordEntry(BaseModel):
    model_config = _INPUT_CONFIG

    word: str
    count: int = Field(0, ge=0)
    timestamps: list[float] = Field(default_factory=list)


class DeliveryMetrics(BaseModel):
    """Numeric delivery aggregate computed upstream from audio + transcript."""

    model_config = _INPUT_CONFIG

    duration_seconds: float = Field(0.0, ge=0.0)
    duration_formatted: str = "0:00"
    total_words: int = Field(0, ge=0)
    words_per_minute: float = Field(0.0, ge=0.0)
    filler_words: list[FillerWordEntry] = Field(default_factory=list)
    filler_word_count: int = Field(0, ge=0)
    filler_word_frequency: float = Field(0.0, ge=0.0, description="Fillers per minute")
    pause_count: int = Field(0, ge=0)
    total_pause_duration_seconds: float = Field(0.0, ge=0.0)
    average_pause_duration_seconds: float = Field(0.0, ge=0.0)
    intentional_pause_count: int = Field(0, ge=0)
    hesitation_pause_count: int = Field(0, ge=0)
    energy_variation_coefficient: float = Field(0.0, ge=0.0)


# ─── Visual observations input ───────────────────────────────────────────────


class VideoQualityGrade(str, Enum):
    GOOD = "good"
    DEGRADED = "degraded"
    POOR = "poor"


class GazeBreakdown(BaseModel):
    """Percentage of analyzed frames per gaze direction."""

    model_config = _INPUT_CONFIG

    audience_facing: float = Field(0.0, ge=0.0, le=100.0)
    notes_facing: float = Field(0.0, ge=0.0, le=100.0)
    other: float = Field(0.0, ge=0.0, le=100.0)


class VisualObservations(BaseModel):
    """Aggregate-only visual delivery observations; never per-frame data."""

    model_config = _INPUT_CONFIG

    gaze_breakdown: GazeBreakdown = Field(default_factory=GazeBreakdown)
    face_not_detected_count: int = Field(0, ge=0)
    total_gesture_count: int = Field(0, ge=0)
    gesture_frequency: float = Field(0.0, ge=0.0, description="Gestures per minute")
    gesture_per_sentence_ratio: float | None = Field(None, ge=0.0)
    hands_detected_frames: int = Field(0, ge=0)
    hands_not_detected_frames: int = Field(0, ge=0)
    mean_body_stability_score: float = Field(0.0, ge=0.0, le=1.0)
    stage_crossing_count: int = Field(0, ge=0)
    movement_classification: Literal[
        "stationary", "moderate_movement", "high_movement"
    ] = "stationary"
    mean_facial_energy_score: float = Field(0.0, ge=0.0, le=1.0)
    facial_energy_variation: float = Field(0.0, ge=0.0)
    facial_energy_low_signal: bool = False
    frames_analyzed: int = Field(0, ge=0)
    video_quality_grade: VideoQualityGrade = VideoQualityGrade.GOOD
    video_quality_warning: bool = False
    gaze_reliable: bool = True
    gesture_reliable: bool = True
    stability_reliable: bool = True
    facial_energy_reliable: bool = True


# ─── Request context ─────────────────────────────────────────────────────────


class EvaluationConfig(BaseModel):
    """Optional project awareness supplied by the session."""

    model_config = _INPUT_CONFIG

    objectives: list[str] = Field(default_factory=list)
    project_type: str | None = None
    speech_title: str | None = None


class ConsentRecord(BaseModel):
    model_config = _INPUT_CONFIG

    speaker_name: str
    consent_confirmed: bool
    consent_timestamp: datetime


# ─── Structured evaluation ───────────────────────────────────────────────────


class EvaluationItem(BaseModel):
    """Commendation or recommendation grounded in a transcript quote."""

    type: ItemType
    summary: str = Field(..., strict=True)
    evidence_quote: str = Field(..., strict=True, description="Verbatim transcript snippet")
    evidence_timestamp: float = Field(
        ...,
        strict=True,
        allow_inf_nan=False,
        description="Seconds since speech start where the quote begins",
    )
    explanation: str = Field(..., strict=True)


class StructureCommentary(BaseModel):
    """Commentary on speech structure; each part is null rather than speculative."""

    opening_comment: str | None = None
    body_comment: str | None = None
    closing_comment: str | None = None

    def non_null(self) -> list[str]:
        return [
            comment
            for comment in (self.opening_comment, self.body_comment, self.closing_comment)
            if comment
        ]


class VisualFeedbackItem(BaseModel):
    """Visual observation tied to a machine-checkable metric citation."""

    type: Literal["visual_observation"] = "visual_observation"
    summary: str = Field(..., strict=True)
    observation_data: str = Field(
        ...,
        strict=True,
        description="metric=<path>; value=<v>; source=visualObservations",
    )
    explanation: str = Field(..., strict=True)


class StructuredEvaluation(BaseModel):
    """Parsed evaluation as produced by the completion service."""

    opening: str = Field(..., strict=True)
    items: list[EvaluationItem]
    closing: str = Field(..., strict=True)
    structure_commentary: StructureCommentary = Field(
        default_factory=StructureCommentary
    )
    visual_feedback: list[VisualFeedbackItem] | None = None

    def count(self, item_type: ItemType) -> int:
        return sum(1 for item in self.items if item.type == item_type)


class EvaluationItemPublic(BaseModel):
    type: ItemType
    summary: str
    explanation: str
    evidence_quote: str
    evidence_timestamp: float


class StructuredEvaluationPublic(BaseModel):
    """Redacted evaluation that may be shown to the user or persisted."""

    opening: str
    items: list[EvaluationItemPublic] = Field(default_factory=list)
    closing: str
    structure_commentary: StructureCommentary = Field(
        default_factory=StructureCommentary
    )
    visual_feedback: list[VisualFeedbackItem] | None = None


# ─── Results ─────────────────────────────────────────────────────────────────


class ValidationResult(BaseModel):
    """Outcome of evidence validation; grounding failures are data, never raised."""

    valid: bool = Field(True)
    issues: list[str] = Field(default_factory=list)


class GenerateResult(BaseModel):
    evaluation: StructuredEvaluation
    pass_rate: float = Field(..., ge=0.0, le=1.0)


class RedactionInput(BaseModel):
    script: str
    evaluation: StructuredEvaluation
    consent: ConsentRecord


class RedactionOutput(BaseModel):
    script_redacted: str
    evaluation_public: StructuredEvaluationPublic
