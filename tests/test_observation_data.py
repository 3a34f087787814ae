"""Tests for visual observation citations."""

import pytest

from speech_evaluator.evaluation.models import VisualFeedbackItem, VisualObservations
from speech_evaluator.evaluation.validation import is_metric_reliable, validate_observation_data


@pytest.fixture
def observations() -> VisualObservations:
    return VisualObservations.model_validate(
        {
            "gazeBreakdown": {"audienceFacing": 72.5, "notesFacing": 20.0, "other": 7.5},
            "totalGestureCount": 14,
            "gestureFrequency": 7.0,
            "stageCrossingCount": 0,
            "gestureReliable": False,
        }
    )


def _citation(observation_data: str) -> VisualFeedbackItem:
    return VisualFeedbackItem(
        summary="Audience focus",
        observation_data=observation_data,
        explanation="You faced the audience.",
    )


class TestValidateObservationData:
    @pytest.mark.parametrize(
        "observation_data",
        [
            "metric=gazeBreakdown.audienceFacing; value=72.5; source=visualObservations",
            "metric=gazeBreakdown.audienceFacing; value=73%; source=visualObservations",
            "metric=gaze_breakdown.audience_facing; value=72; source=visualObservations",
            "metric=totalGestureCount; value=14; source=visualObservations;",
            "metric=stageCrossingCount; value=0; source=visualObservations",
        ],
    )
    def test_accepted_citations(self, observations, observation_data):
        assert validate_observation_data(_citation(observation_data), observations) is True

    @pytest.mark.parametrize(
        "observation_data",
        [
            "metric=gazeBreakdown.audienceFacing; value=80; source=visualObservations",
            "metric=gazeBreakdown.audienceFacing; value=72.5; source=deliveryMetrics",
            "metric=gazeBreakdown.sideways; value=1; source=visualObservations",
            "metric=stageCrossingCount; value=0.1; source=visualObservations",
            "metric=movementClassification; value=1; source=visualObservations",
            "metric=totalGestureCount; value=lots; source=visualObservations",
            "gaze was 72.5",
        ],
    )
    def test_rejected_citations(self, observations, observation_data):
        assert validate_observation_data(_citation(observation_data), observations) is False

    def test_metric_reliability(self, observations):
        assert is_metric_reliable("gazeBreakdown.audienceFacing", observations) is True
        assert is_metric_reliable("gestureFrequency", observations) is False
        assert is_metric_reliable("framesAnalyzed", observations) is True
