"""
Unit Tests for the risk alert policy
"""
import pytest

from dermair.core.alerts import RiskAlertPolicy
from dermair.core.base import (
    FactorCategory,
    KeyFactor,
    Prediction,
    RiskAssessmentResult,
    RiskLevel,
    Trajectory,
    UserPreferences,
    UserProfile,
)


def _result(level: RiskLevel, score: int) -> RiskAssessmentResult:
    return RiskAssessmentResult(
        risk_score=score,
        risk_level=level,
        reasoning="test",
        prediction=Prediction(next24h=score, next7days=score, trajectory=Trajectory.STABLE),
        key_factors=[
            KeyFactor(name=f"Factor {i}", category=FactorCategory.ENVIRONMENTAL, impact=10 - i)
            for i in range(5)
        ],
    )


def _profile(threshold: RiskLevel = RiskLevel.MODERATE, notifications: bool = True) -> UserProfile:
    return UserProfile(
        id="user-1",
        preferences=UserPreferences(notifications=notifications, risk_threshold=threshold),
    )


@pytest.fixture
def policy() -> RiskAlertPolicy:
    return RiskAlertPolicy()


class TestRiskAlertPolicy:

    @pytest.mark.parametrize("level,threshold,should_alert", [
        (RiskLevel.MINIMAL, RiskLevel.LOW, False),
        (RiskLevel.LOW, RiskLevel.LOW, False),
        (RiskLevel.MODERATE, RiskLevel.LOW, True),
        (RiskLevel.MODERATE, RiskLevel.MODERATE, True),
        (RiskLevel.MODERATE, RiskLevel.HIGH, False),
        (RiskLevel.HIGH, RiskLevel.HIGH, True),
        (RiskLevel.SEVERE, RiskLevel.HIGH, True),
    ])
    def test_threshold_matrix(self, policy, level, threshold, should_alert):
        alert = policy.evaluate(_result(level, 50), _profile(threshold))
        assert (alert is not None) is should_alert

    def test_notifications_disabled(self, policy):
        assert policy.evaluate(_result(RiskLevel.SEVERE, 90), _profile(notifications=False)) is None

    def test_alert_contents(self, policy):
        alert = policy.evaluate(_result(RiskLevel.HIGH, 72), _profile())

        assert alert.user_id == "user-1"
        assert alert.level == RiskLevel.HIGH
        assert alert.score == 72
        assert alert.factors == ["Factor 0", "Factor 1", "Factor 2"]
        assert alert.title == "High flare risk today"
        assert "72/100" in alert.body
        assert alert.to_dict()["level"] == "high"

    def test_deterministic_result_alerts(self, policy, harsh_weather, profile):
        from dermair.core.risk import DeterministicRiskScorer

        result = DeterministicRiskScorer().score(harsh_weather, profile)
        alert = policy.evaluate(result, profile)

        assert alert is not None
        assert result.recommendations[0].text in alert.body
