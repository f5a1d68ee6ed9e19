"""
Risk Alert Policy

Decides whether an assessment warrants notifying the user. Delivery
(push, email) belongs to the caller.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from dermair.core.base import RiskAssessmentResult, RiskLevel, UserProfile
from dermair.utils import get_logger

logger = get_logger(__name__)


# Nothing below this level is ever alerted on
MINIMUM_ALERT_LEVEL = RiskLevel.MODERATE
MAX_ALERT_FACTORS = 3


@dataclass
class RiskAlert:
    user_id: str
    title: str
    body: str
    level: RiskLevel
    score: int
    factors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "title": self.title,
            "body": self.body,
            "level": self.level.value,
            "score": self.score,
            "factors": self.factors,
        }


class RiskAlertPolicy:
    """
    Alert when:
    1. The user has notifications enabled
    2. The level is at least MODERATE
    3. The level is at or above the user's own risk threshold
    """

    def evaluate(self, result: RiskAssessmentResult, profile: UserProfile) -> Optional[RiskAlert]:
        prefs = profile.preferences
        if not prefs.notifications:
            return None

        level = result.risk_level
        if level.rank < MINIMUM_ALERT_LEVEL.rank or level.rank < prefs.risk_threshold.rank:
            return None

        factors = [f.name for f in result.key_factors[:MAX_ALERT_FACTORS]]
        alert = RiskAlert(
            user_id=profile.id,
            title=self._title(level),
            body=self._body(result, factors),
            level=level,
            score=result.risk_score,
            factors=factors,
        )
        logger.info(f"Risk alert raised for user {profile.id}: {level.value} ({result.risk_score})")
        return alert

    @staticmethod
    def _title(level: RiskLevel) -> str:
        if level.rank >= RiskLevel.HIGH.rank:
            return f"{level.value.title()} flare risk today"
        return "Moderate flare risk today"

    @staticmethod
    def _body(result: RiskAssessmentResult, factors: List[str]) -> str:
        body = f"Your eczema risk score is {result.risk_score}/100."
        if factors:
            body += f" Main factors: {', '.join(factors)}."
        if result.recommendations:
            body += f" {result.recommendations[0].text}"
        return body
