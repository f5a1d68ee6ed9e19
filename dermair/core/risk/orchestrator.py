"""
Risk Assessment Orchestrator

Two-tier strategy chain:

    1. GenerativeRiskStrategy   (when configured)
    2. DeterministicRiskScorer  (always available)

The first strategy that produces a result wins. Results are never blended;
the two strategies use different level scales.
"""
from typing import Optional, Sequence

from dermair.core.base import (
    AssessmentStrategy,
    Ok,
    RiskAssessmentResult,
    SymptomLog,
    Unavailable,
    UserProfile,
    WeatherSnapshot,
)
from dermair.core.llm.risk_strategy import GenerativeRiskStrategy
from dermair.utils import get_logger, AssessmentInputError
from .scorer import DeterministicRiskScorer

logger = get_logger(__name__)


class RiskAssessmentOrchestrator:
    """
    Produces exactly one RiskAssessmentResult per call once weather and
    profile are present.

    Usage:
        orchestrator = RiskAssessmentOrchestrator(DeterministicRiskScorer(), strategy)
        result = await orchestrator.assess(weather, profile, logs)
    """

    def __init__(
        self,
        scorer: Optional[DeterministicRiskScorer] = None,
        generative: Optional[GenerativeRiskStrategy] = None,
    ):
        self.scorer = scorer or DeterministicRiskScorer()
        self.generative = generative
        self._stats = {strategy.value: 0 for strategy in AssessmentStrategy}
        self._fallback_count = 0

        mode = "generative with deterministic fallback" if generative else "deterministic only"
        logger.info(f"RiskAssessmentOrchestrator initialized ({mode})")

    async def assess(
        self,
        weather: Optional[WeatherSnapshot],
        profile: Optional[UserProfile],
        recent_logs: Sequence[SymptomLog] = (),
        include_treatment_plan: bool = False,
        forecast: Optional[WeatherSnapshot] = None,
    ) -> RiskAssessmentResult:
        """
        Assess today's flare risk.

        Args:
            weather: Current conditions (required)
            profile: User profile (required)
            recent_logs: Recent check-ins, any order
            include_treatment_plan: Also request a free-text care plan
            forecast: Optional next-day conditions for the deterministic 24h prediction

        Raises:
            AssessmentInputError: weather or profile missing
        """
        if weather is None:
            raise AssessmentInputError("Weather snapshot is required", field="weather")
        if profile is None:
            raise AssessmentInputError("User profile is required", field="profile")

        recent_logs = list(recent_logs or ())
        result: Optional[RiskAssessmentResult] = None

        if self.generative is not None:
            outcome = await self.generative.try_score(weather, profile, recent_logs)
            if isinstance(outcome, Ok):
                result = outcome.result
            elif isinstance(outcome, Unavailable):
                self._fallback_count += 1
                logger.info(
                    f"Generative strategy unavailable for user {profile.id} "
                    f"({outcome.reason}); falling back to deterministic scorer"
                )

        if result is None:
            result = self.scorer.score(weather, profile, recent_logs, forecast=forecast)

        self._stats[result.strategy.value] += 1
        logger.info(
            "Assessment complete",
            extra={
                "user_id": profile.id,
                "strategy": result.strategy.value,
                "risk_score": result.risk_score,
                "risk_level": result.risk_level.value,
            },
        )

        if include_treatment_plan:
            result.treatment_plan = await self._treatment_plan(result, profile, recent_logs)

        return result

    async def _treatment_plan(
        self,
        result: RiskAssessmentResult,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog],
    ) -> Optional[str]:
        if self.generative is None:
            logger.debug("Treatment plan requested but no generative strategy configured")
            return None
        plan = await self.generative.generate_treatment_plan(result, profile, recent_logs)
        if plan is None:
            logger.info(f"Treatment plan unavailable for user {profile.id}")
        return plan

    def get_stats(self) -> dict:
        """Counts of results per strategy and of fallbacks."""
        return {
            "by_strategy": dict(self._stats),
            "fallbacks": self._fallback_count,
            "generative_configured": self.generative is not None,
        }
