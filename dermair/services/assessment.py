"""
Assessment Service

Entry point for API routes: wires the collaborators (profile store, weather
provider) to the orchestrator, trend analyzer and alert policy.

Failure policy:
- Store failures surface as DataStoreUnavailableError, never as "no history"
- Unknown users surface as ProfileNotFoundError
- Weather failures propagate as WeatherProviderError
- Generative model failures never surface; the orchestrator falls back
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Awaitable, Dict, List, Optional, Sequence, TypeVar

from dermair.config import Settings, get_settings
from dermair.core.alerts import RiskAlert, RiskAlertPolicy
from dermair.core.analytics import TrendAnalyzer, TrendReport
from dermair.core.base import RiskAssessmentResult, SymptomLog, UserProfile, WeatherSnapshot
from dermair.core.llm import GeminiClient, GeminiConfig, GenerationConfig, GenerativeRiskStrategy
from dermair.core.risk import DeterministicRiskScorer, RiskAssessmentOrchestrator
from dermair.utils import (
    get_logger,
    AssessmentInputError,
    DataStoreUnavailableError,
    DermAirError,
    ProfileNotFoundError,
    WeatherProviderError,
)
from .providers import InMemoryProfileStore, ProfileStore, WeatherProvider

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class UserAssessment:
    """Store-backed assessment plus the alert it triggered, if any."""
    user_id: str
    location: str
    weather: WeatherSnapshot
    result: RiskAssessmentResult
    alert: Optional[RiskAlert] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "location": self.location,
            "weather": self.weather.to_dict(),
            "assessment": self.result.to_dict(),
            "alert": self.alert.to_dict() if self.alert else None,
        }


class AssessmentService:
    """
    Usage:
        service = build_assessment_service()
        result = await service.assess(weather, profile, logs)
        report = service.analyze_trends(logs, window_days=30)
    """

    def __init__(
        self,
        orchestrator: RiskAssessmentOrchestrator,
        store: Optional[ProfileStore] = None,
        weather_provider: Optional[WeatherProvider] = None,
        trend_analyzer: Optional[TrendAnalyzer] = None,
        alert_policy: Optional[RiskAlertPolicy] = None,
        history_days: int = 7,
        trend_window_days: int = 30,
    ):
        self.orchestrator = orchestrator
        self.store = store
        self.weather_provider = weather_provider
        self.trend_analyzer = trend_analyzer or TrendAnalyzer()
        self.alert_policy = alert_policy or RiskAlertPolicy()
        self.history_days = history_days
        self.trend_window_days = trend_window_days

    # ── Direct contracts ─────────────────────────────────────────────────────

    async def assess(
        self,
        weather: Optional[WeatherSnapshot],
        profile: Optional[UserProfile],
        recent_logs: Sequence[SymptomLog] = (),
        include_treatment_plan: bool = False,
        forecast: Optional[WeatherSnapshot] = None,
    ) -> RiskAssessmentResult:
        return await self.orchestrator.assess(
            weather, profile, recent_logs,
            include_treatment_plan=include_treatment_plan, forecast=forecast,
        )

    def analyze_trends(
        self,
        logs: Sequence[SymptomLog],
        window_days: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> TrendReport:
        return self.trend_analyzer.analyze(
            logs, window_days=window_days or self.trend_window_days, as_of=as_of
        )

    # ── Store-backed contracts ───────────────────────────────────────────────

    async def assess_user(
        self,
        user_id: str,
        location: Optional[str] = None,
        include_treatment_plan: bool = False,
    ) -> UserAssessment:
        """
        Assess a stored user against current weather.

        Args:
            user_id: Profile id
            location: City or "lat,lon"; defaults to the profile's city

        Raises:
            DataStoreUnavailableError: store could not be read
            ProfileNotFoundError: no profile for user_id
            AssessmentInputError: no location given or stored
            WeatherProviderError: weather could not be fetched
        """
        profile = await self._load_profile(user_id)
        logs = await self._load_logs(user_id, self.history_days)

        location = location or (profile.location.city if profile.location else "")
        if not location:
            raise AssessmentInputError(
                f"No location given and none stored for user '{user_id}'", field="location"
            )

        weather = await self._fetch_weather(location)
        result = await self.assess(
            weather, profile, logs, include_treatment_plan=include_treatment_plan
        )
        alert = self.alert_policy.evaluate(result, profile)

        return UserAssessment(
            user_id=user_id, location=location, weather=weather, result=result, alert=alert
        )

    async def trends_for_user(
        self,
        user_id: str,
        days: Optional[int] = None,
        as_of: Optional[date] = None,
    ) -> TrendReport:
        """
        Trend report over a stored user's check-ins.

        Raises:
            DataStoreUnavailableError: store could not be read
            ProfileNotFoundError: no profile for user_id
        """
        days = days or self.trend_window_days
        await self._load_profile(user_id)
        logs = await self._load_logs(user_id, days)
        return self.analyze_trends(logs, window_days=days, as_of=as_of)

    # ── Collaborator access ──────────────────────────────────────────────────

    def _require_store(self) -> ProfileStore:
        if self.store is None:
            raise DataStoreUnavailableError("No profile store configured", operation="configure")
        return self.store

    async def _from_store(self, operation: str, call: Awaitable[T]) -> T:
        try:
            return await call
        except DermAirError:
            raise
        except Exception as e:
            logger.error(f"Profile store failure: {e}", extra={"operation": operation})
            raise DataStoreUnavailableError(
                f"Profile store failed during {operation}: {e}", operation=operation
            ) from e

    async def _load_profile(self, user_id: str) -> UserProfile:
        store = self._require_store()
        profile = await self._from_store("get_profile", store.get_profile(user_id))
        if profile is None:
            raise ProfileNotFoundError(user_id)
        return profile

    async def _load_logs(self, user_id: str, days: int) -> List[SymptomLog]:
        store = self._require_store()
        logs = await self._from_store("get_recent_logs", store.get_recent_logs(user_id, days))
        return list(logs)

    async def _fetch_weather(self, location: str) -> WeatherSnapshot:
        if self.weather_provider is None:
            raise WeatherProviderError("No weather provider configured", location=location)
        try:
            return await self.weather_provider.get_weather(location)
        except WeatherProviderError:
            raise
        except Exception as e:
            logger.error(f"Weather provider failure: {e}", extra={"location": location})
            raise WeatherProviderError(
                f"Weather lookup failed for '{location}': {e}", location=location
            ) from e


def build_assessment_service(
    settings: Optional[Settings] = None,
    store: Optional[ProfileStore] = None,
    weather_provider: Optional[WeatherProvider] = None,
) -> AssessmentService:
    """
    Wire an AssessmentService from settings.

    The Gemini strategy is attached only when LLM use is enabled and an API
    key is configured; otherwise assessments are rule-based.
    """
    settings = settings or get_settings()

    generative = None
    if settings.llm_enabled and settings.gemini_api_key:
        generation = GenerationConfig(temperature=settings.llm_temperature)
        client = GeminiClient(GeminiConfig(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            generation=generation,
            request_timeout_seconds=settings.llm_timeout_seconds,
        ))
        generative = GenerativeRiskStrategy(
            client,
            timeout_seconds=settings.llm_timeout_seconds,
            history_days=settings.history_window_days,
            generation_config=generation,
        )
    elif settings.llm_enabled:
        logger.warning("LLM enabled but no Gemini API key configured - using rule-based scoring only")

    return AssessmentService(
        orchestrator=RiskAssessmentOrchestrator(DeterministicRiskScorer(), generative),
        store=store if store is not None else InMemoryProfileStore(),
        weather_provider=weather_provider,
        history_days=settings.history_window_days,
        trend_window_days=settings.trend_window_days,
    )
