"""
Generative Risk Strategy

Asks a generative model for a complete risk assessment and converts its
JSON answer into a RiskAssessmentResult.

FAIL-CLOSED:
- One attempt per assessment, bounded by an explicit timeout
- Network errors, timeouts, provider errors, missing or malformed JSON and
  out-of-range fields all become `Unavailable`
- Provider exceptions never reach the caller; cancellation does
"""
from __future__ import annotations

import asyncio
from datetime import date, timedelta
from typing import List, Optional, Sequence

import numpy as np

from dermair.core.base import (
    Ok,
    RiskAssessmentResult,
    StrategyOutcome,
    SymptomLog,
    Unavailable,
    UserProfile,
    WeatherSnapshot,
)
from dermair.utils import get_logger, LLMProviderError
from .provider import CompletionProvider, GenerationConfig
from .validators import RiskResponseValidator

logger = get_logger(__name__)


def _fmt(value, suffix: str = "") -> str:
    if value is None:
        return "unknown"
    return f"{value:g}{suffix}" if isinstance(value, (int, float)) else f"{value}{suffix}"


def _season(day: date) -> str:
    return ["Winter", "Spring", "Summer", "Fall"][(day.month % 12) // 3]


class GenerativeRiskStrategy:
    """
    Risk assessment via an external language model.

    The provider is injected; this class owns the prompt contract and all
    validation of what comes back.
    """

    SYSTEM_INSTRUCTION = """You are a dermatology risk assessment assistant for people managing eczema and atopic dermatitis.

CONSTRAINTS:
1. Base your assessment only on the data provided
2. Do NOT diagnose conditions or prescribe specific medications
3. Recommend consulting a dermatologist when risk is high or symptoms are worsening
4. Respond ONLY with a single valid JSON object, no markdown and no other text
"""

    def __init__(
        self,
        provider: CompletionProvider,
        timeout_seconds: float = 15.0,
        history_days: int = 7,
        generation_config: Optional[GenerationConfig] = None,
        treatment_generation_config: Optional[GenerationConfig] = None,
        validator: Optional[RiskResponseValidator] = None,
    ):
        """
        Args:
            provider: Completion provider (e.g. GeminiClient)
            timeout_seconds: Upper bound for a single model call
            history_days: How many days of check-ins to include in the prompt
            generation_config: Sampling parameters for the assessment call
            treatment_generation_config: Sampling parameters for treatment plans
            validator: Response validator, defaults to RiskResponseValidator
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        self.provider = provider
        self.timeout_seconds = timeout_seconds
        self.history_days = history_days
        self.generation_config = generation_config or GenerationConfig(temperature=0.4)
        self.treatment_generation_config = treatment_generation_config or GenerationConfig(temperature=0.7)
        self.validator = validator or RiskResponseValidator()

    async def try_score(
        self,
        weather: WeatherSnapshot,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog] = (),
    ) -> StrategyOutcome:
        """
        Attempt a generative assessment.

        Returns:
            Ok(result) on a valid response, Unavailable(reason) otherwise.
        """
        prompt = self.build_risk_prompt(weather, profile, recent_logs)

        try:
            text = await asyncio.wait_for(
                self.provider.complete(
                    prompt,
                    self.generation_config,
                    system_instruction=self.SYSTEM_INSTRUCTION,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Generative risk call timed out after {self.timeout_seconds}s")
            return Unavailable(reason="timeout")
        except LLMProviderError as e:
            logger.warning(f"Generative provider unavailable: {e.message}")
            return Unavailable(reason=f"provider error: {e.message}")
        except Exception as e:
            logger.error(f"Unexpected generative provider failure: {e}", exc_info=True)
            return Unavailable(reason=f"provider error: {type(e).__name__}")

        validation = self.validator.validate(text)
        if not validation:
            return Unavailable(reason="invalid response: " + "; ".join(validation.errors))

        logger.info(
            f"Generative assessment: score={validation.result.risk_score} "
            f"level={validation.result.risk_level.value}"
        )
        return Ok(validation.result)

    async def generate_treatment_plan(
        self,
        assessment: RiskAssessmentResult,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog] = (),
    ) -> Optional[str]:
        """
        Free-text treatment plan elaborating an existing assessment.

        Returns None on any failure; the assessment itself is never affected.
        """
        prompt = self.build_treatment_prompt(assessment, profile, recent_logs)
        try:
            text = await asyncio.wait_for(
                self.provider.complete(prompt, self.treatment_generation_config),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning("Treatment plan generation timed out")
            return None
        except Exception as e:
            logger.warning(f"Treatment plan generation failed: {e}")
            return None

        text = (text or "").strip()
        return text or None

    # ── Prompts ──────────────────────────────────────────────────────────────

    def _window(self, weather: WeatherSnapshot, recent_logs: Sequence[SymptomLog]) -> List[SymptomLog]:
        """Check-ins from the last `history_days` days, newest first."""
        as_of = weather.timestamp.date() if weather.timestamp else date.today()
        start = as_of - timedelta(days=self.history_days)
        return sorted(
            (log for log in recent_logs if start < log.date <= as_of),
            key=lambda log: log.date,
            reverse=True,
        )

    def build_risk_prompt(
        self,
        weather: WeatherSnapshot,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog],
    ) -> str:
        """Build the structured assessment request."""
        logs = self._window(weather, recent_logs)
        as_of = weather.timestamp.date() if weather.timestamp else date.today()

        avg_symptoms = float(np.mean([log.total_symptom_score for log in logs])) if logs else 0.0
        medication_days = sum(1 for log in logs if log.medication_used)
        severity = profile.latest_severity
        pollen = weather.pollen_count

        prompt = f"""Assess today's eczema flare risk for this patient.

PATIENT PROFILE:
- Skin Type: {profile.skin_type.value if profile.skin_type else 'unknown'}
- Known Triggers: {', '.join(profile.triggers) or 'none specified'}
- Latest Reported Severity: {severity.value if severity else 'unknown'}
- Location: {profile.location.city if profile.location and profile.location.city else 'unknown'}
- Age Range: {profile.age_range or 'unknown'}

CURRENT ENVIRONMENTAL CONDITIONS ({_season(as_of)}):
- Temperature: {_fmt(weather.temperature, '°C')}
- Humidity: {_fmt(weather.humidity, '%')}
- Pressure: {_fmt(weather.pressure, ' hPa')}
- UV Index: {_fmt(weather.uv_index)}
- Air Quality Index: {_fmt(weather.air_quality_index)}
- Pollen (0-10): tree {_fmt(pollen.tree)}, grass {_fmt(pollen.grass)}, weed {_fmt(pollen.weed)}, overall {_fmt(pollen.overall)}
- Wind Speed: {_fmt(weather.wind_speed, ' km/h')}
- Conditions: {weather.weather_condition or 'unknown'}

RECENT SYMPTOM HISTORY (last {self.history_days} days):
"""
        if logs:
            for log in logs:
                prompt += (
                    f"- {log.date.isoformat()}: itch {log.itch}/5, redness {log.redness}/3"
                    f"{', medication used' if log.medication_used else ''}\n"
                )
        else:
            prompt += "- No recent check-ins recorded\n"

        prompt += f"""- Average combined symptom score: {avg_symptoms:.1f}/8
- Days with medication: {medication_days}

Consider environmental, physiological, behavioral and clinical factors.

Respond ONLY with a JSON object of exactly this shape:
{{
  "riskScore": <integer 0-100>,
  "riskLevel": "<minimal|low|moderate|high|severe>",
  "confidence": <number 0-1>,
  "reasoning": "<2-3 sentence explanation>",
  "keyFactors": [
    {{"name": "<factor>", "category": "<environmental|physiological|behavioral|clinical>", "impact": <0-100>, "description": "<brief explanation>"}}
  ],
  "recommendations": [
    {{"priority": "<critical|high|medium|low>", "category": "<immediate|preventive|lifestyle|medical>", "recommendation": "<specific action>", "rationale": "<why>"}}
  ],
  "predictions": {{"next24h": <0-100>, "next7days": <0-100>, "trajectory": "<improving|stable|worsening>"}}
}}

riskLevel bands: minimal 0-9, low 10-24, moderate 25-49, high 50-74, severe 75-100.
Provide 3-8 key factors and 3-8 recommendations."""
        return prompt

    def build_treatment_prompt(
        self,
        assessment: RiskAssessmentResult,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog],
    ) -> str:
        """Build the treatment plan request for an existing assessment."""
        factor_names = ", ".join(f.name for f in assessment.key_factors) or "none identified"
        medication_days = sum(1 for log in recent_logs if log.medication_used)

        return f"""Based on the following eczema risk assessment, create a personalized care plan.

RISK ASSESSMENT:
- Risk Level: {assessment.risk_level.value} ({assessment.risk_score}/100)
- Key Factors: {factor_names}
- Trajectory: {assessment.prediction.trajectory.value}

PATIENT PROFILE:
- Skin Type: {profile.skin_type.value if profile.skin_type else 'unknown'}
- Known Triggers: {', '.join(profile.triggers) or 'none specified'}
- Days with medication in recent check-ins: {medication_days}

Include:
1. **Immediate Actions** (next 24-48 hours)
2. **Daily Skincare Routine**
3. **Lifestyle Modifications**
4. **When to Seek Medical Attention**
5. **Monitoring Guidelines**

Format the response as concise markdown with bullet points. Do not prescribe specific medications."""
