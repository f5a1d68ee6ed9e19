"""
Deterministic Risk Scorer

Pure, rule-based fallback strategy: weather + profile + recent check-ins
-> RiskAssessmentResult. Never raises on well-typed input; missing readings
contribute nothing and out-of-range readings are clamped before use.

Usage:
    from dermair.core.risk import DeterministicRiskScorer

    result = DeterministicRiskScorer().score(weather, profile, recent_logs)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from dermair.core.base import (
    AssessmentStrategy,
    FactorCategory,
    KeyFactor,
    Prediction,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    RiskAssessmentResult,
    RiskLevel,
    SymptomLog,
    Trajectory,
    UserProfile,
    WeatherSnapshot,
    clamp,
)
from dermair.utils import get_logger
from . import rules

logger = get_logger(__name__)


@dataclass(frozen=True)
class _Advice:
    category: RecommendationCategory
    text: str
    rationale: str


@dataclass(frozen=True)
class _Contribution:
    """A factor plus the advice it yields."""
    factor: KeyFactor
    advice: _Advice
    condition: Optional[str] = None


# ── Advice templates ─────────────────────────────────────────────────────────

_CONDITION_ADVICE = {
    "humidity_high": _Advice(
        RecommendationCategory.PREVENTIVE,
        "Use a lighter, non-comedogenic moisturizer and keep indoor air circulating",
        "Humid air increases sweating and bacterial growth on the skin",
    ),
    "humidity_low": _Advice(
        RecommendationCategory.IMMEDIATE,
        "Apply a heavy moisturizer and run a humidifier indoors",
        "Dry air accelerates water loss through the skin barrier",
    ),
    "heat": _Advice(
        RecommendationCategory.LIFESTYLE,
        "Wear loose, breathable clothing and take cool showers after sweating",
        "Heat and sweat are common flare triggers",
    ),
    "cold": _Advice(
        RecommendationCategory.PREVENTIVE,
        "Cover exposed skin outdoors and warm up gradually when coming inside",
        "Cold air dries and cracks the skin barrier",
    ),
    "uv": _Advice(
        RecommendationCategory.PREVENTIVE,
        "Apply broad-spectrum SPF 30+ sunscreen and avoid midday sun",
        "High UV can inflame already sensitised skin",
    ),
    "air_quality": _Advice(
        RecommendationCategory.IMMEDIATE,
        "Limit outdoor time, keep windows closed and cleanse skin after being outside",
        "Airborne pollutants irritate the skin and worsen inflammation",
    ),
    "pollen": _Advice(
        RecommendationCategory.PREVENTIVE,
        "Keep windows closed at peak pollen hours and shower before bed",
        "Pollen on skin and hair prolongs allergen exposure",
    ),
    "wind": _Advice(
        RecommendationCategory.PREVENTIVE,
        "Apply a protective balm and shield your face from the wind",
        "Strong wind strips moisture and spreads allergens",
    ),
}

_ELEVATED_SYMPTOMS_ADVICE = _Advice(
    RecommendationCategory.MEDICAL,
    "Contact your dermatologist if symptoms stay elevated for several more days",
    "Persistently high itch and redness suggest the current plan is not controlling the flare",
)
_RISING_SYMPTOMS_ADVICE = _Advice(
    RecommendationCategory.IMMEDIATE,
    "Step up your moisturizing routine today and log any new symptoms",
    "Symptoms have been rising over recent check-ins",
)
_MEDICATION_ADVICE = _Advice(
    RecommendationCategory.MEDICAL,
    "Review your medication plan with your doctor",
    "Frequent medication use may indicate the condition is not well controlled",
)
_HIGH_RISK_ADVICE = _Advice(
    RecommendationCategory.IMMEDIATE,
    "High-risk day: apply an intensive barrier cream and keep your treatment within reach",
    "Several risk factors are active at the same time",
)
_BASELINE_ADVICE = _Advice(
    RecommendationCategory.PREVENTIVE,
    "Keep up your regular moisturizing routine",
    "Consistent care keeps the skin barrier resilient on calm days",
)

_PRIORITY_ORDER = {
    RecommendationPriority.CRITICAL: 0,
    RecommendationPriority.HIGH: 1,
    RecommendationPriority.MEDIUM: 2,
    RecommendationPriority.LOW: 3,
}


def _priority_for(impact: int) -> RecommendationPriority:
    if impact >= rules.PRIORITY_CRITICAL_IMPACT:
        return RecommendationPriority.CRITICAL
    if impact >= rules.PRIORITY_HIGH_IMPACT:
        return RecommendationPriority.HIGH
    if impact >= rules.PRIORITY_MEDIUM_IMPACT:
        return RecommendationPriority.MEDIUM
    return RecommendationPriority.LOW


def _word_pattern(words: Sequence[str]) -> re.Pattern:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b")


_TRIGGER_PATTERNS = {c: _word_pattern(words) for c, words in rules.TRIGGER_KEYWORDS.items()}
_EXCLUSION_PATTERNS = {c: _word_pattern(words) for c, words in rules.TRIGGER_EXCLUSIONS.items()}


def trigger_matches(trigger: str, condition: str) -> bool:
    """Whether a free-form trigger name refers to an environmental condition."""
    text = " ".join(trigger.lower().split())
    pattern = _TRIGGER_PATTERNS.get(condition)
    if not text or pattern is None:
        return False
    exclusion = _EXCLUSION_PATTERNS.get(condition)
    if exclusion is not None and exclusion.search(text):
        return False
    return pattern.search(text) is not None


class DeterministicRiskScorer:
    """
    Weighted-factor accumulation over environmental, personal and history signals.

    Stateless; one instance serves concurrent assessments.
    """

    def score(
        self,
        weather: WeatherSnapshot,
        profile: UserProfile,
        recent_logs: Sequence[SymptomLog] = (),
        forecast: Optional[WeatherSnapshot] = None,
    ) -> RiskAssessmentResult:
        """
        Score today's risk.

        Args:
            weather: Current conditions.
            profile: User profile (triggers are used for personalisation).
            recent_logs: Recent check-ins; the caller controls the window.
            forecast: Optional short-term forecast used for the 24h prediction.
        """
        logs = sorted(recent_logs, key=lambda log: log.date, reverse=True)

        environment = self._environment_contributions(weather, profile)
        history = self._history_contributions(logs)
        contributions = environment + history

        raw = sum(c.factor.impact for c in contributions)
        score = int(clamp(raw, 0, 100))
        level = RiskLevel.from_score_coarse(score)

        factors = sorted(
            (c.factor for c in contributions), key=lambda f: f.impact, reverse=True
        )
        prediction = self._predict(score, raw, environment, profile, logs, forecast)

        result = RiskAssessmentResult(
            risk_score=score,
            risk_level=level,
            confidence=1.0,
            reasoning=self._reasoning(score, level, factors),
            key_factors=factors,
            recommendations=self._recommendations(contributions, level),
            prediction=prediction,
            strategy=AssessmentStrategy.DETERMINISTIC,
        )
        logger.debug(
            f"DeterministicRiskScorer: score={score} level={level.value} "
            f"factors={[f.name for f in factors]}"
        )
        return result

    # ── Environmental + trigger factors ──────────────────────────────────────

    def _environment_contributions(
        self,
        weather: WeatherSnapshot,
        profile: UserProfile,
    ) -> List[_Contribution]:
        contributions = self._crossings(weather)

        # each declared trigger earns the bonus at most once
        credited = set()
        for condition in [c.condition for c in contributions]:
            trigger = next(
                (t for t in profile.triggers
                 if t not in credited and trigger_matches(t, condition)),
                None,
            )
            if trigger is None:
                continue
            credited.add(trigger)
            contributions.append(_Contribution(
                factor=KeyFactor(
                    name=f"Personal trigger: {trigger}",
                    category=FactorCategory.CLINICAL,
                    impact=rules.TRIGGER_MATCH_BONUS,
                    description=f"Your declared trigger '{trigger}' is active today",
                ),
                advice=_Advice(
                    RecommendationCategory.PREVENTIVE,
                    f"Your trigger '{trigger}' is active today: limit exposure and pre-apply barrier protection",
                    "Known personal triggers raise flare risk beyond the general population",
                ),
                condition=condition,
            ))
        return contributions

    def _crossings(self, weather: WeatherSnapshot) -> List[_Contribution]:
        """Environmental threshold crossings, each with graduated points."""
        found: List[Tuple[str, str, int, str]] = []

        humidity = weather.humidity_pct
        if humidity is not None:
            if humidity > rules.HUMIDITY_HIGH.threshold:
                found.append((
                    "humidity_high", "High humidity",
                    rules.HUMIDITY_HIGH.points(humidity - rules.HUMIDITY_HIGH.threshold),
                    f"{humidity:.0f}% humidity increases sweating and moisture retention",
                ))
            elif humidity < rules.HUMIDITY_LOW.threshold:
                found.append((
                    "humidity_low", "Low humidity",
                    rules.HUMIDITY_LOW.points(rules.HUMIDITY_LOW.threshold - humidity),
                    f"{humidity:.0f}% humidity dries out the skin",
                ))

        temperature = weather.temperature
        if temperature is not None:
            if temperature > rules.HEAT.threshold:
                found.append((
                    "heat", "High temperature",
                    rules.HEAT.points(temperature - rules.HEAT.threshold),
                    f"{temperature:.0f}°C may cause sweating and irritation",
                ))
            elif temperature < rules.COLD.threshold:
                found.append((
                    "cold", "Cold temperature",
                    rules.COLD.points(rules.COLD.threshold - temperature),
                    f"{temperature:.0f}°C can dry and crack the skin",
                ))

        uv = weather.uv
        if uv is not None and uv > rules.UV_HIGH.threshold:
            found.append((
                "uv", "High UV",
                rules.UV_HIGH.points(uv - rules.UV_HIGH.threshold),
                f"UV index {uv:g} means high sun exposure",
            ))

        aqi = weather.aqi
        if aqi is not None and aqi > rules.AQI_POOR.threshold:
            found.append((
                "air_quality", "Poor air quality",
                rules.AQI_POOR.points(aqi - rules.AQI_POOR.threshold),
                f"AQI {aqi:.0f} may irritate sensitive skin",
            ))

        pollen = weather.pollen
        if pollen is not None and pollen > rules.POLLEN_HIGH.threshold:
            found.append((
                "pollen", "High pollen",
                rules.POLLEN_HIGH.points(pollen - rules.POLLEN_HIGH.threshold),
                f"Pollen level {pollen:g}/10 means high allergen exposure",
            ))

        wind = weather.wind
        if wind is not None and wind > rules.WIND_STRONG.threshold:
            found.append((
                "wind", "Strong wind",
                rules.WIND_STRONG.points(wind - rules.WIND_STRONG.threshold),
                f"{wind:.0f} km/h winds dry the skin and spread allergens",
            ))

        return [
            _Contribution(
                factor=KeyFactor(
                    name=name,
                    category=FactorCategory.ENVIRONMENTAL,
                    impact=int(clamp(points, 0, 100)),
                    description=description,
                ),
                advice=_CONDITION_ADVICE[condition],
                condition=condition,
            )
            for condition, name, points, description in found
        ]

    # ── History factors ──────────────────────────────────────────────────────

    def _history_contributions(self, logs: List[SymptomLog]) -> List[_Contribution]:
        if not logs:
            return []

        contributions: List[_Contribution] = []
        totals = np.array([log.total_symptom_score for log in logs], dtype=float)
        mean = float(totals.mean())

        if mean >= rules.SYMPTOM_MEAN_THRESHOLD:
            impact = min(rules.SYMPTOM_MEAN_CAP, int(round(rules.SYMPTOM_MEAN_WEIGHT * mean)))
            contributions.append(_Contribution(
                factor=KeyFactor(
                    name="Elevated recent symptoms",
                    category=FactorCategory.PHYSIOLOGICAL,
                    impact=impact,
                    description=f"Average itch + redness of {mean:.1f}/8 over {len(logs)} check-in(s)",
                ),
                advice=_ELEVATED_SYMPTOMS_ADVICE,
            ))

        if len(totals) >= 2:
            # logs are newest-first
            half = len(totals) // 2
            newer = float(totals[:half].mean())
            older = float(totals[half:].mean())
            if newer - older > rules.SYMPTOM_RISE_EPSILON:
                contributions.append(_Contribution(
                    factor=KeyFactor(
                        name="Worsening symptom trend",
                        category=FactorCategory.PHYSIOLOGICAL,
                        impact=rules.SYMPTOM_RISE_POINTS,
                        description=f"Recent symptoms average {newer:.1f} versus {older:.1f} before",
                    ),
                    advice=_RISING_SYMPTOMS_ADVICE,
                ))

        medication_rate = sum(1 for log in logs if log.medication_used) / len(logs)
        if medication_rate >= rules.MEDICATION_FREQUENCY_THRESHOLD:
            contributions.append(_Contribution(
                factor=KeyFactor(
                    name="Frequent medication use",
                    category=FactorCategory.BEHAVIORAL,
                    impact=rules.MEDICATION_POINTS,
                    description=f"Medication used on {medication_rate:.0%} of recent check-ins",
                ),
                advice=_MEDICATION_ADVICE,
            ))

        return contributions

    # ── Outputs ──────────────────────────────────────────────────────────────

    def _predict(
        self,
        score: int,
        raw: int,
        environment: List[_Contribution],
        profile: UserProfile,
        logs: List[SymptomLog],
        forecast: Optional[WeatherSnapshot],
    ) -> Prediction:
        if forecast is not None:
            current_env = sum(c.factor.impact for c in environment)
            forecast_env = sum(
                c.factor.impact for c in self._environment_contributions(forecast, profile)
            )
            next24h = int(clamp(raw - current_env + forecast_env, 0, 100))
        else:
            next24h = score

        if logs:
            mean = float(np.mean([log.total_symptom_score for log in logs]))
            historical = mean / rules.SYMPTOM_TOTAL_MAX * 100.0
            next7days = int(round(clamp(
                score + rules.HISTORY_SMOOTHING * (historical - score), 0, 100
            )))
        else:
            next7days = score

        if next7days > score + rules.TRAJECTORY_EPSILON:
            trajectory = Trajectory.WORSENING
        elif next7days < score - rules.TRAJECTORY_EPSILON:
            trajectory = Trajectory.IMPROVING
        else:
            trajectory = Trajectory.STABLE

        return Prediction(next24h=next24h, next7days=next7days, trajectory=trajectory)

    def _recommendations(
        self,
        contributions: List[_Contribution],
        level: RiskLevel,
    ) -> List[Recommendation]:
        candidates: List[Tuple[RecommendationPriority, _Advice, Optional[FactorCategory]]] = []
        seen = set()

        def add(
            priority: RecommendationPriority,
            advice: _Advice,
            category: Optional[FactorCategory] = None,
        ) -> None:
            if advice.text in seen:
                return
            seen.add(advice.text)
            candidates.append((priority, advice, category))

        if level == RiskLevel.HIGH:
            add(RecommendationPriority.HIGH, _HIGH_RISK_ADVICE)

        for c in sorted(contributions, key=lambda c: c.factor.impact, reverse=True):
            add(_priority_for(c.factor.impact), c.advice, c.factor.category)

        if not candidates:
            add(RecommendationPriority.LOW, _BASELINE_ADVICE)

        # stable sort keeps impact order within a priority
        candidates.sort(key=lambda item: _PRIORITY_ORDER[item[0]])

        # every active factor category keeps its strongest advice under the cap
        chosen = set()
        covered = set()
        for index, (_, _, category) in enumerate(candidates):
            if category is not None and category not in covered:
                covered.add(category)
                chosen.add(index)
        for index in range(len(candidates)):
            if len(chosen) >= rules.MAX_RECOMMENDATIONS:
                break
            chosen.add(index)

        return [
            Recommendation(
                priority=priority,
                category=advice.category,
                text=advice.text,
                rationale=advice.rationale,
            )
            for index, (priority, advice, _) in enumerate(candidates)
            if index in chosen
        ]

    @staticmethod
    def _reasoning(score: int, level: RiskLevel, factors: List[KeyFactor]) -> str:
        if not factors:
            return (
                f"Risk score {score}/100 ({level.value}): conditions are within "
                f"comfortable ranges and recent symptoms are settled."
            )
        strongest = ", ".join(f.name for f in factors[:3])
        return (
            f"Risk score {score}/100 ({level.value}) from {len(factors)} contributing "
            f"factor(s); strongest: {strongest}."
        )
