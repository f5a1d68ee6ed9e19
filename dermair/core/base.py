"""
Risk Engine Base Types

Value objects shared by the scorer, the generative strategy, the orchestrator
and the trend analyzer. Inputs (weather, profile, check-ins) are produced by
external collaborators; the engine only reads them.

JSON field names follow the wire format used by the collaborators
(`uv_index`, `pollen_count`, `weather_data`, `severityHistory`, ...), so
`from_dict()` / `to_dict()` round-trip the stored documents.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# ── Enums ────────────────────────────────────────────────────────────────────

class SkinType(str, Enum):
    DRY = "dry"
    OILY = "oily"
    COMBINATION = "combination"
    SENSITIVE = "sensitive"


class Severity(str, Enum):
    MILD = "mild"
    MODERATE = "moderate"
    SEVERE = "severe"


class RiskLevel(str, Enum):
    """
    Canonical, ordered risk scale.

    The generative path uses all five levels (`from_score`). The rule-based
    path only produces LOW / MODERATE / HIGH (`from_score_coarse`), so
    MINIMAL and SEVERE are reachable through the generative path only.
    """
    MINIMAL = "minimal"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    SEVERE = "severe"

    @property
    def rank(self) -> int:
        return _RISK_LEVEL_ORDER.index(self)

    @classmethod
    def from_score(cls, score: float) -> "RiskLevel":
        """Five-level mapping of a 0-100 score."""
        if score < 10:
            return cls.MINIMAL
        elif score < 25:
            return cls.LOW
        elif score < 50:
            return cls.MODERATE
        elif score < 75:
            return cls.HIGH
        return cls.SEVERE

    @classmethod
    def from_score_coarse(cls, score: float) -> "RiskLevel":
        """Three-bucket mapping of a 0-100 score (rule-based path)."""
        if score < 25:
            return cls.LOW
        elif score < 50:
            return cls.MODERATE
        return cls.HIGH


_RISK_LEVEL_ORDER = [
    RiskLevel.MINIMAL,
    RiskLevel.LOW,
    RiskLevel.MODERATE,
    RiskLevel.HIGH,
    RiskLevel.SEVERE,
]


class FactorCategory(str, Enum):
    ENVIRONMENTAL = "environmental"
    PHYSIOLOGICAL = "physiological"
    BEHAVIORAL = "behavioral"
    CLINICAL = "clinical"


class RecommendationPriority(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationCategory(str, Enum):
    IMMEDIATE = "immediate"
    PREVENTIVE = "preventive"
    LIFESTYLE = "lifestyle"
    MEDICAL = "medical"


class Trajectory(str, Enum):
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class AssessmentStrategy(str, Enum):
    GENERATIVE = "generative"
    DETERMINISTIC = "deterministic"


# ── Parsing helpers ──────────────────────────────────────────────────────────

def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _parse_date(value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        if len(text) > 10:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        return date.fromisoformat(text)
    raise ValueError(f"Unrecognised date value: {value!r}")


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


# ── Weather ──────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class PollenCount:
    """Pollen levels on a 0-10 scale."""
    tree: Optional[float] = None
    grass: Optional[float] = None
    weed: Optional[float] = None
    overall: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PollenCount":
        data = data or {}
        return cls(
            tree=_opt_float(data.get("tree")),
            grass=_opt_float(data.get("grass")),
            weed=_opt_float(data.get("weed")),
            overall=_opt_float(data.get("overall")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tree": self.tree,
            "grass": self.grass,
            "weed": self.weed,
            "overall": self.overall,
        }


@dataclass(frozen=True)
class WeatherSnapshot:
    """
    Environmental conditions at capture time.

    Every reading is optional; a missing reading is treated as neutral by the
    scorer and as "not exposed" by the trend analyzer.
    """
    temperature: Optional[float] = None         # °C
    humidity: Optional[float] = None            # %, 0-100
    pressure: Optional[float] = None            # hPa
    uv_index: Optional[float] = None            # 0-11+
    air_quality_index: Optional[float] = None   # >= 0
    pollen_count: PollenCount = field(default_factory=PollenCount)
    weather_condition: str = ""
    wind_speed: Optional[float] = None          # km/h
    timestamp: Optional[datetime] = None

    # Clamped accessors used by the scorer and analyzer
    @property
    def humidity_pct(self) -> Optional[float]:
        return None if self.humidity is None else clamp(self.humidity, 0.0, 100.0)

    @property
    def uv(self) -> Optional[float]:
        return None if self.uv_index is None else max(0.0, self.uv_index)

    @property
    def aqi(self) -> Optional[float]:
        return None if self.air_quality_index is None else max(0.0, self.air_quality_index)

    @property
    def pollen(self) -> Optional[float]:
        overall = self.pollen_count.overall
        return None if overall is None else clamp(overall, 0.0, 10.0)

    @property
    def wind(self) -> Optional[float]:
        return None if self.wind_speed is None else max(0.0, self.wind_speed)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeatherSnapshot":
        return cls(
            temperature=_opt_float(data.get("temperature")),
            humidity=_opt_float(data.get("humidity")),
            pressure=_opt_float(data.get("pressure")),
            uv_index=_opt_float(data.get("uv_index")),
            air_quality_index=_opt_float(data.get("air_quality_index")),
            pollen_count=PollenCount.from_dict(data.get("pollen_count")),
            weather_condition=data.get("weather_condition") or "",
            wind_speed=_opt_float(data.get("wind_speed")),
            timestamp=_parse_datetime(data.get("timestamp")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "pressure": self.pressure,
            "uv_index": self.uv_index,
            "air_quality_index": self.air_quality_index,
            "pollen_count": self.pollen_count.to_dict(),
            "weather_condition": self.weather_condition,
            "wind_speed": self.wind_speed,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


# ── User profile ─────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SeverityEntry:
    date: date
    severity: Severity


@dataclass(frozen=True)
class UserPreferences:
    notifications: bool = True
    risk_threshold: RiskLevel = RiskLevel.MODERATE   # one of low / moderate / high


@dataclass(frozen=True)
class UserLocation:
    city: str = ""
    country: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None


@dataclass(frozen=True)
class UserProfile:
    """Static user context created at onboarding."""
    id: str
    skin_type: Optional[SkinType] = None
    triggers: List[str] = field(default_factory=list)
    severity_history: List[SeverityEntry] = field(default_factory=list)
    preferences: UserPreferences = field(default_factory=UserPreferences)
    location: Optional[UserLocation] = None
    age_range: Optional[str] = None

    @property
    def latest_severity(self) -> Optional[Severity]:
        if not self.severity_history:
            return None
        return max(self.severity_history, key=lambda e: e.date).severity

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        skin_type = data.get("skin_type")
        # Older documents store triggers under known_triggers
        triggers = data.get("triggers") or data.get("known_triggers") or []

        history = [
            SeverityEntry(date=_parse_date(entry["date"]), severity=Severity(entry["severity"]))
            for entry in data.get("severityHistory", data.get("severity_history", [])) or []
        ]

        prefs = data.get("preferences") or {}
        threshold = prefs.get("riskThreshold", prefs.get("risk_threshold", "moderate"))
        if threshold == "medium":
            threshold = "moderate"
        preferences = UserPreferences(
            notifications=bool(prefs.get("notifications", True)),
            risk_threshold=RiskLevel(threshold),
        )

        location = None
        loc = data.get("location")
        if isinstance(loc, dict):
            location = UserLocation(
                city=loc.get("city", ""),
                country=loc.get("country", ""),
                latitude=_opt_float(loc.get("latitude")),
                longitude=_opt_float(loc.get("longitude")),
                timezone=loc.get("timezone"),
            )
        elif isinstance(loc, str) and loc:
            location = UserLocation(city=loc)

        return cls(
            id=str(data.get("id", "")),
            skin_type=SkinType(skin_type) if skin_type else None,
            triggers=[str(t) for t in triggers],
            severity_history=history,
            preferences=preferences,
            location=location,
            age_range=data.get("age_range"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "skin_type": self.skin_type.value if self.skin_type else None,
            "triggers": list(self.triggers),
            "severityHistory": [
                {"date": e.date.isoformat(), "severity": e.severity.value}
                for e in self.severity_history
            ],
            "preferences": {
                "notifications": self.preferences.notifications,
                "riskThreshold": self.preferences.risk_threshold.value,
            },
            "location": None if self.location is None else {
                "city": self.location.city,
                "country": self.location.country,
                "latitude": self.location.latitude,
                "longitude": self.location.longitude,
                "timezone": self.location.timezone,
            },
            "age_range": self.age_range,
        }


# ── Symptom log ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class SymptomLog:
    """One daily check-in."""
    id: str
    user_id: str
    date: date
    itch_score: int                 # 0-5
    redness_score: int              # 0-3
    medication_used: bool = False
    notes: Optional[str] = None
    weather: Optional[WeatherSnapshot] = None
    created_at: Optional[datetime] = None

    @property
    def itch(self) -> int:
        return int(clamp(self.itch_score, 0, 5))

    @property
    def redness(self) -> int:
        return int(clamp(self.redness_score, 0, 3))

    @property
    def total_symptom_score(self) -> int:
        return self.itch + self.redness

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SymptomLog":
        weather = data.get("weather_data")
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("user_id", "")),
            date=_parse_date(data["date"]),
            itch_score=int(data.get("itch_score", 0)),
            redness_score=int(data.get("redness_score", 0)),
            medication_used=bool(data.get("medication_used", False)),
            notes=data.get("notes"),
            weather=WeatherSnapshot.from_dict(weather) if weather else None,
            created_at=_parse_datetime(data.get("created_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "date": self.date.isoformat(),
            "itch_score": self.itch_score,
            "redness_score": self.redness_score,
            "medication_used": self.medication_used,
            "notes": self.notes,
            "weather_data": self.weather.to_dict() if self.weather else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


# ── Assessment result ────────────────────────────────────────────────────────

@dataclass
class KeyFactor:
    name: str
    category: FactorCategory
    impact: int                     # 0-100
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "impact": self.impact,
            "description": self.description,
        }


@dataclass
class Recommendation:
    priority: RecommendationPriority
    category: RecommendationCategory
    text: str
    rationale: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "priority": self.priority.value,
            "category": self.category.value,
            "text": self.text,
            "rationale": self.rationale,
        }


@dataclass
class Prediction:
    next24h: int
    next7days: int
    trajectory: Trajectory

    def to_dict(self) -> Dict[str, Any]:
        return {
            "next24h": self.next24h,
            "next7days": self.next7days,
            "trajectory": self.trajectory.value,
        }


@dataclass
class RiskAssessmentResult:
    """Single risk judgement, whichever strategy produced it."""
    risk_score: int
    risk_level: RiskLevel
    reasoning: str
    prediction: Prediction
    key_factors: List[KeyFactor] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    confidence: Optional[float] = None
    strategy: AssessmentStrategy = AssessmentStrategy.DETERMINISTIC
    treatment_plan: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "risk_score": self.risk_score,
            "risk_level": self.risk_level.value,
            "confidence": None if self.confidence is None else round(self.confidence, 3),
            "reasoning": self.reasoning,
            "key_factors": [f.to_dict() for f in self.key_factors],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "prediction": self.prediction.to_dict(),
            "strategy": self.strategy.value,
            "treatment_plan": self.treatment_plan,
        }


# ── Strategy outcome ─────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Ok:
    """A strategy produced a usable result."""
    result: RiskAssessmentResult


@dataclass(frozen=True)
class Unavailable:
    """A strategy could not produce a result; `reason` is for logs only."""
    reason: str


StrategyOutcome = Union[Ok, Unavailable]
