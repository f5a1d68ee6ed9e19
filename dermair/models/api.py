"""
Risk Engine API Models
"""
from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from dermair.core.base import SymptomLog, UserProfile, WeatherSnapshot


# ---- Inputs ----

class PollenInput(BaseModel):
    """Pollen levels, 0-10."""
    tree: Optional[float] = None
    grass: Optional[float] = None
    weed: Optional[float] = None
    overall: Optional[float] = None


class WeatherInput(BaseModel):
    """Current environmental conditions."""
    temperature: Optional[float] = Field(default=None, description="°C")
    humidity: Optional[float] = Field(default=None, description="Relative humidity %")
    pressure: Optional[float] = Field(default=None, description="hPa")
    uv_index: Optional[float] = None
    air_quality_index: Optional[float] = None
    pollen_count: PollenInput = Field(default_factory=PollenInput)
    weather_condition: str = ""
    wind_speed: Optional[float] = Field(default=None, description="km/h")
    timestamp: Optional[datetime] = None

    def to_domain(self) -> WeatherSnapshot:
        return WeatherSnapshot.from_dict(self.model_dump())


class SeverityEntryInput(BaseModel):
    date: date
    severity: Literal["mild", "moderate", "severe"]


class PreferencesInput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notifications: bool = True
    risk_threshold: Literal["low", "medium", "moderate", "high"] = Field(
        default="moderate", alias="riskThreshold"
    )


class LocationInput(BaseModel):
    city: str = ""
    country: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    timezone: Optional[str] = None


class ProfileInput(BaseModel):
    """User profile as stored at onboarding."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default="ANONYMOUS")
    skin_type: Optional[Literal["dry", "oily", "combination", "sensitive"]] = None
    triggers: List[str] = Field(default_factory=list)
    severity_history: List[SeverityEntryInput] = Field(default_factory=list, alias="severityHistory")
    preferences: PreferencesInput = Field(default_factory=PreferencesInput)
    location: Optional[LocationInput] = None
    age_range: Optional[str] = None

    def to_domain(self) -> UserProfile:
        data = self.model_dump()
        data["preferences"] = {
            "notifications": self.preferences.notifications,
            "riskThreshold": self.preferences.risk_threshold,
        }
        return UserProfile.from_dict(data)


class SymptomLogInput(BaseModel):
    """One daily check-in."""
    id: str = ""
    user_id: str = ""
    date: date
    itch_score: int = Field(default=0, description="0-5")
    redness_score: int = Field(default=0, description="0-3")
    medication_used: bool = False
    notes: Optional[str] = None
    weather_data: Optional[WeatherInput] = None
    created_at: Optional[datetime] = None

    def to_domain(self) -> SymptomLog:
        return SymptomLog.from_dict(self.model_dump())


class RiskAssessmentRequest(BaseModel):
    """Request for a risk assessment. Missing weather or profile is rejected with 400."""
    weather: Optional[WeatherInput] = None
    profile: Optional[ProfileInput] = None
    recent_logs: List[SymptomLogInput] = Field(default_factory=list)
    include_treatment_plan: bool = Field(default=False, description="Also request a free-text care plan")
    forecast: Optional[WeatherInput] = Field(default=None, description="Next-day conditions for the 24h prediction")


class TrendRequest(BaseModel):
    """Request for trend analysis over supplied check-ins."""
    logs: List[SymptomLogInput] = Field(default_factory=list)
    window_days: int = Field(default=30, ge=1, le=365)
    as_of: Optional[date] = Field(default=None, description="Reference day, defaults to today")


class UserAssessmentRequest(BaseModel):
    """Request to assess a stored user."""
    location: Optional[str] = Field(default=None, description="City or 'lat,lon'; defaults to profile city")
    include_treatment_plan: bool = False


# ---- Outputs ----

class KeyFactorResponse(BaseModel):
    name: str
    category: str
    impact: int
    description: str = ""


class RecommendationResponse(BaseModel):
    priority: str
    category: str
    text: str
    rationale: str = ""


class PredictionResponse(BaseModel):
    next24h: int
    next7days: int
    trajectory: str


class RiskAssessmentResponse(BaseModel):
    """Risk assessment, tagged with the strategy that produced it."""
    risk_score: int
    risk_level: str
    confidence: Optional[float] = None
    reasoning: str
    key_factors: List[KeyFactorResponse] = []
    recommendations: List[RecommendationResponse] = []
    prediction: PredictionResponse
    strategy: str
    treatment_plan: Optional[str] = None


class RiskAlertResponse(BaseModel):
    user_id: str
    title: str
    body: str
    level: str
    score: int
    factors: List[str] = []


class UserAssessmentResponse(BaseModel):
    user_id: str
    location: str
    weather: Dict[str, Any]
    assessment: RiskAssessmentResponse
    alert: Optional[RiskAlertResponse] = None


class TrendOverviewResponse(BaseModel):
    avg_itch: float
    avg_redness: float
    total_days: int
    medication_days: int
    medication_usage_rate: int


class WeeklyTrendResponse(BaseModel):
    week: int
    week_start: str
    week_end: str
    avg_itch: float
    avg_redness: float
    log_count: int
    medication_days: int


class WeatherCorrelationResponse(BaseModel):
    temperature: int
    humidity: int
    uv: int
    pollen: int


class TrendReportResponse(BaseModel):
    window_days: int
    as_of: str
    overview: TrendOverviewResponse
    weekly_trends: List[WeeklyTrendResponse]
    weather_correlations: WeatherCorrelationResponse
    recent_activity: List[Dict[str, Any]]


class HealthResponse(BaseModel):
    """Health status response."""
    status: str
    version: str
    uptime_seconds: float
    timestamp: str
    generative_strategy: bool
    assessments: Dict[str, Any] = {}
