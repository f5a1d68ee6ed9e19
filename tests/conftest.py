"""
Pytest Configuration and Fixtures

Shared fixtures for risk engine tests.
"""
import asyncio
import json
from datetime import date, datetime, timedelta
from typing import Any, List, Optional

import pytest

from dermair.core.base import (
    PollenCount,
    SymptomLog,
    UserPreferences,
    UserProfile,
    WeatherSnapshot,
    RiskLevel,
)


AS_OF = date(2024, 7, 15)


class FakeCompletionProvider:
    """
    Scripted completion provider.

    Each call consumes the next scripted item; the last one repeats.
    Exception instances are raised instead of returned.
    """

    def __init__(self, *responses: Any, delay: float = 0.0):
        self.responses = list(responses) or [""]
        self.delay = delay
        self.prompts: List[str] = []
        self.system_instructions: List[Optional[str]] = []

    async def complete(self, prompt, generation_config=None, system_instruction=None) -> str:
        self.prompts.append(prompt)
        self.system_instructions.append(system_instruction)
        if self.delay:
            await asyncio.sleep(self.delay)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, BaseException):
            raise item
        return item

    @property
    def call_count(self) -> int:
        return len(self.prompts)


@pytest.fixture
def make_provider():
    """Factory for scripted completion providers."""
    return FakeCompletionProvider


@pytest.fixture
def as_of() -> date:
    """Fixed reference day for window-dependent tests."""
    return AS_OF


@pytest.fixture
def benign_weather() -> WeatherSnapshot:
    """Conditions inside every comfortable band."""
    return WeatherSnapshot(
        temperature=21.0,
        humidity=50.0,
        pressure=1013.0,
        uv_index=3.0,
        air_quality_index=40.0,
        pollen_count=PollenCount(tree=2, grass=2, weed=1, overall=2),
        weather_condition="Clear",
        wind_speed=10.0,
        timestamp=datetime(2024, 7, 15, 9, 0),
    )


@pytest.fixture
def harsh_weather() -> WeatherSnapshot:
    """Five independent threshold crossings."""
    return WeatherSnapshot(
        temperature=32.0,
        humidity=80.0,
        pressure=1008.0,
        uv_index=9.0,
        air_quality_index=150.0,
        pollen_count=PollenCount(tree=8, grass=7, weed=6, overall=8),
        weather_condition="Hazy",
        wind_speed=5.0,
        timestamp=datetime(2024, 7, 15, 9, 0),
    )


@pytest.fixture
def profile() -> UserProfile:
    """Profile with a humidity trigger and default alert preferences."""
    return UserProfile.from_dict({
        "id": "user-1",
        "skin_type": "sensitive",
        "triggers": ["High humidity"],
        "severityHistory": [{"date": "2024-06-01", "severity": "moderate"}],
        "preferences": {"notifications": True, "riskThreshold": "medium"},
        "location": {"city": "Mumbai", "country": "IN"},
        "age_range": "25-34",
    })


@pytest.fixture
def plain_profile() -> UserProfile:
    """Profile without triggers or location."""
    return UserProfile(id="user-2", preferences=UserPreferences(risk_threshold=RiskLevel.HIGH))


@pytest.fixture
def make_log():
    """Factory for check-ins `days_ago` days before AS_OF."""
    counter = {"n": 0}

    def _make(
        days_ago: int,
        itch: int = 1,
        redness: int = 1,
        medication: bool = False,
        weather: Optional[WeatherSnapshot] = None,
        user_id: str = "user-1",
    ) -> SymptomLog:
        counter["n"] += 1
        return SymptomLog(
            id=f"log-{counter['n']}",
            user_id=user_id,
            date=AS_OF - timedelta(days=days_ago),
            itch_score=itch,
            redness_score=redness,
            medication_used=medication,
            weather=weather,
        )

    return _make


@pytest.fixture
def valid_risk_payload() -> dict:
    """Well-formed generative assessment."""
    return {
        "riskScore": 62,
        "riskLevel": "high",
        "confidence": 0.8,
        "reasoning": "Humid, hot conditions combined with a declared humidity trigger.",
        "keyFactors": [
            {"name": "Humidity", "category": "environmental", "impact": 30, "description": "80% humidity"},
            {"name": "Personal trigger", "category": "Clinical", "impact": 45, "description": "High humidity"},
        ],
        "recommendations": [
            {"priority": "high", "category": "preventive", "recommendation": "Use a light moisturizer",
             "rationale": "Humidity increases sweating"},
        ],
        "predictions": {"next24h": 60, "next7days": 50, "trajectory": "improving"},
    }


@pytest.fixture
def valid_risk_json(valid_risk_payload) -> str:
    return json.dumps(valid_risk_payload)
