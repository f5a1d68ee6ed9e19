"""
Integration Tests for the FastAPI application

Tests for API endpoints: risk assessment, trend analytics, per-user routes
and error mapping. Uses async httpx for ASGI app testing.
"""
from datetime import date, timedelta

import httpx
import pytest

from dermair.config import Settings
from dermair.core.base import SymptomLog, UserProfile
from dermair.core.llm import GenerativeRiskStrategy
from dermair.core.risk import DeterministicRiskScorer, RiskAssessmentOrchestrator
from dermair.main import create_app
from dermair.services import AssessmentService, InMemoryProfileStore, StaticWeatherProvider


HARSH_WEATHER = {
    "temperature": 32,
    "humidity": 80,
    "uv_index": 9,
    "air_quality_index": 150,
    "pollen_count": {"tree": 8, "grass": 7, "weed": 6, "overall": 8},
    "weather_condition": "Hazy",
}

PROFILE = {
    "id": "user-1",
    "skin_type": "sensitive",
    "triggers": ["High humidity"],
    "severityHistory": [{"date": "2024-06-01", "severity": "moderate"}],
    "preferences": {"notifications": True, "riskThreshold": "medium"},
    "location": {"city": "Mumbai", "country": "IN"},
}


@pytest.fixture
def settings() -> Settings:
    return Settings(llm_enabled=False, gemini_api_key=None, log_level="WARNING")


@pytest.fixture
def store(harsh_weather) -> InMemoryProfileStore:
    store = InMemoryProfileStore()
    store.add_profile(UserProfile.from_dict(PROFILE))
    today = date.today()
    for days_ago in range(12):
        store.add_log(
            SymptomLog(
                id=f"log-{days_ago}",
                user_id="user-1",
                date=today - timedelta(days=days_ago),
                itch_score=4 if days_ago < 5 else 1,
                redness_score=2 if days_ago < 5 else 0,
                medication_used=days_ago % 2 == 0,
                weather=harsh_weather if days_ago < 5 else None,
            )
        )
    return store


@pytest.fixture
def service(store, harsh_weather) -> AssessmentService:
    return AssessmentService(
        orchestrator=RiskAssessmentOrchestrator(DeterministicRiskScorer()),
        store=store,
        weather_provider=StaticWeatherProvider({"Mumbai": harsh_weather}),
    )


@pytest.fixture
async def async_client(settings, service):
    """Create async test client."""
    app = create_app(settings=settings, service=service)
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client


@pytest.mark.asyncio
class TestHealthEndpoints:
    """Tests for health check endpoints."""

    async def test_root_endpoint(self, async_client):
        response = await async_client.get("/")
        assert response.status_code == 200

        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data
        assert data["generative_strategy"] is False

    async def test_health_endpoint(self, async_client):
        response = await async_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
class TestRiskEndpoint:
    """Tests for POST /api/v1/risk/assess."""

    async def test_harsh_day(self, async_client):
        response = await async_client.post("/api/v1/risk/assess", json={
            "weather": HARSH_WEATHER,
            "profile": PROFILE,
            "recent_logs": [],
        })
        assert response.status_code == 200

        data = response.json()
        assert data["risk_level"] == "high"
        assert data["risk_score"] >= 50
        assert data["strategy"] == "deterministic"
        assert data["treatment_plan"] is None
        assert {"next24h", "next7days", "trajectory"} <= set(data["prediction"])
        assert len(data["key_factors"]) == 6

    async def test_with_logs(self, async_client):
        today = date.today()
        logs = [
            {"date": (today - timedelta(days=i)).isoformat(), "itch_score": 5, "redness_score": 3,
             "medication_used": True}
            for i in range(4)
        ]
        response = await async_client.post("/api/v1/risk/assess", json={
            "weather": {"temperature": 20, "humidity": 50},
            "profile": {"id": "u"},
            "recent_logs": logs,
        })
        assert response.status_code == 200
        names = [f["name"] for f in response.json()["key_factors"]]
        assert "Elevated recent symptoms" in names
        assert "Frequent medication use" in names

    async def test_forecast_drives_next24h(self, async_client):
        response = await async_client.post("/api/v1/risk/assess", json={
            "weather": {"temperature": 20, "humidity": 50},
            "profile": {"id": "u"},
            "forecast": HARSH_WEATHER,
        })
        assert response.status_code == 200

        data = response.json()
        assert data["risk_score"] == 0
        assert data["prediction"]["next24h"] > 0

    async def test_missing_weather_is_400(self, async_client):
        response = await async_client.post("/api/v1/risk/assess", json={"profile": PROFILE})
        assert response.status_code == 400

        data = response.json()
        assert data["error"] == "INPUT_ERROR"
        assert data["details"]["field"] == "weather"

    async def test_missing_profile_is_400(self, async_client):
        response = await async_client.post("/api/v1/risk/assess", json={"weather": HARSH_WEATHER})
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "profile"

    async def test_invalid_skin_type_is_422(self, async_client):
        response = await async_client.post("/api/v1/risk/assess", json={
            "weather": HARSH_WEATHER,
            "profile": {"id": "u", "skin_type": "scaly"},
        })
        assert response.status_code == 422


@pytest.mark.asyncio
class TestGenerativeEndpoint:
    """Generative strategy wired through the API with a scripted provider."""

    async def test_generative_result_and_plan(self, settings, store, make_provider, valid_risk_json):
        provider = make_provider(valid_risk_json, "Moisturize twice daily.")
        service = AssessmentService(
            orchestrator=RiskAssessmentOrchestrator(
                DeterministicRiskScorer(), GenerativeRiskStrategy(provider)
            ),
            store=store,
        )
        app = create_app(settings=settings, service=service)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/risk/assess", json={
                "weather": HARSH_WEATHER,
                "profile": PROFILE,
                "include_treatment_plan": True,
            })

        assert response.status_code == 200
        data = response.json()
        assert data["strategy"] == "generative"
        assert data["risk_score"] == 62
        assert data["treatment_plan"] == "Moisturize twice daily."

    async def test_provider_failure_falls_back(self, settings, store, make_provider):
        provider = make_provider(ConnectionError("offline"))
        service = AssessmentService(
            orchestrator=RiskAssessmentOrchestrator(
                DeterministicRiskScorer(), GenerativeRiskStrategy(provider)
            ),
            store=store,
        )
        app = create_app(settings=settings, service=service)

        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as client:
            response = await client.post("/api/v1/risk/assess", json={
                "weather": HARSH_WEATHER, "profile": PROFILE,
            })

        assert response.status_code == 200
        assert response.json()["strategy"] == "deterministic"


@pytest.mark.asyncio
class TestTrendEndpoints:
    """Tests for trend analytics routes."""

    async def test_trends_from_logs(self, async_client):
        as_of = date(2024, 7, 15)
        logs = [
            {"date": (as_of - timedelta(days=d)).isoformat(), "itch_score": 4, "redness_score": 2,
             "weather_data": {"temperature": 30, "humidity": 80}}
            for d in (0, 1, 2, 3, 4, 5, 9, 10, 11, 12)
        ]
        response = await async_client.post("/api/v1/analytics/trends", json={
            "logs": logs, "window_days": 30, "as_of": as_of.isoformat(),
        })
        assert response.status_code == 200

        data = response.json()
        assert [w["log_count"] for w in data["weekly_trends"]] == [4, 6]
        assert data["weather_correlations"]["temperature"] == 100
        assert data["weather_correlations"]["uv"] == 0
        assert data["overview"]["total_days"] == 10

    async def test_empty_trends(self, async_client):
        response = await async_client.post("/api/v1/analytics/trends", json={"logs": []})
        assert response.status_code == 200

        data = response.json()
        assert data["weekly_trends"] == []
        assert set(data["weather_correlations"].values()) == {0}

    async def test_user_trends(self, async_client):
        response = await async_client.get("/api/v1/users/user-1/trends", params={"days": 30})
        assert response.status_code == 200

        data = response.json()
        assert data["overview"]["total_days"] == 12
        assert data["weather_correlations"]["humidity"] == 100
        assert len(data["recent_activity"]) == 10

    async def test_unknown_user_is_404(self, async_client):
        response = await async_client.get("/api/v1/users/nobody/trends")
        assert response.status_code == 404
        assert response.json()["error"] == "PROFILE_NOT_FOUND"

    async def test_store_down_is_503(self, async_client, store):
        store.available = False
        response = await async_client.get("/api/v1/users/user-1/trends")
        assert response.status_code == 503
        assert response.json()["error"] == "DATA_STORE_UNAVAILABLE"


@pytest.mark.asyncio
class TestUserAssessEndpoint:
    """Tests for POST /api/v1/users/{user_id}/assess."""

    async def test_assess_stored_user(self, async_client):
        response = await async_client.post("/api/v1/users/user-1/assess", json={})
        assert response.status_code == 200

        data = response.json()
        assert data["location"] == "Mumbai"
        assert data["assessment"]["risk_level"] == "high"
        assert data["alert"]["level"] == "high"

    async def test_unknown_location_is_503(self, async_client):
        response = await async_client.post("/api/v1/users/user-1/assess", json={"location": "Atlantis"})
        assert response.status_code == 503
        assert response.json()["error"] == "WEATHER_UNAVAILABLE"
