"""
Unit Tests for the Generative Risk Strategy

Every provider failure mode must come back as Unavailable.
"""
import asyncio
import json

import pytest

from dermair.core.base import AssessmentStrategy, Ok, Unavailable
from dermair.core.llm import GenerativeRiskStrategy
from dermair.core.risk import DeterministicRiskScorer
from dermair.utils import LLMProviderError


class TestTryScore:
    """Tests for GenerativeRiskStrategy.try_score."""

    async def test_valid_response(self, make_provider, valid_risk_json, harsh_weather, profile):
        provider = make_provider(valid_risk_json)
        strategy = GenerativeRiskStrategy(provider, timeout_seconds=1.0)

        outcome = await strategy.try_score(harsh_weather, profile, [])

        assert isinstance(outcome, Ok)
        assert outcome.result.strategy == AssessmentStrategy.GENERATIVE
        assert outcome.result.risk_score == 62
        assert provider.call_count == 1
        assert provider.system_instructions[0] == GenerativeRiskStrategy.SYSTEM_INSTRUCTION

    async def test_prose_wrapped_response(self, make_provider, valid_risk_json, harsh_weather, profile):
        strategy = GenerativeRiskStrategy(make_provider(f"Analysis below.\n{valid_risk_json}\nStay safe!"))
        assert isinstance(await strategy.try_score(harsh_weather, profile), Ok)

    @pytest.mark.parametrize("response", [
        "The risk is high today.",
        '{"riskScore": 40',
        json.dumps({"riskScore": 40}),
    ])
    async def test_unusable_response(self, make_provider, harsh_weather, profile, response):
        outcome = await GenerativeRiskStrategy(make_provider(response)).try_score(harsh_weather, profile)
        assert isinstance(outcome, Unavailable)
        assert outcome.reason.startswith("invalid response")

    async def test_out_of_range_response(self, make_provider, valid_risk_payload, harsh_weather, profile):
        valid_risk_payload["riskScore"] = 140
        strategy = GenerativeRiskStrategy(make_provider(json.dumps(valid_risk_payload)))
        assert isinstance(await strategy.try_score(harsh_weather, profile), Unavailable)

    @pytest.mark.parametrize("error", [
        LLMProviderError("quota exceeded", provider="gemini"),
        ConnectionError("reset by peer"),
        ValueError("unexpected"),
    ])
    async def test_provider_errors(self, make_provider, harsh_weather, profile, error):
        outcome = await GenerativeRiskStrategy(make_provider(error)).try_score(harsh_weather, profile)
        assert isinstance(outcome, Unavailable)
        assert outcome.reason.startswith("provider error")

    async def test_timeout(self, make_provider, valid_risk_json, harsh_weather, profile):
        strategy = GenerativeRiskStrategy(make_provider(valid_risk_json, delay=1.0), timeout_seconds=0.05)
        outcome = await strategy.try_score(harsh_weather, profile)
        assert outcome == Unavailable(reason="timeout")

    async def test_cancellation_propagates(self, make_provider, valid_risk_json, harsh_weather, profile):
        strategy = GenerativeRiskStrategy(make_provider(valid_risk_json, delay=5.0), timeout_seconds=10.0)
        task = asyncio.create_task(strategy.try_score(harsh_weather, profile))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    def test_timeout_must_be_positive(self, make_provider):
        with pytest.raises(ValueError):
            GenerativeRiskStrategy(make_provider(""), timeout_seconds=0)


class TestPrompts:
    """Tests for prompt construction."""

    def test_risk_prompt_contents(self, make_provider, harsh_weather, profile, make_log):
        strategy = GenerativeRiskStrategy(make_provider(""), history_days=7)
        logs = [make_log(1, itch=4, redness=2, medication=True), make_log(20, itch=5, redness=3)]

        prompt = strategy.build_risk_prompt(harsh_weather, profile, logs)

        assert "High humidity" in prompt
        assert "Humidity: 80%" in prompt
        assert "itch 4/5, redness 2/3, medication used" in prompt
        # outside the 7-day window
        assert "itch 5/5" not in prompt
        assert "Days with medication: 1" in prompt
        assert '"riskScore"' in prompt
        assert "minimal|low|moderate|high|severe" in prompt
        assert "Summer" in prompt

    def test_risk_prompt_without_history(self, make_provider, benign_weather, plain_profile):
        prompt = GenerativeRiskStrategy(make_provider("")).build_risk_prompt(benign_weather, plain_profile, [])
        assert "No recent check-ins recorded" in prompt
        assert "Known Triggers: none specified" in prompt


class TestTreatmentPlan:
    """Tests for the treatment plan side-channel."""

    async def test_plan_text(self, make_provider, harsh_weather, profile):
        provider = make_provider("  - Moisturize twice daily\n")
        assessment = DeterministicRiskScorer().score(harsh_weather, profile)

        plan = await GenerativeRiskStrategy(provider).generate_treatment_plan(assessment, profile)

        assert plan == "- Moisturize twice daily"
        assert f"({assessment.risk_score}/100)" in provider.prompts[0]

    @pytest.mark.parametrize("response", [RuntimeError("boom"), "   "])
    async def test_plan_failure_returns_none(self, make_provider, harsh_weather, profile, response):
        assessment = DeterministicRiskScorer().score(harsh_weather, profile)
        strategy = GenerativeRiskStrategy(make_provider(response))
        assert await strategy.generate_treatment_plan(assessment, profile) is None

    async def test_plan_timeout_returns_none(self, make_provider, harsh_weather, profile):
        assessment = DeterministicRiskScorer().score(harsh_weather, profile)
        strategy = GenerativeRiskStrategy(make_provider("plan", delay=1.0), timeout_seconds=0.05)
        assert await strategy.generate_treatment_plan(assessment, profile) is None
