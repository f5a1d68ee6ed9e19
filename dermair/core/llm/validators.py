"""
LLM Response Validators

Validates the generative model's risk assessment for structural correctness
and declared numeric ranges, and converts it into a RiskAssessmentResult.
Any failure yields an invalid ValidationResult; nothing here raises.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Annotated, List, Literal, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

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
    Trajectory,
)
from dermair.utils import get_logger
from .json_extraction import extract_first_json_object

logger = get_logger(__name__)


def _lower(value):
    return value.strip().lower() if isinstance(value, str) else value


# Models vary in casing ("High", "MODERATE"); enums are matched case-insensitively
FactorCategoryName = Annotated[
    Literal["environmental", "physiological", "behavioral", "clinical"], BeforeValidator(_lower)
]
PriorityName = Annotated[Literal["critical", "high", "medium", "low"], BeforeValidator(_lower)]
RecommendationCategoryName = Annotated[
    Literal["immediate", "preventive", "lifestyle", "medical"], BeforeValidator(_lower)
]
TrajectoryName = Annotated[Literal["improving", "stable", "worsening"], BeforeValidator(_lower)]
RiskLevelName = Annotated[
    Literal["minimal", "low", "moderate", "high", "severe"], BeforeValidator(_lower)
]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class KeyFactorPayload(_Payload):
    name: str = Field(min_length=1)
    category: FactorCategoryName
    impact: float = Field(ge=0, le=100)
    description: str = ""


class RecommendationPayload(_Payload):
    priority: PriorityName
    category: RecommendationCategoryName
    recommendation: str = Field(min_length=1)
    rationale: str = ""


class PredictionPayload(_Payload):
    next24h: float = Field(ge=0, le=100)
    next7days: float = Field(ge=0, le=100)
    trajectory: TrajectoryName


class RiskAnalysisPayload(_Payload):
    """Shape the model is asked to return."""
    riskScore: float = Field(ge=0, le=100)
    riskLevel: RiskLevelName
    confidence: float = Field(ge=0, le=1)
    reasoning: str = ""
    keyFactors: List[KeyFactorPayload] = Field(default_factory=list)
    recommendations: List[RecommendationPayload] = Field(default_factory=list)
    predictions: PredictionPayload


@dataclass
class ValidationResult:
    """Result of validating a model response."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    result: Optional[RiskAssessmentResult] = None

    def __bool__(self) -> bool:
        return self.is_valid


class RiskResponseValidator:
    """
    Validates generative risk assessments.

    Checks:
    1. Extraction: a balanced JSON object exists in the text
    2. Syntax: it parses as JSON
    3. Shape and ranges: required fields present, numbers within bounds
    """

    def validate(self, text: str) -> ValidationResult:
        raw = extract_first_json_object(text)
        if raw is None:
            return self._invalid("No JSON object found in model response")

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            return self._invalid(f"Malformed JSON: {e.msg} at position {e.pos}")

        try:
            payload = RiskAnalysisPayload.model_validate(data)
        except ValidationError as e:
            errors = [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]
            return self._invalid(*errors)

        return ValidationResult(is_valid=True, result=self._to_result(payload))

    @staticmethod
    def _invalid(*errors: str) -> ValidationResult:
        logger.warning(f"Generative risk response rejected: {list(errors)}")
        return ValidationResult(is_valid=False, errors=list(errors))

    @staticmethod
    def _to_result(payload: RiskAnalysisPayload) -> RiskAssessmentResult:
        score = int(round(payload.riskScore))

        # Level is re-derived so score and level can never disagree
        level = RiskLevel.from_score(score)
        if level.value != payload.riskLevel:
            logger.info(
                f"Model level '{payload.riskLevel}' disagrees with score {score}; "
                f"using '{level.value}'"
            )

        factors = sorted(
            (
                KeyFactor(
                    name=f.name,
                    category=FactorCategory(f.category),
                    impact=int(round(f.impact)),
                    description=f.description,
                )
                for f in payload.keyFactors
            ),
            key=lambda f: f.impact,
            reverse=True,
        )
        recommendations = [
            Recommendation(
                priority=RecommendationPriority(r.priority),
                category=RecommendationCategory(r.category),
                text=r.recommendation,
                rationale=r.rationale,
            )
            for r in payload.recommendations
        ]

        return RiskAssessmentResult(
            risk_score=score,
            risk_level=level,
            confidence=payload.confidence,
            reasoning=payload.reasoning,
            key_factors=factors,
            recommendations=recommendations,
            prediction=Prediction(
                next24h=int(round(payload.predictions.next24h)),
                next7days=int(round(payload.predictions.next7days)),
                trajectory=Trajectory(payload.predictions.trajectory),
            ),
            strategy=AssessmentStrategy.GENERATIVE,
        )


def validate_risk_payload(text: str) -> ValidationResult:
    """Module-level convenience wrapper around RiskResponseValidator."""
    return RiskResponseValidator().validate(text)
