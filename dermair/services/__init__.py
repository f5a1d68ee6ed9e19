"""
Services Package - collaborator interfaces and the assessment facade
"""
from .providers import InMemoryProfileStore, ProfileStore, StaticWeatherProvider, WeatherProvider
from .assessment import AssessmentService, UserAssessment, build_assessment_service

__all__ = [
    "AssessmentService",
    "UserAssessment",
    "build_assessment_service",
    "ProfileStore",
    "WeatherProvider",
    "InMemoryProfileStore",
    "StaticWeatherProvider",
]
