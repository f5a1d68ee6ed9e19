"""
Utilities Package - Logging and Exception Handling
"""
from .logging import get_logger, setup_logging
from .exceptions import (
    DermAirError,
    AssessmentInputError,
    DataStoreUnavailableError,
    ProfileNotFoundError,
    WeatherProviderError,
    LLMProviderError,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "DermAirError",
    "AssessmentInputError",
    "DataStoreUnavailableError",
    "ProfileNotFoundError",
    "WeatherProviderError",
    "LLMProviderError",
]
