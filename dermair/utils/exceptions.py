"""
Custom Exception Hierarchy

Specific exception types for each failure category of the risk engine,
carrying structured error information for API responses.
"""
from typing import Optional, Dict, Any


class DermAirError(Exception):
    """Base exception for all DermAir errors."""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details
        }


class AssessmentInputError(DermAirError):
    """Required assessment input (weather or profile) is missing or malformed."""

    status_code = 400

    def __init__(
        self,
        message: str,
        field: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="INPUT_ERROR",
            details={"field": field, **(details or {})}
        )
        self.field = field


class DataStoreUnavailableError(DermAirError):
    """The profile/check-in store could not be reached or answered with an error."""

    status_code = 503

    def __init__(
        self,
        message: str,
        operation: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="DATA_STORE_UNAVAILABLE",
            details={"operation": operation, **(details or {})}
        )
        self.operation = operation


class ProfileNotFoundError(DermAirError):
    """No profile exists for the requested user."""

    status_code = 404

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No profile found for user '{user_id}'",
            code="PROFILE_NOT_FOUND",
            details={"user_id": user_id}
        )
        self.user_id = user_id


class WeatherProviderError(DermAirError):
    """Weather collaborator failed (connectivity or parse error)."""

    status_code = 503

    def __init__(
        self,
        message: str,
        location: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="WEATHER_UNAVAILABLE",
            details={"location": location, **(details or {})}
        )
        self.location = location


class LLMProviderError(DermAirError):
    """Generative model call failed, timed out, or is not configured."""

    status_code = 502

    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            message=message,
            code="LLM_PROVIDER_ERROR",
            details={"provider": provider, **(details or {})}
        )
        self.provider = provider
