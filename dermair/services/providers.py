"""
Collaborator Interfaces

The engine reads weather, profiles and check-ins through these protocols;
concrete backends (HTTP weather APIs, databases) live outside the engine.
"""
from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Protocol, runtime_checkable

from dermair.core.base import SymptomLog, UserProfile, WeatherSnapshot
from dermair.utils import get_logger, DataStoreUnavailableError, WeatherProviderError

logger = get_logger(__name__)


@runtime_checkable
class WeatherProvider(Protocol):
    """Current conditions for a city name or "lat,lon" string."""

    async def get_weather(self, location: str) -> WeatherSnapshot:
        """Raises WeatherProviderError on connectivity or parse failure."""
        ...


@runtime_checkable
class ProfileStore(Protocol):
    """Profile and check-in storage."""

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    async def get_recent_logs(self, user_id: str, days: int) -> List[SymptomLog]:
        """Check-ins from the last `days` days, newest first."""
        ...


class InMemoryProfileStore:
    """
    Dict-backed ProfileStore for tests, demos and local runs.

    Setting `available = False` makes every read fail the way a dropped
    database connection would.
    """

    def __init__(self, today: Callable[[], date] = date.today):
        self._profiles: Dict[str, UserProfile] = {}
        self._logs: Dict[str, List[SymptomLog]] = {}
        self._today = today
        self.available = True

    def add_profile(self, profile: UserProfile) -> None:
        self._profiles[profile.id] = profile

    def add_log(self, log: SymptomLog) -> None:
        self._logs.setdefault(log.user_id, []).append(log)

    def _check_available(self, operation: str) -> None:
        if not self.available:
            raise DataStoreUnavailableError("Profile store is unavailable", operation=operation)

    async def get_profile(self, user_id: str) -> Optional[UserProfile]:
        self._check_available("get_profile")
        return self._profiles.get(user_id)

    async def get_recent_logs(self, user_id: str, days: int) -> List[SymptomLog]:
        self._check_available("get_recent_logs")
        today = self._today()
        start = today - timedelta(days=days)
        logs = [log for log in self._logs.get(user_id, []) if start < log.date <= today]
        return sorted(logs, key=lambda log: log.date, reverse=True)


class StaticWeatherProvider:
    """
    WeatherProvider serving fixed snapshots keyed by location.

    Unknown locations fail with WeatherProviderError unless a default is set.
    """

    def __init__(
        self,
        snapshots: Optional[Dict[str, WeatherSnapshot]] = None,
        default: Optional[WeatherSnapshot] = None,
    ):
        self._snapshots = {k.lower(): v for k, v in (snapshots or {}).items()}
        self._default = default

    def set(self, location: str, snapshot: WeatherSnapshot) -> None:
        self._snapshots[location.lower()] = snapshot

    async def get_weather(self, location: str) -> WeatherSnapshot:
        snapshot = self._snapshots.get(location.lower(), self._default)
        if snapshot is None:
            raise WeatherProviderError(f"No weather data for '{location}'", location=location)
        return snapshot
