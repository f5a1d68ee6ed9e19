"""
Symptom Trend & Weather Correlation Analysis

Summarizes a window of daily check-ins:
- Overview aggregates (averages, medication usage)
- Weekly buckets going backward from `as_of`, oldest first
- How often high-exposure weather days were also high-symptom days
"""
from dataclasses import dataclass, field
from datetime import date, timedelta
from math import ceil
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from dermair.core.base import SymptomLog, WeatherSnapshot
from dermair.utils import get_logger

logger = get_logger(__name__)


# Bucketing
DAYS_PER_BUCKET = 7
MAX_BUCKETS = 4

# Exposure thresholds (strictly greater than)
HIGH_TEMPERATURE_C = 25.0
HIGH_HUMIDITY_PCT = 70.0
HIGH_UV_INDEX = 6.0
HIGH_POLLEN = 6.0

# itch + redness at or above this is a high-symptom day
HIGH_SYMPTOM_TOTAL = 5

RECENT_ACTIVITY_LIMIT = 10


@dataclass
class TrendOverview:
    avg_itch: float = 0.0
    avg_redness: float = 0.0
    total_days: int = 0
    medication_days: int = 0
    medication_usage_rate: int = 0      # percent

    def to_dict(self) -> Dict[str, Any]:
        return {
            "avg_itch": self.avg_itch,
            "avg_redness": self.avg_redness,
            "total_days": self.total_days,
            "medication_days": self.medication_days,
            "medication_usage_rate": self.medication_usage_rate,
        }


@dataclass
class WeeklyTrend:
    """One 7-day bucket. `week` counts back from `as_of` (1 = most recent)."""
    week: int
    week_start: date
    week_end: date
    avg_itch: float
    avg_redness: float
    log_count: int
    medication_days: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "week": self.week,
            "week_start": self.week_start.isoformat(),
            "week_end": self.week_end.isoformat(),
            "avg_itch": self.avg_itch,
            "avg_redness": self.avg_redness,
            "log_count": self.log_count,
            "medication_days": self.medication_days,
        }


@dataclass
class WeatherCorrelations:
    """Percent of exposed days that were high-symptom days, per variable."""
    temperature: int = 0
    humidity: int = 0
    uv: int = 0
    pollen: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "temperature": self.temperature,
            "humidity": self.humidity,
            "uv": self.uv,
            "pollen": self.pollen,
        }


@dataclass
class TrendReport:
    window_days: int
    as_of: date
    overview: TrendOverview = field(default_factory=TrendOverview)
    weekly_trends: List[WeeklyTrend] = field(default_factory=list)
    weather_correlations: WeatherCorrelations = field(default_factory=WeatherCorrelations)
    recent_activity: List[SymptomLog] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "window_days": self.window_days,
            "as_of": self.as_of.isoformat(),
            "overview": self.overview.to_dict(),
            "weekly_trends": [w.to_dict() for w in self.weekly_trends],
            "weather_correlations": self.weather_correlations.to_dict(),
            "recent_activity": [log.to_dict() for log in self.recent_activity],
        }


def _exceeds(value: Optional[float], threshold: float) -> bool:
    return value is not None and value > threshold


# variable -> exposure test on a weather snapshot
_EXPOSURES: Dict[str, Callable[[WeatherSnapshot], bool]] = {
    "temperature": lambda w: _exceeds(w.temperature, HIGH_TEMPERATURE_C),
    "humidity": lambda w: _exceeds(w.humidity, HIGH_HUMIDITY_PCT),
    "uv": lambda w: _exceeds(w.uv_index, HIGH_UV_INDEX),
    "pollen": lambda w: _exceeds(w.pollen_count.overall, HIGH_POLLEN),
}


def correlation_percentage(high_symptom_days: int, exposed_days: int) -> int:
    """Rounded percentage, 0 when nothing was exposed."""
    if exposed_days <= 0:
        return 0
    return int(round(high_symptom_days / exposed_days * 100))


class TrendAnalyzer:
    """
    Pure aggregation over check-ins; no I/O.

    Usage:
        report = TrendAnalyzer().analyze(logs, window_days=30)
    """

    def analyze(
        self,
        logs: Sequence[SymptomLog],
        window_days: int = 30,
        as_of: Optional[date] = None,
    ) -> TrendReport:
        """
        Build a TrendReport for check-ins in `(as_of - window_days, as_of]`.

        Args:
            logs: Check-ins in any order
            window_days: Size of the analysis window in days (>= 1)
            as_of: Reference day, defaults to today
        """
        if window_days < 1:
            raise ValueError("window_days must be at least 1")

        as_of = as_of or date.today()
        start = as_of - timedelta(days=window_days)
        in_window = sorted(
            (log for log in logs if start < log.date <= as_of),
            key=lambda log: log.date,
            reverse=True,
        )

        report = TrendReport(
            window_days=window_days,
            as_of=as_of,
            overview=self._overview(in_window),
            weekly_trends=self._weekly_trends(in_window, window_days, as_of),
            weather_correlations=self._correlations(in_window),
            recent_activity=in_window[:RECENT_ACTIVITY_LIMIT],
        )

        logger.debug(
            f"Trend analysis: {len(in_window)}/{len(logs)} logs in window, "
            f"{len(report.weekly_trends)} weekly buckets"
        )
        return report

    @staticmethod
    def _overview(logs: List[SymptomLog]) -> TrendOverview:
        if not logs:
            return TrendOverview()

        itch = np.array([log.itch for log in logs], dtype=float)
        redness = np.array([log.redness for log in logs], dtype=float)
        medication_days = sum(1 for log in logs if log.medication_used)

        return TrendOverview(
            avg_itch=round(float(itch.mean()), 1),
            avg_redness=round(float(redness.mean()), 1),
            total_days=len(logs),
            medication_days=medication_days,
            medication_usage_rate=int(round(medication_days / len(logs) * 100)),
        )

    @staticmethod
    def _weekly_trends(
        logs: List[SymptomLog],
        window_days: int,
        as_of: date,
    ) -> List[WeeklyTrend]:
        bucket_count = min(MAX_BUCKETS, ceil(window_days / DAYS_PER_BUCKET))
        trends: List[WeeklyTrend] = []

        for i in range(bucket_count):
            week_end = as_of - timedelta(days=DAYS_PER_BUCKET * i)
            week_start = week_end - timedelta(days=DAYS_PER_BUCKET - 1)
            bucket = [log for log in logs if week_start <= log.date <= week_end]
            if not bucket:
                continue

            trends.append(WeeklyTrend(
                week=i + 1,
                week_start=week_start,
                week_end=week_end,
                avg_itch=round(float(np.mean([log.itch for log in bucket])), 1),
                avg_redness=round(float(np.mean([log.redness for log in bucket])), 1),
                log_count=len(bucket),
                medication_days=sum(1 for log in bucket if log.medication_used),
            ))

        # built newest-first
        trends.reverse()
        return trends

    @staticmethod
    def _correlations(logs: List[SymptomLog]) -> WeatherCorrelations:
        exposed = {name: 0 for name in _EXPOSURES}
        high = {name: 0 for name in _EXPOSURES}

        for log in logs:
            if log.weather is None:
                continue
            is_high_symptom = log.total_symptom_score >= HIGH_SYMPTOM_TOTAL
            for name, is_exposed in _EXPOSURES.items():
                if is_exposed(log.weather):
                    exposed[name] += 1
                    if is_high_symptom:
                        high[name] += 1

        return WeatherCorrelations(**{
            name: correlation_percentage(high[name], exposed[name]) for name in _EXPOSURES
        })
