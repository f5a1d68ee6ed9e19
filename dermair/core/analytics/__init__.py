"""Check-in trend and weather correlation analysis."""
from .trends import (
    TrendAnalyzer,
    TrendReport,
    TrendOverview,
    WeeklyTrend,
    WeatherCorrelations,
    correlation_percentage,
)

__all__ = [
    "TrendAnalyzer",
    "TrendReport",
    "TrendOverview",
    "WeeklyTrend",
    "WeatherCorrelations",
    "correlation_percentage",
]
