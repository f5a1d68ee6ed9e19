"""
Risk Engine Core

Usage:
    from dermair.core.base import WeatherSnapshot, UserProfile, SymptomLog
    from dermair.core.risk import RiskAssessmentOrchestrator
    from dermair.core.analytics import TrendAnalyzer
"""
