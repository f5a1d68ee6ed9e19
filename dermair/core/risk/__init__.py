"""
Risk Assessment Layer

Usage:
    from dermair.core.risk import RiskAssessmentOrchestrator, DeterministicRiskScorer

    orchestrator = RiskAssessmentOrchestrator(DeterministicRiskScorer())
    result = await orchestrator.assess(weather, profile, recent_logs)
"""
from .scorer import DeterministicRiskScorer, trigger_matches
from .orchestrator import RiskAssessmentOrchestrator

__all__ = [
    "DeterministicRiskScorer",
    "RiskAssessmentOrchestrator",
    "trigger_matches",
]
