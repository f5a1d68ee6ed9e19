"""
DermAir Risk Engine

Daily eczema flare risk from weather, user profile and symptom history,
with a generative strategy backed by a deterministic rule-based scorer.
"""
__version__ = "0.1.0"
