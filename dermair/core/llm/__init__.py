"""
Generative Assessment Module

Asks a generative model (Gemini via LangChain) for a full risk assessment.
The model's answer is never trusted as-is:

- Single attempt per assessment, bounded by a configured timeout
- First balanced JSON object is extracted from the free-text reply
- Shape and numeric ranges are validated with pydantic
- Any failure is reported as `Unavailable`, never raised
"""
from .provider import CompletionProvider, GenerationConfig
from .gemini_client import GeminiClient, GeminiConfig, GeminiModel
from .json_extraction import extract_first_json_object
from .validators import RiskResponseValidator, ValidationResult, validate_risk_payload
from .risk_strategy import GenerativeRiskStrategy

__all__ = [
    "CompletionProvider",
    "GenerationConfig",
    "GeminiClient",
    "GeminiConfig",
    "GeminiModel",
    "extract_first_json_object",
    "RiskResponseValidator",
    "ValidationResult",
    "validate_risk_payload",
    "GenerativeRiskStrategy",
]
