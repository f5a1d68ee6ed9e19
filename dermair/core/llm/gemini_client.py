"""
Gemini API Client

Wrapper for Google Gemini (via LangChain) implementing the completion
provider interface used by the generative risk strategy:

    text = await client.complete(prompt, generation_config)

Single attempt per call; the caller owns timeouts, retries and fallback.
"""
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
from enum import Enum
import os
from datetime import datetime

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_google_genai import ChatGoogleGenerativeAI

from dermair.utils import get_logger, LLMProviderError
from .provider import GenerationConfig

logger = get_logger(__name__)


class GeminiModel(str, Enum):
    """Gemini models known to work with the risk prompt."""
    FLASH_2_5 = "gemini-2.5-flash"  # Stable standard
    FLASH_2_5_LITE = "gemini-2.5-flash-lite"
    FLASH_2_0 = "gemini-2.0-flash"
    PRO_2_5 = "gemini-2.5-pro"


@dataclass
class GeminiConfig:
    """Configuration for Gemini client."""
    api_key: Optional[str] = None
    model: str = GeminiModel.FLASH_2_5.value
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    request_timeout_seconds: float = 15.0

    def __post_init__(self):
        """Load API key from environment if not provided."""
        if self.api_key is None:
            self.api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        if isinstance(self.model, GeminiModel):
            self.model = self.model.value


class GeminiClient:
    """
    Client for Google Gemini API.

    Raises LLMProviderError on any failure; it never fabricates a response.
    """

    provider_name = "gemini"

    def __init__(self, config: Optional[GeminiConfig] = None):
        """
        Initialize Gemini client.

        Args:
            config: Optional configuration, uses defaults if not provided
        """
        self.config = config or GeminiConfig()
        self._llm: Optional[ChatGoogleGenerativeAI] = None
        self._request_count = 0
        self._last_request_time: Optional[datetime] = None
        self._last_latency_ms = 0.0

        if not self.config.api_key:
            logger.warning("No Gemini API key provided - generative strategy unavailable")

    @property
    def is_available(self) -> bool:
        """Check if Gemini is configured for use."""
        return bool(self.config.api_key)

    def _build_llm(self, generation: GenerationConfig) -> ChatGoogleGenerativeAI:
        return ChatGoogleGenerativeAI(
            model=self.config.model,
            temperature=generation.temperature,
            max_output_tokens=generation.max_output_tokens,
            top_p=generation.top_p,
            top_k=generation.top_k,
            timeout=self.config.request_timeout_seconds,
            max_retries=0,
            google_api_key=self.config.api_key,
        )

    def _llm_for(self, generation: Optional[GenerationConfig]) -> ChatGoogleGenerativeAI:
        if generation is not None and generation != self.config.generation:
            return self._build_llm(generation)
        if self._llm is None:
            self._llm = self._build_llm(self.config.generation)
            logger.info(f"LangChain Gemini client initialized with model: {self.config.model}")
        return self._llm

    async def complete(
        self,
        prompt: str,
        generation_config: Optional[GenerationConfig] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        """
        Generate a completion for `prompt`.

        Args:
            prompt: The user prompt
            generation_config: Optional per-call sampling overrides
            system_instruction: Optional system instruction

        Returns:
            Generated text

        Raises:
            LLMProviderError: client not configured, or the call failed
        """
        if not self.is_available:
            raise LLMProviderError("Gemini API key not configured", provider=self.provider_name)

        messages: List[BaseMessage] = []
        if system_instruction:
            messages.append(SystemMessage(content=system_instruction))
        messages.append(HumanMessage(content=prompt))

        start_time = datetime.now()
        try:
            response = await self._llm_for(generation_config).ainvoke(messages)
        except Exception as e:
            logger.error(f"Gemini generation failed: {e}")
            raise LLMProviderError(
                f"Gemini generation failed: {e}",
                provider=self.provider_name,
                details={"model": self.config.model},
            ) from e

        self._last_latency_ms = (datetime.now() - start_time).total_seconds() * 1000
        self._request_count += 1
        self._last_request_time = datetime.now()

        return self._extract_text(response.content)

    @staticmethod
    def _extract_text(content: Any) -> str:
        """LangChain returns either a string or a list of content parts."""
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = []
            for part in content:
                if isinstance(part, str):
                    parts.append(part)
                elif isinstance(part, dict) and part.get("type") == "text":
                    parts.append(part.get("text", ""))
            return "".join(parts)
        return str(content)

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics."""
        return {
            "is_available": self.is_available,
            "model": self.config.model,
            "request_count": self._request_count,
            "last_latency_ms": round(self._last_latency_ms, 2),
            "last_request": self._last_request_time.isoformat() if self._last_request_time else None
        }
