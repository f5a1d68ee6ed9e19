"""
Completion provider interface.

The generative strategy depends only on this protocol, so tests and
alternative backends can stand in for the Gemini client.
"""
from dataclasses import dataclass
from typing import Optional, Protocol, runtime_checkable


@dataclass
class GenerationConfig:
    """Per-call sampling parameters."""
    temperature: float = 0.7
    max_output_tokens: int = 2048
    top_p: float = 0.95
    top_k: int = 40


@runtime_checkable
class CompletionProvider(Protocol):
    """Anything that turns a prompt into text, raising on failure."""

    async def complete(
        self,
        prompt: str,
        generation_config: Optional[GenerationConfig] = None,
        system_instruction: Optional[str] = None,
    ) -> str:
        ...
