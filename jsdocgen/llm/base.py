"""Abstract LLM interface for jsdocgen."""

from __future__ import annotations

from abc import ABC, abstractmethod

from jsdocgen.llm.models import LLMConfig, LLMResponse


class LLMProvider(ABC):
    """Provider-agnostic interface for short description generation.

    Descriptions are one or two sentences, so adapters only implement
    one-shot generation.
    """

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate(
        self,
        system: str,
        user: str,
        max_tokens: int = 256,
    ) -> LLMResponse:
        """Generate a complete response (one-shot)."""
        ...
