"""LLM provider abstraction layer."""

import os

from jsdocgen.config.models import GenerativeConfig
from jsdocgen.llm.base import LLMProvider
from jsdocgen.llm.claude import ClaudeProvider
from jsdocgen.llm.models import LLMConfig, LLMError, LLMResponse, TokenUsage
from jsdocgen.llm.openai_adapter import OpenAIProvider

_PROVIDER_MAP: dict[str, type[LLMProvider]] = {
    "anthropic": ClaudeProvider,
    "openai": OpenAIProvider,
}


def create_llm_provider(config: GenerativeConfig) -> LLMProvider:
    """Create an LLM provider from the generative settings.

    An explicit ``api_key`` wins; otherwise the key is read from the env var
    named by ``api_key_env``.
    """
    cls = _PROVIDER_MAP.get(config.provider)
    if cls is None:
        raise ValueError(
            f"Unsupported LLM provider: {config.provider!r}. "
            f"Supported: {', '.join(_PROVIDER_MAP)}"
        )
    api_key = config.api_key or os.environ.get(config.api_key_env)
    if not api_key:
        raise ValueError(
            f"Missing API key: set environment variable {config.api_key_env!r}"
        )
    llm_config = LLMConfig(
        provider=config.provider,
        model=config.model,
        max_tokens=config.max_tokens,
        api_key=api_key,
    )
    return cls(llm_config)


__all__ = [
    "ClaudeProvider",
    "LLMConfig",
    "LLMError",
    "LLMProvider",
    "LLMResponse",
    "OpenAIProvider",
    "TokenUsage",
    "create_llm_provider",
]
