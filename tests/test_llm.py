"""Tests for the LLM subsystem: provider factory and adapters."""

import os
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import anthropic
import httpx
import openai
import pytest

from jsdocgen.config.models import GenerativeConfig
from jsdocgen.llm import LLMConfig, LLMError, LLMResponse, TokenUsage, create_llm_provider
from jsdocgen.llm.claude import ClaudeProvider
from jsdocgen.llm.openai_adapter import OpenAIProvider


def _response(status: int, url: str) -> httpx.Response:
    return httpx.Response(status, request=httpx.Request("POST", url))


# ---------------------------------------------------------------------------
# Model smoke tests
# ---------------------------------------------------------------------------


class TestLLMModels:
    def test_llm_response(self):
        resp = LLMResponse(
            content="hello",
            usage=TokenUsage(input_tokens=10, output_tokens=20),
            model="test-model",
        )
        assert resp.content == "hello"
        assert resp.usage.output_tokens == 20

    def test_llm_config_defaults(self):
        cfg = LLMConfig(provider="openai", model="gpt-4o-mini")
        assert cfg.max_tokens == 256
        assert cfg.temperature == 0.3
        assert cfg.api_key is None

    def test_llm_error_keeps_cause(self):
        cause = RuntimeError("boom")
        err = LLMError("openai", "generate", cause, retryable=True)
        assert str(err) == "openai generate failed: boom"
        assert err.__cause__ is cause
        assert err.retryable


# ---------------------------------------------------------------------------
# create_llm_provider
# ---------------------------------------------------------------------------


class TestCreateLLMProvider:
    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_creates_openai_provider_by_default(self):
        provider = create_llm_provider(GenerativeConfig())
        assert isinstance(provider, OpenAIProvider)
        assert provider.config.model == "gpt-4o-mini"
        assert provider.config.api_key == "sk-test"

    @patch.dict(os.environ, {"ANTHROPIC_API_KEY": "key123"})
    def test_creates_claude_provider(self):
        config = GenerativeConfig(
            provider="anthropic",
            model="claude-haiku-4-5-20251001",
            api_key_env="ANTHROPIC_API_KEY",
        )
        provider = create_llm_provider(config)
        assert isinstance(provider, ClaudeProvider)
        assert provider.config.model == "claude-haiku-4-5-20251001"

    @patch.dict(os.environ, {"OPENAI_API_KEY": "from-env"})
    def test_explicit_key_wins(self):
        provider = create_llm_provider(GenerativeConfig(api_key="explicit"))
        assert provider.config.api_key == "explicit"

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_api_key_raises(self):
        with pytest.raises(ValueError, match="Missing API key"):
            create_llm_provider(GenerativeConfig())

    def test_unsupported_provider_raises(self):
        config = GenerativeConfig(api_key="k")
        # Bypass validation to reach the factory check
        object.__setattr__(config, "provider", "unsupported_llm")
        with pytest.raises(ValueError, match="Unsupported LLM provider"):
            create_llm_provider(config)

    @patch.dict(os.environ, {"OPENAI_API_KEY": "sk-test"})
    def test_max_tokens_carried(self):
        provider = create_llm_provider(GenerativeConfig(max_tokens=64))
        assert provider.config.max_tokens == 64


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------


class TestClaudeProvider:
    @pytest.fixture
    def provider(self):
        return ClaudeProvider(LLMConfig(provider="anthropic", model="claude-test", api_key="k"))

    @pytest.mark.asyncio
    async def test_generate_returns_text(self, provider):
        message = SimpleNamespace(
            content=[SimpleNamespace(text="Adds two numbers.")],
            usage=SimpleNamespace(input_tokens=30, output_tokens=5),
            model="claude-test",
        )
        create = AsyncMock(return_value=message)
        with patch.object(provider._client.messages, "create", create):
            resp = await provider.generate(system="sys", user="usr", max_tokens=32)
        assert resp.content == "Adds two numbers."
        assert resp.usage.input_tokens == 30
        kwargs = create.await_args.kwargs
        assert kwargs["system"] == "sys"
        assert kwargs["max_tokens"] == 32
        assert kwargs["messages"] == [{"role": "user", "content": "usr"}]

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self, provider):
        error = anthropic.RateLimitError(
            "slow down",
            response=_response(429, "https://api.anthropic.com/v1/messages"),
            body=None,
        )
        with patch.object(provider._client.messages, "create", AsyncMock(side_effect=error)):
            with pytest.raises(LLMError) as excinfo:
                await provider.generate(system="s", user="u")
        assert excinfo.value.provider == "claude"
        assert excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_connection_error_not_retryable(self, provider):
        error = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        with patch.object(provider._client.messages, "create", AsyncMock(side_effect=error)):
            with pytest.raises(LLMError) as excinfo:
                await provider.generate(system="s", user="u")
        assert not excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_empty_content_raises(self, provider):
        message = SimpleNamespace(
            content=[],
            usage=SimpleNamespace(input_tokens=1, output_tokens=0),
            model="claude-test",
        )
        with patch.object(provider._client.messages, "create", AsyncMock(return_value=message)):
            with pytest.raises(LLMError, match="No text content"):
                await provider.generate(system="s", user="u")


class TestOpenAIProvider:
    @pytest.fixture
    def provider(self):
        return OpenAIProvider(LLMConfig(provider="openai", model="gpt-test", api_key="k"))

    @pytest.mark.asyncio
    async def test_generate_returns_text(self, provider):
        response = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Returns the sum."))],
            usage=SimpleNamespace(prompt_tokens=40, completion_tokens=6),
            model="gpt-test",
        )
        create = AsyncMock(return_value=response)
        with patch.object(provider._client.chat.completions, "create", create):
            resp = await provider.generate(system="sys", user="usr")
        assert resp.content == "Returns the sum."
        assert resp.usage.output_tokens == 6
        assert create.await_args.kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.asyncio
    async def test_rate_limit_is_retryable(self, provider):
        error = openai.RateLimitError(
            "slow down",
            response=_response(429, "https://api.openai.com/v1/chat/completions"),
            body=None,
        )
        with patch.object(
            provider._client.chat.completions, "create", AsyncMock(side_effect=error)
        ):
            with pytest.raises(LLMError) as excinfo:
                await provider.generate(system="s", user="u")
        assert excinfo.value.provider == "openai"
        assert excinfo.value.retryable

    @pytest.mark.asyncio
    async def test_no_choices_raises(self, provider):
        response = SimpleNamespace(choices=[], usage=None, model="gpt-test")
        with patch.object(
            provider._client.chat.completions, "create", AsyncMock(return_value=response)
        ):
            with pytest.raises(LLMError, match="No choices"):
                await provider.generate(system="s", user="u")
