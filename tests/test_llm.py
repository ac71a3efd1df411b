"""
Tests for LLM configuration, the unified client and backend startup.
"""
import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from shine_wardrobe.app.main import prepare_llm_backend
from shine_wardrobe.config.llm_config import ActiveLLMConfig, LLMProvider, get_llm_config
from shine_wardrobe.config.providers import get_provider_status, validate_provider_config
from shine_wardrobe.core.outfit_recommender import OutfitRecommender
from shine_wardrobe.llm import LLMClient, LLMUnavailableError


def ollama_config(**overrides) -> ActiveLLMConfig:
    data = dict(
        provider=LLMProvider.OLLAMA,
        model="llama3.2:3b",
        max_tokens=1000,
        temperature=0.7,
        timeout=5.0,
        pool_limit=10,
        base_url="http://ollama:11434",
    )
    data.update(overrides)
    return ActiveLLMConfig(**data)


# ==================== CONFIG ====================

class TestLLMConfig:
    """Provider selection from environment variables."""

    def test_default_is_anthropic(self, monkeypatch):
        monkeypatch.delenv("SHINE_LLM_PROVIDER", raising=False)
        monkeypatch.delenv("SHINE_LLM_MODEL", raising=False)
        monkeypatch.setenv("CLAUDE_API_KEY", "sk-test")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

        config = get_llm_config()

        assert config.provider == LLMProvider.ANTHROPIC
        assert config.model == "claude-3-5-sonnet-latest"
        assert config.max_tokens == 2000
        assert config.pool_limit is None
        assert config.api_key == "sk-test"
        assert config.is_configured()

    def test_ollama_defaults(self, monkeypatch):
        monkeypatch.setenv("SHINE_LLM_PROVIDER", "ollama")
        monkeypatch.delenv("OLLAMA_MODEL", raising=False)
        monkeypatch.delenv("SHINE_LLM_MODEL", raising=False)
        monkeypatch.setenv("OLLAMA_URL", "http://gpu-box:11434")

        config = get_llm_config()

        assert config.model == "llama3.2:3b"
        assert config.max_tokens == 1000
        assert config.pool_limit == 10
        assert config.base_url == "http://gpu-box:11434"
        assert not config.is_hosted()

    def test_unknown_provider_falls_back_to_anthropic(self, monkeypatch):
        monkeypatch.setenv("SHINE_LLM_PROVIDER", "skynet")
        assert get_llm_config().provider == LLMProvider.ANTHROPIC

    def test_missing_key_is_reported(self, monkeypatch):
        monkeypatch.setenv("SHINE_LLM_PROVIDER", "openai")
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        config = get_llm_config()

        assert not config.is_configured()
        assert validate_provider_config(config)
        assert get_provider_status(config)["configured"] is False


# ==================== CLIENT ====================

class TestOllamaClient:
    """Self-hosted generation over httpx."""

    def test_generate_posts_options(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"response": '{"economic": [], "luxury": []}'})

        client = LLMClient(ollama_config(), transport=httpx.MockTransport(handler))
        text = asyncio.run(client.generate_text("olá"))

        assert text == '{"economic": [], "luxury": []}'
        assert seen["url"] == "http://ollama:11434/api/generate"
        assert seen["body"]["stream"] is False
        assert seen["body"]["options"] == {"temperature": 0.7, "top_p": 0.9, "num_predict": 1000}

    def test_server_error_raises(self):
        client = LLMClient(ollama_config(), transport=httpx.MockTransport(lambda r: httpx.Response(500)))
        with pytest.raises(httpx.HTTPStatusError):
            asyncio.run(client.generate_text("olá"))

    def test_unconfigured_hosted_provider_raises(self):
        config = ActiveLLMConfig(
            provider=LLMProvider.OPENAI, model="gpt-4o-mini", max_tokens=2000, temperature=0.7, timeout=30.0,
        )
        with pytest.raises(LLMUnavailableError):
            asyncio.run(LLMClient(config).generate_text("olá"))

    def test_is_available(self):
        client = LLMClient(ollama_config(), transport=httpx.MockTransport(
            lambda r: httpx.Response(200, json={"models": []})
        ))
        assert asyncio.run(client.is_available()) is True

    def test_ensure_model_pulls_missing(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(request.url.path)
            if request.url.path == "/api/tags":
                return httpx.Response(200, json={"models": [{"name": "mistral:7b"}]})
            return httpx.Response(200, json={"status": "success"})

        client = LLMClient(ollama_config(), transport=httpx.MockTransport(handler))

        assert asyncio.run(client.ensure_model()) is True
        assert calls == ["/api/tags", "/api/pull"]

    def test_ensure_model_present(self):
        client = LLMClient(ollama_config(), transport=httpx.MockTransport(
            lambda r: httpx.Response(200, json={"models": [{"name": "llama3.2:3b"}]})
        ))
        assert asyncio.run(client.ensure_model()) is True


# ==================== HOSTED SDKS ====================

def hosted_client(provider: LLMProvider, model: str, sdk_attr: str, sdk) -> LLMClient:
    config = ActiveLLMConfig(
        provider=provider, model=model, max_tokens=2000, temperature=0.7, timeout=5.0, api_key="sk-test",
    )
    client = LLMClient(config)
    setattr(client, sdk_attr, sdk)
    client._initialized = True
    return client


class TestHostedClients:
    """Anthropic and OpenAI branches with stubbed SDK clients."""

    def test_anthropic_text_block(self):
        sdk = MagicMock()
        sdk.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(type="text", text='{"economic": []}')]
        ))
        client = hosted_client(LLMProvider.ANTHROPIC, "claude-3-5-sonnet-latest", "_anthropic_client", sdk)

        assert asyncio.run(client.generate_text("olá")) == '{"economic": []}'
        kwargs = sdk.messages.create.call_args.kwargs
        assert kwargs["max_tokens"] == 2000
        assert kwargs["messages"] == [{"role": "user", "content": "olá"}]

    def test_anthropic_non_text_block_raises(self):
        sdk = MagicMock()
        sdk.messages.create = AsyncMock(return_value=SimpleNamespace(
            content=[SimpleNamespace(type="tool_use", text=None)]
        ))
        client = hosted_client(LLMProvider.ANTHROPIC, "claude-3-5-sonnet-latest", "_anthropic_client", sdk)

        with pytest.raises(ValueError, match="tool_use"):
            asyncio.run(client.generate_text("olá"))

    def test_openai_content(self):
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="ok"))]
        ))
        client = hosted_client(LLMProvider.OPENAI, "gpt-4o-mini", "_openai_client", sdk)

        assert asyncio.run(client.generate_text("olá")) == "ok"

    def test_openai_empty_content_raises(self):
        sdk = MagicMock()
        sdk.chat.completions.create = AsyncMock(return_value=SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=None))]
        ))
        client = hosted_client(LLMProvider.OPENAI, "gpt-4o-mini", "_openai_client", sdk)

        with pytest.raises(ValueError, match="Empty response"):
            asyncio.run(client.generate_text("olá"))

    def test_slow_sdk_call_is_bounded(self):
        async def stall(**kwargs):
            await asyncio.sleep(5)

        sdk = MagicMock()
        sdk.chat.completions.create = stall
        client = hosted_client(LLMProvider.OPENAI, "gpt-4o-mini", "_openai_client", sdk)
        client.config.timeout = 0.2

        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(client.generate_text("olá"))


# ==================== STARTUP ====================

class TestPrepareBackend:
    """Ollama probe and model pull during application startup."""

    @staticmethod
    def startup_container(client) -> SimpleNamespace:
        return SimpleNamespace(llm_config=client.config, recommender=OutfitRecommender(client))

    def test_pulls_missing_model(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(request.url.path)
            if request.url.path == "/api/tags":
                return httpx.Response(200, json={"models": []})
            return httpx.Response(200, json={"status": "success"})

        client = LLMClient(ollama_config(), transport=httpx.MockTransport(handler))
        asyncio.run(prepare_llm_backend(self.startup_container(client)))

        assert calls == ["/api/tags", "/api/tags", "/api/pull"]

    def test_unreachable_server_skips_pull(self):
        calls = []

        def handler(request: httpx.Request):
            calls.append(request.url.path)
            raise httpx.ConnectError("refused")

        client = LLMClient(ollama_config(), transport=httpx.MockTransport(handler))
        asyncio.run(prepare_llm_backend(self.startup_container(client)))

        assert calls == ["/api/tags"]

    def test_hosted_provider_is_untouched(self):
        sdk = MagicMock()
        client = hosted_client(LLMProvider.OPENAI, "gpt-4o-mini", "_openai_client", sdk)

        asyncio.run(prepare_llm_backend(self.startup_container(client)))

        sdk.assert_not_called()
        assert sdk.method_calls == []
