"""
LLM Initialization Adapter (v1.1.0)
Unified text-completion client for hosted (Anthropic, OpenAI, Gemini) and
self-hosted (Ollama) backends.

The provider is chosen by configuration; callers only see ``generate_text``.
A failed call is not retried.
"""
import asyncio
import logging
from typing import Optional

import httpx

from shine_wardrobe.config.llm_config import (
    get_llm_config,
    LLMProvider,
    ActiveLLMConfig,
)

logger = logging.getLogger(__name__)


class LLMUnavailableError(Exception):
    """Raised when the configured provider cannot serve a request."""


class LLMClient:
    """
    Unified LLM client interface for any provider/model.

    Usage:
        client = LLMClient(get_llm_config())
        text = await client.generate_text(prompt)
    """

    def __init__(
        self,
        config: Optional[ActiveLLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or get_llm_config()
        self._transport = transport
        self._anthropic_client = None
        self._openai_client = None
        self._gemini_model = None
        self._initialized = False

    @property
    def provider(self) -> str:
        return self.config.provider.value

    def initialize(self):
        """Initialize the provider SDK based on configuration."""
        if not self.config.is_configured():
            raise LLMUnavailableError(f"Provider '{self.provider}' is not configured")

        provider = self.config.provider
        if provider == LLMProvider.ANTHROPIC:
            self._init_anthropic()
        elif provider == LLMProvider.OPENAI:
            self._init_openai()
        elif provider == LLMProvider.GEMINI:
            self._init_gemini()

        self._initialized = True

    def _init_anthropic(self):
        """Initialize Anthropic client."""
        from anthropic import AsyncAnthropic

        self._anthropic_client = AsyncAnthropic(api_key=self.config.api_key, timeout=self.config.timeout)
        logger.info(f"Anthropic: model={self.config.model}")

    def _init_openai(self):
        """Initialize OpenAI client."""
        from openai import AsyncOpenAI

        self._openai_client = AsyncOpenAI(api_key=self.config.api_key, timeout=self.config.timeout)
        logger.info(f"OpenAI: model={self.config.model}")

    def _init_gemini(self):
        """Initialize Gemini client."""
        import google.generativeai as genai

        genai.configure(api_key=self.config.api_key)
        self._gemini_model = genai.GenerativeModel(self.config.model)
        logger.info(f"Gemini: model={self.config.model}")

    async def generate_text(self, prompt: str) -> str:
        """
        Generate a text response for a single user prompt.

        Raises:
            LLMUnavailableError: provider not configured
            asyncio.TimeoutError: call exceeded the configured timeout
            Exception: any provider/transport error
        """
        if not self._initialized:
            self.initialize()

        return await asyncio.wait_for(self._generate_impl(prompt), timeout=self.config.timeout)

    async def _generate_impl(self, prompt: str) -> str:
        """Internal generation implementation."""
        provider = self.config.provider
        if provider == LLMProvider.ANTHROPIC:
            return await self._generate_anthropic(prompt)
        elif provider == LLMProvider.OPENAI:
            return await self._generate_openai(prompt)
        elif provider == LLMProvider.GEMINI:
            return await self._generate_gemini(prompt)
        elif provider == LLMProvider.OLLAMA:
            return await self._generate_ollama(prompt)
        else:
            raise ValueError(f"Unsupported provider: {provider}")

    async def _generate_anthropic(self, prompt: str) -> str:
        """Generate using Anthropic messages API."""
        response = await self._anthropic_client.messages.create(
            model=self.config.model,
            max_tokens=self.config.max_tokens,
            temperature=self.config.temperature,
            messages=[{"role": "user", "content": prompt}],
        )

        block = response.content[0]
        if block.type != "text":
            raise ValueError(f"Unexpected response type from Anthropic: {block.type}")
        return block.text

    async def _generate_openai(self, prompt: str) -> str:
        """Generate using OpenAI."""
        response = await self._openai_client.chat.completions.create(
            model=self.config.model,
            messages=[{"role": "user", "content": prompt}],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens,
        )

        content = response.choices[0].message.content
        if not content:
            raise ValueError("Empty response from OpenAI")
        return content

    async def _generate_gemini(self, prompt: str) -> str:
        """Generate using Gemini."""
        response = await self._gemini_model.generate_content_async(
            prompt,
            generation_config={
                "max_output_tokens": self.config.max_tokens,
                "temperature": self.config.temperature,
            },
        )
        return response.text

    async def _generate_ollama(self, prompt: str) -> str:
        """Generate using a self-hosted Ollama server."""
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
            response = await client.post(
                f"{self.config.base_url}/api/generate",
                json={
                    "model": self.config.model,
                    "prompt": prompt,
                    "stream": False,
                    "options": {
                        "temperature": self.config.temperature,
                        "top_p": self.config.top_p,
                        "num_predict": self.config.max_tokens,
                    },
                },
            )
            response.raise_for_status()

        text = response.json().get("response")
        if not isinstance(text, str):
            raise ValueError("Ollama response missing 'response' text")
        return text

    # ==================== OLLAMA HELPERS ====================

    async def is_available(self) -> bool:
        """Check whether the backend can be reached."""
        if self.config.provider != LLMProvider.OLLAMA:
            return self.config.is_configured()

        try:
            async with httpx.AsyncClient(timeout=5.0, transport=self._transport) as client:
                response = await client.get(f"{self.config.base_url}/api/tags")
            return response.status_code == 200
        except httpx.HTTPError as e:
            logger.warning(f"Ollama not reachable at {self.config.base_url}: {e}")
            return False

    async def ensure_model(self) -> bool:
        """Pull the configured Ollama model if the server does not have it."""
        if self.config.provider != LLMProvider.OLLAMA:
            return True

        base_name = self.config.model.split(":")[0]
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.get(f"{self.config.base_url}/api/tags")
                response.raise_for_status()
                models = response.json().get("models", [])

                if any(base_name in model.get("name", "") for model in models):
                    return True

                logger.info(f"Installing Ollama model: {self.config.model}")
                pull = await client.post(
                    f"{self.config.base_url}/api/pull",
                    json={"name": self.config.model, "stream": False},
                    timeout=None,
                )
                pull.raise_for_status()
                return True

        except httpx.HTTPError as e:
            logger.error(f"Failed to ensure Ollama model: {e}")
            return False
