"""
LLM Configuration Layer (v1.1.0)
Model-agnostic config for the outfit recommendation backend.

Environment Variables:
    - SHINE_LLM_PROVIDER: "anthropic" | "openai" | "gemini" | "ollama" (default: anthropic)
    - SHINE_LLM_MODEL: Override default model (optional)
    - SHINE_LLM_MAX_TOKENS / SHINE_LLM_TEMPERATURE / SHINE_LLM_TIMEOUT (optional)
    - OLLAMA_URL / OLLAMA_MODEL: self-hosted backend location and model
"""
import os
import logging
from enum import Enum
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


# ==================== ENUMS ====================

class LLMProvider(Enum):
    """Supported LLM providers."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"
    OLLAMA = "ollama"


HOSTED_PROVIDERS = (LLMProvider.ANTHROPIC, LLMProvider.OPENAI, LLMProvider.GEMINI)


# ==================== PROVIDER DEFAULTS ====================

@dataclass(frozen=True)
class ProviderDefaults:
    """Per-provider model defaults."""
    model: str
    max_tokens: int
    temperature: float
    timeout: float
    pool_limit: Optional[int] = None  # Max products per tier listed in the prompt


PROVIDER_DEFAULTS = {
    LLMProvider.ANTHROPIC: ProviderDefaults(model="claude-3-5-sonnet-latest", max_tokens=2000, temperature=0.7, timeout=30.0),
    LLMProvider.OPENAI: ProviderDefaults(model="gpt-4o-mini", max_tokens=2000, temperature=0.7, timeout=30.0),
    LLMProvider.GEMINI: ProviderDefaults(model="gemini-1.5-flash", max_tokens=2000, temperature=0.7, timeout=30.0),
    # Lightweight local model: shorter prompt and output
    LLMProvider.OLLAMA: ProviderDefaults(model="llama3.2:3b", max_tokens=1000, temperature=0.7, timeout=30.0, pool_limit=10),
}

API_KEY_ENV = {
    LLMProvider.ANTHROPIC: ("ANTHROPIC_API_KEY", "CLAUDE_API_KEY"),
    LLMProvider.OPENAI: ("OPENAI_API_KEY",),
    LLMProvider.GEMINI: ("GEMINI_API_KEY",),
}


# ==================== ACTIVE CONFIG ====================

@dataclass
class ActiveLLMConfig:
    """Active LLM configuration."""
    provider: LLMProvider
    model: str
    max_tokens: int
    temperature: float
    timeout: float
    pool_limit: Optional[int] = None
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    top_p: float = 0.9

    @classmethod
    def from_env(cls) -> "ActiveLLMConfig":
        """Resolve configuration from environment variables."""
        provider_str = os.getenv("SHINE_LLM_PROVIDER", LLMProvider.ANTHROPIC.value).lower()

        try:
            provider = LLMProvider(provider_str)
        except ValueError:
            logger.warning(f"Unknown LLM provider '{provider_str}', using anthropic")
            provider = LLMProvider.ANTHROPIC

        defaults = PROVIDER_DEFAULTS[provider]

        if provider == LLMProvider.OLLAMA:
            model = os.getenv("OLLAMA_MODEL") or os.getenv("SHINE_LLM_MODEL", defaults.model)
        else:
            model = os.getenv("SHINE_LLM_MODEL", defaults.model)

        config = cls(
            provider=provider,
            model=model,
            max_tokens=int(os.getenv("SHINE_LLM_MAX_TOKENS", str(defaults.max_tokens))),
            temperature=float(os.getenv("SHINE_LLM_TEMPERATURE", str(defaults.temperature))),
            timeout=float(os.getenv("SHINE_LLM_TIMEOUT", str(defaults.timeout))),
            pool_limit=defaults.pool_limit,
            api_key=_read_api_key(provider),
            base_url=os.getenv("OLLAMA_URL", "http://localhost:11434") if provider == LLMProvider.OLLAMA else None,
        )

        logger.info(f"LLM Config: provider={provider.value}, model={model}")
        return config

    def is_hosted(self) -> bool:
        return self.provider in HOSTED_PROVIDERS

    def is_configured(self) -> bool:
        """Hosted providers need an API key; Ollama only needs a URL."""
        if self.provider == LLMProvider.OLLAMA:
            return bool(self.base_url)
        return bool(self.api_key)

    def to_dict(self) -> dict:
        return {
            "provider": self.provider.value,
            "model": self.model,
            "hosted": self.is_hosted(),
            "configured": self.is_configured(),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "timeout": self.timeout,
            "pool_limit": self.pool_limit,
            "base_url": self.base_url,
        }


def _read_api_key(provider: LLMProvider) -> Optional[str]:
    for env_name in API_KEY_ENV.get(provider, ()):
        value = os.getenv(env_name)
        if value:
            return value
    return None


def get_llm_config() -> ActiveLLMConfig:
    """Get LLM configuration from the environment."""
    return ActiveLLMConfig.from_env()
