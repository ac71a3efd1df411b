"""
Providers Module (v1.1.0)
LLM provider availability for the health endpoint.
"""
import os
import logging
from typing import Dict, Any, List

from shine_wardrobe.config.llm_config import (
    LLMProvider,
    ActiveLLMConfig,
    API_KEY_ENV,
)

logger = logging.getLogger(__name__)


SUPPORTED_PROVIDERS = [provider.value for provider in LLMProvider]


def get_provider_availability() -> Dict[str, bool]:
    """Get credential availability for each provider."""
    availability = {}
    for provider in LLMProvider:
        if provider == LLMProvider.OLLAMA:
            availability[provider.value] = bool(os.getenv("OLLAMA_URL"))
        else:
            availability[provider.value] = any(os.getenv(name) for name in API_KEY_ENV[provider])
    return availability


def get_provider_status(config: ActiveLLMConfig) -> Dict[str, Any]:
    """
    Get complete provider status for health endpoint.

    Returns:
        Dict with active provider, model, hosted flag and availability
    """
    return {
        "active_provider": config.provider.value,
        "model": config.model,
        "hosted": config.is_hosted(),
        "configured": config.is_configured(),
        "availability": get_provider_availability(),
    }


def validate_provider_config(config: ActiveLLMConfig) -> List[str]:
    """
    Validate provider configuration and return warnings.

    Returns:
        List of warning messages
    """
    warnings = []

    if not config.is_configured():
        warnings.append(
            f"Provider '{config.provider.value}' not configured - "
            f"recommendations will use the rule-based fallback"
        )

    if config.provider == LLMProvider.OLLAMA and not os.getenv("OLLAMA_URL"):
        warnings.append(f"OLLAMA_URL not set - using {config.base_url}")

    return warnings
