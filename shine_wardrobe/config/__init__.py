# Config module (v1.1.0)
from shine_wardrobe.config.settings import get_settings, reload_settings, Settings
from shine_wardrobe.config.providers import (
    get_provider_status,
    get_provider_availability,
    validate_provider_config,
)
from shine_wardrobe.config.llm_config import (
    LLMProvider,
    ActiveLLMConfig,
    get_llm_config,
)
