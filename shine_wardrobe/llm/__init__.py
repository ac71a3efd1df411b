# LLM module (v1.1.0)
from shine_wardrobe.llm.llm_adapter import LLMClient, LLMUnavailableError
