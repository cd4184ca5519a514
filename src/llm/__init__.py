"""Multi-provider LLM abstraction layer."""

from .base import ImageInput, LLMAuthError, LLMError, LLMProvider, LLMRateLimitError
from .factory import create_cheap_provider, create_llm_provider, providers_from_config

__all__ = [
    "ImageInput",
    "LLMProvider",
    "create_llm_provider",
    "create_cheap_provider",
    "providers_from_config",
    "LLMError",
    "LLMRateLimitError",
    "LLMAuthError",
]
