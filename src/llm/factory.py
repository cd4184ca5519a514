"""Build the interpreter and enrichment providers from a provider name or config."""

import importlib
import os

from .base import LLMError, LLMProvider

_PROVIDER_ENV_KEYS = {
    "claude": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "gemini": "GOOGLE_API_KEY",
}

# Hosted providers are tried in this order when nothing is configured.
_AUTO_DETECT_ORDER = ["claude", "openai", "gemini"]

# name -> (module under llm.providers, class, takes an API key)
_PROVIDERS = {
    "claude": ("claude", "ClaudeProvider", True),
    "openai": ("openai", "OpenAIProvider", True),
    "gemini": ("gemini", "GeminiProvider", True),
    "ollama": ("ollama", "OllamaProvider", False),
}

# Fact extraction and routine analysis run on these smaller models.
_CHEAP_MODELS = {
    "claude": "claude-haiku-4-5",
    "openai": "gpt-4o-mini",
    "gemini": "gemini-2.5-flash-lite",
}


def create_llm_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
    base_url: str | None = None,
) -> LLMProvider:
    """Instantiate a provider by name.

    `provider` is one of the keys of `_PROVIDERS`, or "auto"/None to pick a hosted
    provider from the key prefix or environment. Hosted providers fall back to their
    env var for the key; `base_url` only matters for ollama. `client` is passed
    through so tests can inject a fake SDK or httpx client.
    """
    resolved = provider or "auto"
    if resolved == "auto":
        resolved = _auto_detect_provider(api_key)

    if resolved not in _PROVIDERS:
        raise LLMError(f"Unknown provider: {resolved}. Use: {', '.join(_PROVIDERS)}")
    module_name, class_name, keyed = _PROVIDERS[resolved]
    cls = getattr(importlib.import_module(f".providers.{module_name}", __package__), class_name)

    if not keyed:
        return cls(model=model, base_url=base_url, client=client)
    if not api_key and not client:
        api_key = os.getenv(_PROVIDER_ENV_KEYS[resolved])
    return cls(api_key=api_key, model=model, client=client)


def create_cheap_provider(
    provider: str | None = None,
    api_key: str | None = None,
    model: str | None = None,
    client=None,
    base_url: str | None = None,
) -> LLMProvider:
    """Same as create_llm_provider, defaulting to the provider's small model."""
    resolved = provider or "auto"
    if resolved == "auto":
        resolved = _auto_detect_provider(api_key)
    return create_llm_provider(
        provider=resolved,
        api_key=api_key,
        model=model or _CHEAP_MODELS.get(resolved),
        client=client,
        base_url=base_url,
    )


def providers_from_config(llm_config) -> tuple[LLMProvider, LLMProvider]:
    """Return (interpreter provider, enrichment provider) for an `llm:` config section.

    A local ollama server has no separate small model, so enrichment reuses the
    main model there unless `cheap_model` is set.
    """
    main = create_llm_provider(
        provider=llm_config.provider,
        api_key=llm_config.api_key,
        model=llm_config.model,
        base_url=llm_config.base_url,
    )
    cheap_model = llm_config.cheap_model
    if cheap_model is None and main.provider_name == "ollama":
        cheap_model = llm_config.model
    cheap = create_cheap_provider(
        provider=main.provider_name,
        api_key=llm_config.api_key,
        model=cheap_model,
        base_url=llm_config.base_url,
    )
    return main, cheap


def _detect_provider_from_key(api_key: str) -> str | None:
    for prefix, name in (("sk-ant-", "claude"), ("sk-", "openai"), ("AI", "gemini")):
        if api_key.startswith(prefix):
            return name
    return None


def _auto_detect_provider(api_key: str | None = None) -> str:
    """Key prefix first, then whichever provider env var is set."""
    if api_key:
        inferred = _detect_provider_from_key(api_key)
        if inferred:
            return inferred

    for name in _AUTO_DETECT_ORDER:
        if os.getenv(_PROVIDER_ENV_KEYS[name]):
            return name
    raise LLMError(
        "No LLM API key found. Set one of: ANTHROPIC_API_KEY, OPENAI_API_KEY, GOOGLE_API_KEY, "
        "or use provider 'ollama'"
    )
