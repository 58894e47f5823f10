"""Provider factory and registry for hot-swappable LLM backends."""

from __future__ import annotations

import httpx

from ...config import ProviderConfig, get_api_key
from ...errors import ConfigError
from .base import CompletionProvider
from .gemini import GeminiProvider
from .openai_compatible import OpenAICompatibleProvider


ProviderBuilder = type[CompletionProvider]

_PROVIDER_REGISTRY: dict[str, ProviderBuilder] = {
    "gemini": GeminiProvider,
    "openai": OpenAICompatibleProvider,
    "openai_compatible": OpenAICompatibleProvider,
    "openai-compatible": OpenAICompatibleProvider,
}


def available_providers() -> list[str]:
    """Return the set of registered provider names."""
    return sorted(_PROVIDER_REGISTRY.keys())


def create_provider(
    provider_cfg: ProviderConfig,
    http_client: httpx.Client | None = None,
) -> CompletionProvider:
    """Build a provider instance from runtime config."""
    name = provider_cfg.name.lower().strip()
    builder = _PROVIDER_REGISTRY.get(name)
    if builder is None:
        supported = ", ".join(available_providers())
        raise ConfigError(f"Unsupported provider: {provider_cfg.name}. Supported: {supported}")
    api_key = get_api_key(provider_cfg)
    if not api_key:
        raise ConfigError(f"required environment variable {provider_cfg.api_key_env} is not set")
    return builder(provider_cfg, api_key, http_client=http_client)
