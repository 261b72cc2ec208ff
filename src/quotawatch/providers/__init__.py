"""Provider registry for quotawatch."""

from __future__ import annotations

from quotawatch.errors.exceptions import ProviderNotFoundError
from quotawatch.models import UsageShape

# Provider registry
_PROVIDERS: dict[str, type] = {}


def register_provider(cls: type) -> type:
    """Decorator to register a provider class.

    Usage:
        @register_provider
        class ClaudeProvider(Provider):
            ...
    """
    if not hasattr(cls, "metadata"):
        raise ValueError(f"Provider {cls.__name__} must define metadata ClassVar")

    _PROVIDERS[cls.metadata.id] = cls
    return cls


def get_provider(provider_id: str) -> type | None:
    """Get a provider class by ID."""
    return _PROVIDERS.get(provider_id)


def get_all_providers() -> dict[str, type]:
    """Get all registered providers."""
    return dict(_PROVIDERS)


def list_provider_ids() -> list[str]:
    return list(_PROVIDERS.keys())


def provider_shapes() -> dict[str, UsageShape]:
    """Declared usage shape of every registered provider."""
    return {pid: cls.metadata.usage_shape for pid, cls in _PROVIDERS.items()}


def create_provider(provider_id: str):
    """Create an instance of a provider.

    Raises:
        ProviderNotFoundError: If provider not found
    """
    provider_cls = get_provider(provider_id)
    if provider_cls is None:
        raise ProviderNotFoundError(
            f"Unknown provider: {provider_id}", provider_id=provider_id
        )
    return provider_cls()


class RegistryFetcher:
    """Default usage fetcher: dispatches to registered providers.

    Provider instances are created on first use and reused.
    """

    def __init__(self, providers: dict | None = None) -> None:
        self._instances = dict(providers or {})

    def provider(self, provider_id: str):
        if provider_id not in self._instances:
            self._instances[provider_id] = create_provider(provider_id)
        return self._instances[provider_id]

    async def __call__(self, provider_id: str) -> dict:
        return await self.provider(provider_id).fetch_usage()

    async def aclose(self) -> None:
        from quotawatch.core.http import cleanup

        await cleanup()


# Import and register providers
from quotawatch.providers.base import Provider
from quotawatch.providers.claude import ClaudeProvider
from quotawatch.providers.openai import OpenAIProvider

register_provider(ClaudeProvider)
register_provider(OpenAIProvider)

__all__ = [
    "Provider",
    "ClaudeProvider",
    "OpenAIProvider",
    "RegistryFetcher",
    "register_provider",
    "get_provider",
    "get_all_providers",
    "list_provider_ids",
    "provider_shapes",
    "create_provider",
]
