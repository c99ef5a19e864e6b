"""Provider registry: stores configured LLM provider instances."""

from threadchat.providers.base import LLMProvider

_providers: dict[str, LLMProvider] = {}


def register_provider(provider: LLMProvider) -> None:
    """Register a provider instance by name. A later registration replaces an earlier one."""
    _providers[provider.name] = provider


def find_provider(name: str) -> LLMProvider | None:
    """The provider registered under name, or None if nothing was registered under it."""
    return _providers.get(name)


def clear_providers() -> None:
    """Clear all registered providers. Used at shutdown and in tests."""
    _providers.clear()
