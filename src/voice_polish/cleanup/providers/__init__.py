"""Cleanup provider implementations and the startup-time registry."""

from __future__ import annotations

from typing import Callable, Dict, List

from ...settings import CleanupSettings, ConfigurationError
from .base import CleanupFailedError, CleanupMode, CleanupProvider, EmptyResponseError
from .mock import MockCleanupProvider

ProviderBuilder = Callable[[CleanupSettings], CleanupProvider]


def _build_gemini(cfg: CleanupSettings) -> CleanupProvider:
    # Imported lazily so the SDK is only loaded when selected.
    from .gemini import GeminiCleanupProvider

    if not cfg.gemini.api_key:
        raise ConfigurationError("GEMINI_API_KEY environment variable is required when using Gemini provider")
    return GeminiCleanupProvider(api_key=cfg.gemini.api_key, model=cfg.gemini.model)


def _build_openrouter(cfg: CleanupSettings) -> CleanupProvider:
    from .openrouter import OpenRouterCleanupProvider

    if not cfg.openrouter.api_key:
        raise ConfigurationError(
            "OPENROUTER_API_KEY environment variable is required when using OpenRouter provider"
        )
    return OpenRouterCleanupProvider(
        api_key=cfg.openrouter.api_key,
        model=cfg.openrouter.model,
        base_url=cfg.openrouter.base_url,
    )


def _build_mock(cfg: CleanupSettings) -> CleanupProvider:
    return MockCleanupProvider()


_providers: Dict[str, ProviderBuilder] = {
    "gemini": _build_gemini,
    "openrouter": _build_openrouter,
    "mock": _build_mock,
}


def register_provider(name: str, builder: ProviderBuilder) -> None:
    """Registers a cleanup backend under ``name`` for ``CLEANUP_PROVIDER``."""
    _providers[name.strip().lower()] = builder


def available_providers() -> List[str]:
    return sorted(_providers)


def build_cleanup_provider(cfg: CleanupSettings) -> CleanupProvider:
    """Creates the configured provider; unknown names are a configuration error."""
    builder = _providers.get((cfg.provider or "").strip().lower())
    if builder is None:
        raise ConfigurationError(
            f"Unsupported cleanup provider: {cfg.provider!r} (available: {', '.join(available_providers())})"
        )
    return builder(cfg)


__all__ = [
    "CleanupFailedError",
    "CleanupMode",
    "CleanupProvider",
    "EmptyResponseError",
    "MockCleanupProvider",
    "ProviderBuilder",
    "available_providers",
    "build_cleanup_provider",
    "register_provider",
]
