"""Transcript cleanup passes."""

from .prompts import build_cleanup_prompt, build_intelligent_prompt
from .providers import (
    CleanupFailedError,
    CleanupMode,
    CleanupProvider,
    EmptyResponseError,
    MockCleanupProvider,
    available_providers,
    build_cleanup_provider,
    register_provider,
)

__all__ = [
    "CleanupFailedError",
    "CleanupMode",
    "CleanupProvider",
    "EmptyResponseError",
    "MockCleanupProvider",
    "available_providers",
    "build_cleanup_provider",
    "build_cleanup_prompt",
    "build_intelligent_prompt",
    "register_provider",
]
