from __future__ import annotations

"""Runtime configuration helpers for voice-polish."""

import os
from dataclasses import dataclass


class ConfigurationError(RuntimeError):
    """Raised when the environment cannot produce a usable configuration."""


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float | None) -> float | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _env_str(name: str) -> str | None:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class ServerSettings:
    host: str
    port: int
    log_level: str


@dataclass(frozen=True)
class WhisperSettings:
    base_url: str


@dataclass(frozen=True)
class AudioSettings:
    ffmpeg_binary: str
    ffmpeg_timeout_seconds: float | None
    max_upload_bytes: int
    min_upload_bytes: int


@dataclass(frozen=True)
class GeminiSettings:
    api_key: str | None
    model: str


@dataclass(frozen=True)
class OpenRouterSettings:
    api_key: str | None
    model: str
    base_url: str


@dataclass(frozen=True)
class CleanupSettings:
    provider: str
    gemini: GeminiSettings
    openrouter: OpenRouterSettings


@dataclass(frozen=True)
class Settings:
    server: ServerSettings
    whisper: WhisperSettings
    audio: AudioSettings
    cleanup: CleanupSettings


def validate_settings(settings: Settings) -> Settings:
    """Reject configurations the selected cleanup provider cannot run with."""

    provider = settings.cleanup.provider
    if provider == "gemini" and not settings.cleanup.gemini.api_key:
        raise ConfigurationError("GEMINI_API_KEY environment variable is required when using Gemini provider")
    if provider == "openrouter" and not settings.cleanup.openrouter.api_key:
        raise ConfigurationError(
            "OPENROUTER_API_KEY environment variable is required when using OpenRouter provider"
        )
    if settings.audio.min_upload_bytes > settings.audio.max_upload_bytes:
        raise ConfigurationError("MIN_UPLOAD_BYTES must not exceed MAX_UPLOAD_BYTES")
    return settings


def load_settings() -> Settings:
    """Load settings from environment variables with sensible defaults.

    Raises ``ConfigurationError`` when the selected cleanup provider's API
    key is missing; callers are expected to let that stop the process before
    it starts serving. Unknown provider names are rejected when the provider
    is built.
    """

    server_settings = ServerSettings(
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 3000),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )

    whisper_settings = WhisperSettings(
        base_url=os.getenv("WHISPER_API_URL", "http://localhost:9000").rstrip("/"),
    )

    audio_settings = AudioSettings(
        ffmpeg_binary=os.getenv("FFMPEG_BINARY", "ffmpeg"),
        ffmpeg_timeout_seconds=_env_float("FFMPEG_TIMEOUT_SECONDS", None),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 100 * 1024 * 1024),
        min_upload_bytes=_env_int("MIN_UPLOAD_BYTES", 1024),
    )

    cleanup_settings = CleanupSettings(
        provider=(os.getenv("CLEANUP_PROVIDER") or "gemini").strip().lower(),
        gemini=GeminiSettings(
            api_key=_env_str("GEMINI_API_KEY"),
            model=os.getenv("GEMINI_MODEL", "gemini-2.0-flash-exp"),
        ),
        openrouter=OpenRouterSettings(
            api_key=_env_str("OPENROUTER_API_KEY"),
            model=os.getenv("OPENROUTER_MODEL", "anthropic/claude-3.5-sonnet"),
            base_url=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        ),
    )

    return validate_settings(
        Settings(
            server=server_settings,
            whisper=whisper_settings,
            audio=audio_settings,
            cleanup=cleanup_settings,
        )
    )


__all__ = [
    "AudioSettings",
    "CleanupSettings",
    "ConfigurationError",
    "GeminiSettings",
    "OpenRouterSettings",
    "ServerSettings",
    "Settings",
    "WhisperSettings",
    "load_settings",
    "validate_settings",
]
