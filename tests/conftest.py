"""
Shared pytest fixtures.
"""

import pytest

from voice_polish.settings import (
    AudioSettings,
    CleanupSettings,
    GeminiSettings,
    OpenRouterSettings,
    ServerSettings,
    Settings,
    WhisperSettings,
)


@pytest.fixture
def settings() -> Settings:
    """Mock-provider settings that need no API keys."""
    return Settings(
        server=ServerSettings(host="127.0.0.1", port=3000, log_level="INFO"),
        whisper=WhisperSettings(base_url="http://whisper.test"),
        audio=AudioSettings(
            ffmpeg_binary="ffmpeg",
            ffmpeg_timeout_seconds=None,
            max_upload_bytes=100 * 1024 * 1024,
            min_upload_bytes=1024,
        ),
        cleanup=CleanupSettings(
            provider="mock",
            gemini=GeminiSettings(api_key=None, model="gemini-2.0-flash-exp"),
            openrouter=OpenRouterSettings(
                api_key=None,
                model="anthropic/claude-3.5-sonnet",
                base_url="https://openrouter.ai/api/v1",
            ),
        ),
    )
