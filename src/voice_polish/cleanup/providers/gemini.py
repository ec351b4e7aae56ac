from __future__ import annotations

import google.generativeai as genai

from .base import CleanupProvider


class GeminiCleanupProvider(CleanupProvider):
    """Cleanup backed by Google's Gemini models."""

    name = "gemini"

    def __init__(self, *, api_key: str, model: str, temperature: float | None = None) -> None:
        if not api_key:
            raise ValueError("api_key is required for GeminiCleanupProvider")
        # The SDK keeps credentials process-wide; providers are built once at startup.
        genai.configure(api_key=api_key)
        self._model_name = model
        self._model = genai.GenerativeModel(model)
        self._generation_config = {"temperature": temperature} if temperature is not None else None

    @property
    def model(self) -> str:
        return self._model_name

    async def generate(self, prompt: str) -> str:
        response = await self._model.generate_content_async(
            prompt,
            generation_config=self._generation_config,
        )
        return response.text
