from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openai import AsyncOpenAI

from .base import CleanupProvider

logger = logging.getLogger(__name__)


class OpenRouterCleanupProvider(CleanupProvider):
    """Cleanup through OpenRouter's OpenAI-compatible chat completions API."""

    name = "openrouter"

    def __init__(
        self,
        *,
        api_key: Optional[str],
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        client: Optional[AsyncOpenAI] = None,
    ) -> None:
        self._model = model
        if client is None:
            if not api_key:
                raise ValueError("api_key is required for OpenRouterCleanupProvider")
            self._client = AsyncOpenAI(api_key=api_key, base_url=base_url)
            self._owns_client = True
        else:
            self._client = client
            self._owns_client = False

    @property
    def model(self) -> str:
        return self._model

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()

    async def generate(self, prompt: str) -> str:
        params: Dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
        }
        resp = await self._client.chat.completions.create(**params)
        logger.info("cleanup.openrouter.complete", extra={"model": self._model})
        for choice in getattr(resp, "choices", []) or []:
            message = getattr(choice, "message", None)
            if not message:
                continue
            content = getattr(message, "content", None)
            if isinstance(content, str) and content.strip():
                return content
        return ""
