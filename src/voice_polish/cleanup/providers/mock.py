from __future__ import annotations

import re

from ..prompts import extract_transcript
from .base import CleanupProvider

_FILLERS = re.compile(r"\b(?:u+m+|u+h+|e+r+m*|a+h+|you know)\b[,.]?\s*", re.IGNORECASE)
_PAUSES = re.compile(r"\[pause\]|\(pause\)|\.{3,}", re.IGNORECASE)
_SPACES = re.compile(r"\s+")


class MockCleanupProvider(CleanupProvider):
    """Rule-based stand-in for local development; needs no API key."""

    name = "mock"

    async def generate(self, prompt: str) -> str:
        text = extract_transcript(prompt)
        text = _PAUSES.sub(" ", text)
        text = _FILLERS.sub("", text)
        text = _SPACES.sub(" ", text).strip(" ,")
        return _capitalize_sentences(text)


def _capitalize_sentences(text: str) -> str:
    return re.sub(r"(^|[.!?]\s+)([a-z])", lambda m: m.group(1) + m.group(2).upper(), text)
