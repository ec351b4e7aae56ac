from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from .types import AudioPayload

logger = logging.getLogger(__name__)

ALLOWED_AUDIO_TYPES = (
    "audio/wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/mp4",
    "audio/m4a",
    "audio/x-m4a",
    "audio/webm",
    "audio/ogg",
)


class UploadRejected(ValueError):
    """Raised when an inbound audio upload fails validation."""


@dataclass(slots=True)
class IngestLimits:
    max_bytes: int = 100 * 1024 * 1024
    min_bytes: int = 1024


class AudioIngestor:
    """Validates inbound uploads and turns them into AudioPayload objects."""

    def __init__(self, *, limits: IngestLimits | None = None) -> None:
        self._limits = limits or IngestLimits()

    @property
    def limits(self) -> IngestLimits:
        return self._limits

    def check_content_type(self, content_type: str | None) -> str:
        base = (content_type or "").split(";", 1)[0].strip().lower()
        if base not in ALLOWED_AUDIO_TYPES:
            raise UploadRejected(f"Invalid file type. Allowed types: {', '.join(ALLOWED_AUDIO_TYPES)}")
        return base

    def check_size(self, size: int) -> None:
        if size > self._limits.max_bytes:
            max_mb = self._limits.max_bytes // (1024 * 1024)
            raise UploadRejected(f"File too large. Maximum size is {max_mb}MB")
        if size < self._limits.min_bytes:
            raise UploadRejected("Audio file is too small or corrupted")

    async def from_bytes(self, *, data: bytes, content_type: str | None, filename: str | None) -> AudioPayload:
        self.check_content_type(content_type)
        self.check_size(len(data))
        payload = AudioPayload(data=data, content_type=content_type or "", filename=filename or "audio")
        logger.debug(
            "audio.ingest.accepted",
            extra={"upload_name": payload.filename, "size": payload.size, "content_type": payload.content_type},
        )
        return payload

    async def from_upload(
        self,
        *,
        file_reader: Callable[[int], Awaitable[bytes]],
        content_type: str | None,
        filename: str | None,
    ) -> AudioPayload:
        """Read an upload, stopping one byte past the limit so oversized bodies are never held whole."""

        self.check_content_type(content_type)
        data = await file_reader(self._limits.max_bytes + 1)
        return await self.from_bytes(data=data, content_type=content_type, filename=filename)


__all__ = ["ALLOWED_AUDIO_TYPES", "AudioIngestor", "IngestLimits", "UploadRejected"]
