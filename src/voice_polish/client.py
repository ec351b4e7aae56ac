from __future__ import annotations

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .audio.ingest import ALLOWED_AUDIO_TYPES, IngestLimits
from .audio.types import AudioPayload

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:3000"


class ApiError(RuntimeError):
    """The service answered with a non-success status."""

    def __init__(self, status_code: int, error: str, message: Optional[str] = None) -> None:
        detail = f"{error}: {message}" if message else error
        super().__init__(detail)
        self.status_code = status_code
        self.error = error
        self.message = message


class FileValidationError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class TranscriptionResponse:
    original: str
    cleaned: str
    intelligent: Optional[str]
    message: str

    @classmethod
    def from_json(cls, body: Dict[str, Any]) -> "TranscriptionResponse":
        return cls(
            original=str(body.get("original", "")),
            cleaned=str(body.get("cleaned", "")),
            intelligent=body.get("intelligent"),
            message=str(body.get("message", "")),
        )


def validate_audio_file(content_type: Optional[str], size: int, *, max_bytes: Optional[int] = None) -> None:
    """Client-side checks before upload; the server repeats them."""

    base = (content_type or "").split(";", 1)[0].strip().lower()
    if base not in ALLOWED_AUDIO_TYPES:
        raise FileValidationError("Invalid file type. Please upload a WAV, MP3, M4A, WebM, or OGG audio file.")
    limit = max_bytes if max_bytes is not None else IngestLimits().max_bytes
    if size > limit:
        raise FileValidationError(f"File is too large. Maximum size is {limit // (1024 * 1024)}MB.")


_EXTENSION_TYPES = {
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".m4a": "audio/m4a",
    ".webm": "audio/webm",
    ".ogg": "audio/ogg",
    ".oga": "audio/ogg",
    ".opus": "audio/ogg",
}
# mimetypes reports container types for some audio-only files.
_TYPE_ALIASES = {
    "audio/x-wav": "audio/wav",
    "video/webm": "audio/webm",
    "video/ogg": "audio/ogg",
}


def guess_audio_type(path: str) -> Optional[str]:
    extension = os.path.splitext(path)[1].lower()
    if extension in _EXTENSION_TYPES:
        return _EXTENSION_TYPES[extension]
    content_type, _ = mimetypes.guess_type(path)
    return _TYPE_ALIASES.get(content_type, content_type) if content_type else None


def load_audio_file(path: str, *, content_type: Optional[str] = None) -> AudioPayload:
    content_type = content_type or guess_audio_type(path)
    validate_audio_file(content_type, os.path.getsize(path))
    with open(path, "rb") as fh:
        data = fh.read()
    return AudioPayload(data=data, content_type=content_type or "", filename=os.path.basename(path))


class TranscriptionApiClient:
    """Async client for the voice-polish HTTP service."""

    def __init__(self, base_url: str = DEFAULT_API_URL, *, timeout: Optional[float] = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def base_url(self) -> str:
        return self._base_url

    async def transcribe_audio(self, audio: AudioPayload) -> TranscriptionResponse:
        files = {"audio": (audio.filename, audio.data, audio.content_type)}
        logger.info(
            "client.transcribe.start",
            extra={"upload_name": audio.filename, "size": audio.size},
        )
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(f"{self._base_url}/transcribe", files=files)
        return TranscriptionResponse.from_json(self._json_or_raise(response))

    async def cleanup_text(self, text: str) -> TranscriptionResponse:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.post(f"{self._base_url}/cleanup-text", json={"text": text})
        return TranscriptionResponse.from_json(self._json_or_raise(response))

    async def check_health(self) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(f"{self._base_url}/health")
        return self._json_or_raise(response)

    @staticmethod
    def _json_or_raise(response: httpx.Response) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if response.is_success:
            return body
        error = str(body.get("error") or f"HTTP {response.status_code}")
        message = body.get("message")
        logger.warning(
            "client.request.failed",
            extra={"status": response.status_code, "error": error},
        )
        raise ApiError(response.status_code, error, message)


__all__ = [
    "ApiError",
    "DEFAULT_API_URL",
    "FileValidationError",
    "TranscriptionApiClient",
    "TranscriptionResponse",
    "guess_audio_type",
    "load_audio_file",
    "validate_audio_file",
]
