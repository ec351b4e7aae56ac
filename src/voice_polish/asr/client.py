from __future__ import annotations

"""HTTP client for the Whisper ASR webservice."""

import logging
from typing import Optional

import httpx

from ..audio.types import NormalizedAudio
from ..settings import WhisperSettings

logger = logging.getLogger(__name__)

ASR_PATH = "/asr"
# The webservice answers a bare POST with a validation error once it is up.
AVAILABLE_STATUS = 422


class TranscriptionError(RuntimeError):
    """Base class for failures reported by the transcription engine."""


class EngineError(TranscriptionError):
    """Raised when the engine answers with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        super().__init__(f"Whisper API error: {status_code} {body}".rstrip())
        self.status_code = status_code
        self.body = body


class EmptyResultError(TranscriptionError):
    """Raised when the engine returns no usable text."""


class WhisperTranscriptionClient:
    """Posts normalized audio to ``{base_url}/asr`` and extracts the transcript.

    Transport failures (``httpx.TransportError``) are not wrapped; they reach
    the caller as raised by httpx.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout: Optional[float] = None,
        probe_timeout: float = 5.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._probe_timeout = probe_timeout

    @classmethod
    def from_settings(cls, cfg: WhisperSettings) -> "WhisperTranscriptionClient":
        return cls(base_url=cfg.base_url)

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}{ASR_PATH}"

    async def transcribe(self, audio: NormalizedAudio) -> str:
        logger.info(
            "asr.transcribe.start",
            extra={"upload_name": audio.filename, "size": len(audio.data), "endpoint": self.endpoint},
        )
        files = {"audio_file": (audio.filename, audio.data, audio.content_type)}
        form = {"task": "transcribe", "output": "txt"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(self.endpoint, files=files, data=form)
        except httpx.TransportError as exc:
            logger.error("asr.transcribe.transport_error", extra={"endpoint": self.endpoint, "error": repr(exc)})
            raise

        if not response.is_success:
            logger.error(
                "asr.transcribe.engine_error",
                extra={"endpoint": self.endpoint, "status": response.status_code},
            )
            raise EngineError(response.status_code, response.text)

        text = _extract_text(response)
        if not text or not text.strip():
            raise EmptyResultError("Empty transcription result from Whisper")

        text = text.strip()
        logger.info(
            "asr.transcribe.complete",
            extra={"upload_name": audio.filename, "transcript_length": len(text)},
        )
        return text

    async def check_availability(self) -> bool:
        """Liveness probe; only HTTP 422 counts as available."""

        try:
            async with httpx.AsyncClient(timeout=self._probe_timeout) as client:
                response = await client.post(self.endpoint)
        except Exception as exc:
            logger.warning("asr.availability.failed", extra={"endpoint": self.endpoint, "error": repr(exc)})
            return False

        available = response.status_code == AVAILABLE_STATUS
        if available:
            logger.info("asr.availability.ok", extra={"endpoint": self.endpoint})
        else:
            logger.warning(
                "asr.availability.unexpected_status",
                extra={"endpoint": self.endpoint, "status": response.status_code},
            )
        return available


def _extract_text(response: httpx.Response) -> str:
    content_type = response.headers.get("content-type", "")
    if "application/json" in content_type:
        try:
            data = response.json()
        except ValueError as exc:
            raise EngineError(response.status_code, f"invalid JSON body: {exc}") from exc
        if isinstance(data, dict):
            return str(data.get("text") or "")
        return ""
    return response.text


__all__ = [
    "EmptyResultError",
    "EngineError",
    "TranscriptionError",
    "WhisperTranscriptionClient",
]
