from __future__ import annotations

"""Normalize → transcribe → clean up, as one request/response cycle."""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol

from .audio.normalizer import AudioNormalizer
from .audio.types import AudioPayload, NormalizedAudio
from .asr.client import WhisperTranscriptionClient
from .cleanup.providers import CleanupProvider, build_cleanup_provider
from .settings import Settings

logger = logging.getLogger(__name__)


class Normalizer(Protocol):
    async def convert_to_canonical(self, payload: AudioPayload) -> NormalizedAudio: ...


class Transcriber(Protocol):
    async def transcribe(self, audio: NormalizedAudio) -> str: ...

    async def check_availability(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class TranscriptResult:
    original: str
    cleaned: str
    intelligent: str


@dataclass(frozen=True, slots=True)
class HealthReport:
    transcription_available: bool
    cleanup_configured: bool


class PipelineError(RuntimeError):
    """A stage failed; ``stage`` names it and ``__cause__`` holds the original error."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        super().__init__(str(cause) or cause.__class__.__name__)
        self.stage = stage
        self.cause = cause


class TranscriptionPipeline:
    STAGE_NORMALIZE = "normalization"
    STAGE_TRANSCRIBE = "transcription"
    STAGE_CLEANUP = "cleanup"

    def __init__(
        self,
        *,
        normalizer: Normalizer,
        transcriber: Transcriber,
        cleanup: CleanupProvider,
    ) -> None:
        self._normalizer = normalizer
        self._transcriber = transcriber
        self._cleanup = cleanup

    @classmethod
    def from_settings(cls, settings: Settings) -> "TranscriptionPipeline":
        return cls(
            normalizer=AudioNormalizer.from_settings(settings.audio),
            transcriber=WhisperTranscriptionClient.from_settings(settings.whisper),
            cleanup=build_cleanup_provider(settings.cleanup),
        )

    @property
    def cleanup_provider(self) -> CleanupProvider:
        return self._cleanup

    async def close(self) -> None:
        await self._cleanup.close()

    async def process_audio(self, payload: Optional[AudioPayload]) -> TranscriptResult:
        if payload is None or not payload.data:
            raise ValueError("audio payload is required")

        started = time.perf_counter()
        logger.info(
            "pipeline.audio.start",
            extra={"upload_name": payload.filename, "size": payload.size, "content_type": payload.content_type},
        )

        try:
            normalized = await self._normalizer.convert_to_canonical(payload)
        except Exception as exc:
            raise PipelineError(self.STAGE_NORMALIZE, exc) from exc

        try:
            raw = await self._transcriber.transcribe(normalized)
        except Exception as exc:
            raise PipelineError(self.STAGE_TRANSCRIBE, exc) from exc

        logger.info(
            "pipeline.audio.transcribed",
            extra={"upload_name": payload.filename, "raw_length": len(raw)},
        )
        result = await self._run_cleanups(raw)
        logger.info(
            "pipeline.audio.complete",
            extra={"upload_name": payload.filename, "latency_ms": round((time.perf_counter() - started) * 1000.0, 1)},
        )
        return result

    async def process_text(self, raw: Optional[str]) -> TranscriptResult:
        if not isinstance(raw, str) or not raw.strip():
            raise ValueError("text is required")

        logger.info("pipeline.text.start", extra={"text_length": len(raw)})
        return await self._run_cleanups(raw)

    async def health_check(self) -> HealthReport:
        try:
            available = await self._transcriber.check_availability()
        except Exception:
            logger.warning("pipeline.health.probe_failed", exc_info=True)
            available = False
        return HealthReport(
            transcription_available=bool(available),
            cleanup_configured=bool(self._cleanup.is_configured),
        )

    async def _run_cleanups(self, raw: str) -> TranscriptResult:
        # Both passes are awaited before the outcome is decided, so a failure
        # in one never leaves the other running unobserved.
        cleaned, intelligent = await asyncio.gather(
            self._cleanup.cleanup_transcript(raw),
            self._cleanup.intelligent_cleanup(raw),
            return_exceptions=True,
        )
        for outcome in (cleaned, intelligent):
            if isinstance(outcome, BaseException):
                raise PipelineError(self.STAGE_CLEANUP, outcome) from outcome

        return TranscriptResult(original=raw, cleaned=cleaned, intelligent=intelligent)


__all__ = ["HealthReport", "PipelineError", "TranscriptResult", "TranscriptionPipeline"]
