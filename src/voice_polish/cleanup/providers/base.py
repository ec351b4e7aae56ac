from __future__ import annotations

import abc
import enum
import logging

from ..prompts import build_cleanup_prompt, build_intelligent_prompt

logger = logging.getLogger(__name__)


class CleanupMode(str, enum.Enum):
    CLEANUP = "cleanup"
    INTELLIGENT = "intelligent-cleanup"

    @property
    def failure_message(self) -> str:
        return f"Failed to {self.value} transcript"


class CleanupFailedError(RuntimeError):
    """Provider-agnostic cleanup failure; the engine's own error is chained, not shown."""

    def __init__(self, message: str, *, mode: CleanupMode) -> None:
        super().__init__(message)
        self.mode = mode


class EmptyResponseError(CleanupFailedError):
    """Raised when the engine answers with no text."""


class CleanupProvider(abc.ABC):
    """Interface for text-generation backends that polish transcripts.

    Subclasses implement :meth:`generate`; both cleanup passes share prompt
    building, trimming and the failure contract. Instances hold no
    per-request state, so the two passes may run concurrently.
    """

    name: str

    @property
    def is_configured(self) -> bool:
        return True

    async def cleanup_transcript(self, raw_transcript: str) -> str:
        return await self._process(raw_transcript, CleanupMode.CLEANUP)

    async def intelligent_cleanup(self, raw_transcript: str) -> str:
        return await self._process(raw_transcript, CleanupMode.INTELLIGENT)

    @abc.abstractmethod
    async def generate(self, prompt: str) -> str:
        """Send one prompt to the engine and return its text."""
        raise NotImplementedError

    async def close(self) -> None:
        return None

    async def _process(self, raw_transcript: str, mode: CleanupMode) -> str:
        logger.debug(
            "cleanup.start",
            extra={"provider": self.name, "mode": mode.value, "transcript_length": len(raw_transcript)},
        )
        prompt = (
            build_cleanup_prompt(raw_transcript)
            if mode is CleanupMode.CLEANUP
            else build_intelligent_prompt(raw_transcript)
        )
        try:
            text = await self.generate(prompt)
        except Exception as exc:
            logger.error(
                "cleanup.engine_error",
                extra={"provider": self.name, "mode": mode.value, "error": repr(exc)},
                exc_info=True,
            )
            raise CleanupFailedError(mode.failure_message, mode=mode) from exc

        cleaned = (text or "").strip()
        if not cleaned:
            logger.error("cleanup.empty_response", extra={"provider": self.name, "mode": mode.value})
            raise EmptyResponseError(mode.failure_message, mode=mode)

        logger.debug(
            "cleanup.complete",
            extra={
                "provider": self.name,
                "mode": mode.value,
                "original_length": len(raw_transcript),
                "cleaned_length": len(cleaned),
            },
        )
        return cleaned
