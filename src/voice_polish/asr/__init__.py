"""Transcription engine client."""

from .client import EmptyResultError, EngineError, TranscriptionError, WhisperTranscriptionClient

__all__ = ["EmptyResultError", "EngineError", "TranscriptionError", "WhisperTranscriptionClient"]
