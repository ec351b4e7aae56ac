"""Audio ingestion and normalization."""

from .ingest import ALLOWED_AUDIO_TYPES, AudioIngestor, IngestLimits, UploadRejected
from .normalizer import AudioNormalizer, ConversionError, PrepError, ReadbackError
from .types import AudioPayload, NormalizedAudio, canonical_filename

__all__ = [
    "ALLOWED_AUDIO_TYPES",
    "AudioIngestor",
    "AudioNormalizer",
    "AudioPayload",
    "ConversionError",
    "IngestLimits",
    "NormalizedAudio",
    "PrepError",
    "ReadbackError",
    "UploadRejected",
    "canonical_filename",
]
