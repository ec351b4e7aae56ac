"""Microphone capture producing an ``AudioPayload`` ready for upload."""

from .errors import (
    CaptureContextError,
    MicrophoneAccessError,
    MicrophoneBusyError,
    MicrophoneConfigurationError,
    MicrophoneConstraintsError,
    MicrophoneNotFoundError,
    MicrophonePermissionError,
    NoSupportedFormatError,
    RecorderBusyError,
    RecorderError,
    UnsupportedError,
)
from .recorder import DEFAULT_MIME_TYPE, MIME_TYPE_PREFERENCES, AudioRecorder
from .types import CaptureConstraints, RecordingSession, RecordingState, format_elapsed

__all__ = [
    "AudioRecorder",
    "CaptureConstraints",
    "CaptureContextError",
    "DEFAULT_MIME_TYPE",
    "MIME_TYPE_PREFERENCES",
    "MicrophoneAccessError",
    "MicrophoneBusyError",
    "MicrophoneConfigurationError",
    "MicrophoneConstraintsError",
    "MicrophoneNotFoundError",
    "MicrophonePermissionError",
    "NoSupportedFormatError",
    "RecorderBusyError",
    "RecorderError",
    "RecordingSession",
    "RecordingState",
    "UnsupportedError",
    "format_elapsed",
]
