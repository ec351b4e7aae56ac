"""Capture backends for the recorder."""

from .base import CaptureBackend, CaptureDeviceError, CaptureStream, ChunkCallback, DeviceErrorCode

__all__ = [
    "CaptureBackend",
    "CaptureDeviceError",
    "CaptureStream",
    "ChunkCallback",
    "DeviceErrorCode",
    "default_backend",
]


def default_backend() -> CaptureBackend:
    # Imported lazily: sounddevice loads PortAudio at import time.
    from .sounddevice_backend import SoundDeviceBackend

    return SoundDeviceBackend()
