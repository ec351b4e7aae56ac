from __future__ import annotations

import abc
import enum
from typing import Callable, Optional

from ..types import CaptureConstraints

ChunkCallback = Callable[[bytes], None]


class DeviceErrorCode(str, enum.Enum):
    PERMISSION_DENIED = "permission-denied"
    DEVICE_NOT_FOUND = "device-not-found"
    DEVICE_BUSY = "device-busy"
    OVERCONSTRAINED = "overconstrained"
    NOT_SUPPORTED = "not-supported"
    INVALID_CONFIGURATION = "invalid-configuration"
    UNKNOWN = "unknown"


class CaptureDeviceError(RuntimeError):
    """Low-level device failure raised by backends while opening a stream."""

    def __init__(self, code: DeviceErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code


class CaptureStream(abc.ABC):
    """An opened microphone that delivers encoded chunks once started."""

    @property
    @abc.abstractmethod
    def mime_type(self) -> Optional[str]:
        """Encoding the stream actually produces, if it can tell."""

    @abc.abstractmethod
    def start(self, *, mime_type: str, timeslice: float, on_chunk: ChunkCallback) -> None:
        """Begin capture, calling ``on_chunk`` from the event loop every ``timeslice`` seconds."""

    @abc.abstractmethod
    async def pause(self) -> None:
        """Halt capture, flushing buffered audio through ``on_chunk`` first."""

    @abc.abstractmethod
    async def resume(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def stop(self) -> None:
        """Flush the final chunk through ``on_chunk`` and release the device."""


class CaptureBackend(abc.ABC):
    name: str

    @abc.abstractmethod
    def is_available(self) -> bool:
        """Whether the host offers this capture API at all."""

    @abc.abstractmethod
    def is_type_supported(self, mime_type: str) -> bool:
        raise NotImplementedError

    @abc.abstractmethod
    async def open(self, constraints: CaptureConstraints) -> CaptureStream:
        """Acquire the microphone; raises ``CaptureDeviceError`` on failure."""
