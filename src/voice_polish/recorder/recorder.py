from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Optional, Sequence

from ..audio.types import AudioPayload
from .backends import CaptureBackend, CaptureDeviceError, CaptureStream, DeviceErrorCode, default_backend
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
    UnsupportedError,
)
from .types import CaptureConstraints, RecordingSession, RecordingState, format_elapsed

logger = logging.getLogger(__name__)

MIME_TYPE_PREFERENCES: Sequence[str] = (
    "audio/webm",
    "audio/webm;codecs=opus",
    "audio/ogg;codecs=opus",
    "audio/mp4",
    "audio/wav",
)
DEFAULT_MIME_TYPE = "audio/webm"

_DEVICE_ERRORS = {
    DeviceErrorCode.PERMISSION_DENIED: (
        MicrophonePermissionError,
        "Microphone access was denied. Allow microphone access and try again.",
    ),
    DeviceErrorCode.DEVICE_NOT_FOUND: (
        MicrophoneNotFoundError,
        "No microphone was found. Connect a microphone and try again.",
    ),
    DeviceErrorCode.DEVICE_BUSY: (
        MicrophoneBusyError,
        "The microphone is already in use by another application.",
    ),
    DeviceErrorCode.OVERCONSTRAINED: (
        MicrophoneConstraintsError,
        "The microphone does not support the requested recording settings.",
    ),
    DeviceErrorCode.NOT_SUPPORTED: (
        CaptureContextError,
        "Audio capture is not permitted in this environment.",
    ),
    DeviceErrorCode.INVALID_CONFIGURATION: (
        MicrophoneConfigurationError,
        "The audio device configuration is invalid.",
    ),
}


def _extension_for(mime_type: str) -> str:
    base = mime_type.split(";", 1)[0].strip().lower()
    subtype = base.split("/", 1)[-1] or "webm"
    return {"mpeg": "mp3", "x-wav": "wav", "wave": "wav"}.get(subtype, subtype)


def device_error_to_recorder_error(exc: CaptureDeviceError) -> MicrophoneAccessError:
    error_cls, message = _DEVICE_ERRORS.get(
        exc.code,
        (MicrophoneAccessError, f"Could not access the microphone: {exc}"),
    )
    return error_cls(message)


class AudioRecorder:
    """Captures microphone audio into an in-memory recording.

    The recorder owns at most one ``RecordingSession``. Chunks arrive from
    the backend stream on the event loop; elapsed time is counted by a
    one-second ticker task.
    """

    def __init__(
        self,
        backend: Optional[CaptureBackend] = None,
        *,
        timeslice: float = 1.0,
        constraints: CaptureConstraints = CaptureConstraints(),
        mime_preferences: Sequence[str] = MIME_TYPE_PREFERENCES,
    ) -> None:
        self._backend = backend if backend is not None else default_backend()
        self._timeslice = timeslice
        self._constraints = constraints
        self._mime_preferences = tuple(mime_preferences)
        self._session: Optional[RecordingSession] = None
        self._stream: Optional[CaptureStream] = None
        self._ticker: Optional[asyncio.Task[None]] = None
        self._elapsed_seconds = 0
        self._last_recording: Optional[AudioPayload] = None

    @property
    def state(self) -> RecordingState:
        return self._session.state if self._session is not None else RecordingState.IDLE

    @property
    def elapsed_seconds(self) -> int:
        if self._session is not None:
            return self._session.elapsed_seconds
        return self._elapsed_seconds

    @property
    def formatted_time(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    @property
    def last_recording(self) -> Optional[AudioPayload]:
        return self._last_recording

    def select_mime_type(self) -> str:
        for mime_type in self._mime_preferences:
            if self._backend.is_type_supported(mime_type):
                return mime_type
        raise NoSupportedFormatError("No supported audio format found for recording")

    async def start_recording(self) -> None:
        if self._session is not None:
            raise RecorderBusyError("A recording is already in progress")
        if not self._backend.is_available():
            raise UnsupportedError("Audio recording is not supported in this environment")
        # Pick the format before acquiring the device so a failure leaves nothing open.
        mime_type = self.select_mime_type()

        try:
            stream = await self._backend.open(self._constraints)
        except CaptureDeviceError as exc:
            logger.warning(
                "recorder.open_failed",
                extra={"code": exc.code.value, "backend": self._backend.name},
            )
            raise device_error_to_recorder_error(exc) from exc

        session = RecordingSession(mime_type=mime_type)
        self._session = session
        self._stream = stream
        self._elapsed_seconds = 0
        try:
            stream.start(mime_type=mime_type, timeslice=self._timeslice, on_chunk=session.append_chunk)
        except Exception:
            self._session = None
            self._stream = None
            await stream.stop()
            raise
        self._ticker = asyncio.get_running_loop().create_task(self._tick(session))
        logger.info("recorder.started", extra={"mime_type": mime_type, "backend": self._backend.name})

    async def stop_recording(self) -> Optional[AudioPayload]:
        session, stream = self._session, self._stream
        if session is None or stream is None:
            return None

        await self._cancel_ticker()
        try:
            await stream.stop()
        finally:
            self._session = None
            self._stream = None
            self._elapsed_seconds = session.elapsed_seconds
            data = session.finish()

        mime_type = stream.mime_type or DEFAULT_MIME_TYPE
        payload = AudioPayload(
            data=data,
            content_type=mime_type,
            filename=f"recording_{int(time.time() * 1000)}.{_extension_for(mime_type)}",
        )
        self._last_recording = payload
        logger.info(
            "recorder.stopped",
            extra={"bytes": payload.size, "elapsed_seconds": self._elapsed_seconds},
        )
        return payload

    async def pause_recording(self) -> None:
        session, stream = self._session, self._stream
        if session is None or stream is None or session.state is not RecordingState.RECORDING:
            return
        # Stream first so its pending frames still land in the session.
        await stream.pause()
        session.pause()

    async def resume_recording(self) -> None:
        session, stream = self._session, self._stream
        if session is None or stream is None or session.state is not RecordingState.PAUSED:
            return
        session.resume()
        await stream.resume()

    async def reset(self) -> None:
        if self._session is not None:
            await self.stop_recording()
        self._last_recording = None
        self._elapsed_seconds = 0

    async def _tick(self, session: RecordingSession) -> None:
        while True:
            await asyncio.sleep(1.0)
            session.tick()

    async def _cancel_ticker(self) -> None:
        if self._ticker is None:
            return
        self._ticker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._ticker
        self._ticker = None
