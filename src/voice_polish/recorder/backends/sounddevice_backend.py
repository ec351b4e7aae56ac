from __future__ import annotations

import asyncio
import contextlib
import logging
import struct
import threading
from typing import Any, List, Optional

import numpy as np

try:
    import sounddevice as sd
except OSError:  # pragma: no cover - PortAudio shared library not installed
    sd = None  # type: ignore[assignment]

from ..types import CaptureConstraints
from .base import CaptureBackend, CaptureDeviceError, CaptureStream, ChunkCallback, DeviceErrorCode

logger = logging.getLogger(__name__)

WAV_MIME_TYPE = "audio/wav"
_UNBOUNDED = 0xFFFFFFFF

# PortAudio error numbers (portaudio.h, PaErrorCode).
_PORTAUDIO_CODES = {
    -10000: DeviceErrorCode.NOT_SUPPORTED,  # paNotInitialized
    -9998: DeviceErrorCode.OVERCONSTRAINED,  # paInvalidChannelCount
    -9997: DeviceErrorCode.OVERCONSTRAINED,  # paInvalidSampleRate
    -9996: DeviceErrorCode.DEVICE_NOT_FOUND,  # paInvalidDevice
    -9995: DeviceErrorCode.INVALID_CONFIGURATION,  # paInvalidFlag
    -9994: DeviceErrorCode.OVERCONSTRAINED,  # paSampleFormatNotSupported
    -9993: DeviceErrorCode.INVALID_CONFIGURATION,  # paBadIODeviceCombination
    -9985: DeviceErrorCode.DEVICE_BUSY,  # paDeviceUnavailable
    -9979: DeviceErrorCode.NOT_SUPPORTED,  # paHostApiNotFound
    -9978: DeviceErrorCode.NOT_SUPPORTED,  # paInvalidHostApi
}


def wav_stream_header(sample_rate: int, channels: int) -> bytes:
    """RIFF/WAVE header for 16-bit PCM whose length is not known up front.

    Both size fields hold 0xFFFFFFFF, which decoders (ffmpeg included) read
    as "until end of stream".
    """
    block_align = channels * 2
    return struct.pack(
        "<4sI4s4sIHHIIHH4sI",
        b"RIFF",
        _UNBOUNDED,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channels,
        sample_rate,
        sample_rate * block_align,
        block_align,
        16,
        b"data",
        _UNBOUNDED,
    )


def float_to_pcm16(frames: "np.ndarray") -> bytes:
    pcm = np.ascontiguousarray((frames * 32768.0).clip(-32768, 32767).astype("<i2"))
    return pcm.tobytes()


def classify_portaudio_error(exc: BaseException) -> DeviceErrorCode:
    args = getattr(exc, "args", ())
    code = args[1] if len(args) > 1 and isinstance(args[1], int) else None
    if code in _PORTAUDIO_CODES:
        return _PORTAUDIO_CODES[code]
    message = str(exc).lower()
    if "permission" in message or "not permitted" in message or "denied" in message:
        return DeviceErrorCode.PERMISSION_DENIED
    if "no input device" in message or "no default input" in message or "device unavailable" in message:
        return DeviceErrorCode.DEVICE_NOT_FOUND
    if "busy" in message:
        return DeviceErrorCode.DEVICE_BUSY
    return DeviceErrorCode.UNKNOWN


class SoundDeviceStream(CaptureStream):
    """PortAudio input stream that emits a streamed WAV in timed chunks."""

    def __init__(self, *, sample_rate: int, channels: int) -> None:
        self._sample_rate = sample_rate
        self._channels = channels
        self._lock = threading.Lock()
        self._pending: List["np.ndarray"] = []
        self._header_sent = False
        self._on_chunk: Optional[ChunkCallback] = None
        self._flush_task: Optional[asyncio.Task[None]] = None
        self._stream = sd.InputStream(
            samplerate=sample_rate,
            channels=channels,
            dtype="float32",
            callback=self._callback,
        )

    @property
    def mime_type(self) -> Optional[str]:
        return WAV_MIME_TYPE

    def start(self, *, mime_type: str, timeslice: float, on_chunk: ChunkCallback) -> None:
        if mime_type.split(";", 1)[0].strip().lower() != WAV_MIME_TYPE:
            raise ValueError(f"unsupported encoding for sounddevice capture: {mime_type}")
        self._on_chunk = on_chunk
        self._stream.start()
        self._flush_task = asyncio.get_running_loop().create_task(self._flush_loop(timeslice))

    async def pause(self) -> None:
        await asyncio.to_thread(self._stream.stop)
        self._flush()

    async def resume(self) -> None:
        await asyncio.to_thread(self._stream.start)

    async def stop(self) -> None:
        if self._flush_task is not None:
            self._flush_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._flush_task
            self._flush_task = None
        try:
            await asyncio.to_thread(self._stream.stop)
        finally:
            await asyncio.to_thread(self._stream.close)
        self._flush()
        self._on_chunk = None

    def _callback(self, indata: "np.ndarray", frames: int, time_info: Any, status: Any) -> None:
        # Runs on the PortAudio thread; only hand frames over.
        if status:
            logger.debug("recorder.sounddevice.status", extra={"status": str(status)})
        with self._lock:
            self._pending.append(indata.copy())

    async def _flush_loop(self, timeslice: float) -> None:
        while True:
            await asyncio.sleep(timeslice)
            self._flush()

    def _flush(self) -> None:
        with self._lock:
            blocks, self._pending = self._pending, []
        data = float_to_pcm16(np.concatenate(blocks)) if blocks else b""
        if data and not self._header_sent:
            data = wav_stream_header(self._sample_rate, self._channels) + data
            self._header_sent = True
        if self._on_chunk is not None:
            self._on_chunk(data)


class SoundDeviceBackend(CaptureBackend):
    """Microphone capture through PortAudio (``sounddevice``).

    PortAudio has no echo cancellation or noise suppression; those
    constraints are accepted and ignored.
    """

    name = "sounddevice"

    def is_available(self) -> bool:
        return sd is not None

    def is_type_supported(self, mime_type: str) -> bool:
        return mime_type.split(";", 1)[0].strip().lower() == WAV_MIME_TYPE

    async def open(self, constraints: CaptureConstraints) -> CaptureStream:
        if sd is None:
            raise CaptureDeviceError(DeviceErrorCode.NOT_SUPPORTED, "PortAudio is not available")
        try:
            await asyncio.to_thread(sd.query_devices, kind="input")
            return await asyncio.to_thread(
                SoundDeviceStream,
                sample_rate=constraints.sample_rate,
                channels=constraints.channels,
            )
        except sd.PortAudioError as exc:
            raise CaptureDeviceError(classify_portaudio_error(exc), str(exc)) from exc
        except ValueError as exc:
            # sounddevice raises ValueError for device lookups and bad parameters.
            code = DeviceErrorCode.DEVICE_NOT_FOUND if "device" in str(exc).lower() else DeviceErrorCode.INVALID_CONFIGURATION
            raise CaptureDeviceError(code, str(exc)) from exc
