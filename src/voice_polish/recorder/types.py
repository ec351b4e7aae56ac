from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import List


class RecordingState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"
    PAUSED = "paused"


@dataclass(frozen=True, slots=True)
class CaptureConstraints:
    echo_cancellation: bool = True
    noise_suppression: bool = True
    sample_rate: int = 44100
    channels: int = 1


@dataclass(slots=True)
class RecordingSession:
    """One capture from start to stop.

    The transition methods below are the only mutators; chunks are accepted
    only while RECORDING.
    """

    mime_type: str
    state: RecordingState = RecordingState.RECORDING
    chunks: List[bytes] = field(default_factory=list)
    elapsed_seconds: int = 0

    def append_chunk(self, chunk: bytes) -> bool:
        if self.state is not RecordingState.RECORDING or not chunk:
            return False
        self.chunks.append(bytes(chunk))
        return True

    def tick(self) -> None:
        if self.state is RecordingState.RECORDING:
            self.elapsed_seconds += 1

    def pause(self) -> bool:
        if self.state is not RecordingState.RECORDING:
            return False
        self.state = RecordingState.PAUSED
        return True

    def resume(self) -> bool:
        if self.state is not RecordingState.PAUSED:
            return False
        self.state = RecordingState.RECORDING
        return True

    def finish(self) -> bytes:
        data = b"".join(self.chunks)
        self.chunks.clear()
        self.state = RecordingState.IDLE
        return data


def format_elapsed(seconds: int) -> str:
    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{secs:02d}"
