from __future__ import annotations

import asyncio
import contextlib
import logging
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import AsyncIterator, Optional

from ..settings import AudioSettings
from .types import AudioPayload, NormalizedAudio, canonical_filename

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 2000


class ConversionError(RuntimeError):
    """Raised when audio cannot be transcoded to the canonical format."""


class PrepError(ConversionError):
    """Raised when the upload cannot be staged for the transcoder."""


class ReadbackError(ConversionError):
    """Raised when the transcoder's output cannot be read back."""


@dataclass(slots=True)
class _StagedFiles:
    directory: Path
    input_path: Path
    output_path: Path


class AudioNormalizer:
    """Transcodes arbitrary audio into mono 16 kHz 192 kbit/s MP3 via ffmpeg.

    The payload is staged to a private temporary directory rather than piped,
    because ffmpeg only probes some containers (notably MP4/M4A with a
    trailing moov atom) reliably from a seekable file. The declared MIME
    type is never passed to ffmpeg; the container is detected from content.
    """

    def __init__(
        self,
        *,
        ffmpeg_binary: str = "ffmpeg",
        codec: str = "libmp3lame",
        bitrate: str = "192k",
        channels: int = 1,
        sample_rate: int = 16000,
        container: str = "mp3",
        timeout_seconds: Optional[float] = None,
        temp_root: Optional[str] = None,
    ) -> None:
        self._ffmpeg_binary = ffmpeg_binary
        self._codec = codec
        self._bitrate = bitrate
        self._channels = channels
        self._sample_rate = sample_rate
        self._container = container
        self._timeout_seconds = timeout_seconds
        self._temp_root = temp_root

    @classmethod
    def from_settings(cls, cfg: AudioSettings) -> "AudioNormalizer":
        return cls(ffmpeg_binary=cfg.ffmpeg_binary, timeout_seconds=cfg.ffmpeg_timeout_seconds)

    def build_command(self, input_path: Path, output_path: Path) -> list[str]:
        return [
            self._ffmpeg_binary,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i",
            str(input_path),
            "-vn",
            "-acodec",
            self._codec,
            "-b:a",
            self._bitrate,
            "-ac",
            str(self._channels),
            "-ar",
            str(self._sample_rate),
            "-f",
            self._container,
            str(output_path),
        ]

    async def convert_to_canonical(self, payload: AudioPayload) -> NormalizedAudio:
        logger.info(
            "audio.convert.start",
            extra={"upload_name": payload.filename, "content_type": payload.content_type, "size": payload.size},
        )
        async with self._staged(payload) as staged:
            await self._transcode(staged, payload.filename)
            try:
                data = await asyncio.to_thread(staged.output_path.read_bytes)
            except OSError as exc:
                logger.error("audio.convert.readback_failed", extra={"upload_name": payload.filename, "error": repr(exc)})
                raise ReadbackError(f"Failed to read converted audio: {exc}") from exc

        if not data:
            raise ReadbackError("Audio conversion produced no output")

        logger.info(
            "audio.convert.complete",
            extra={"upload_name": payload.filename, "original_size": payload.size, "converted_size": len(data)},
        )
        return NormalizedAudio(data=data, filename=canonical_filename(payload.filename))

    @contextlib.asynccontextmanager
    async def _staged(self, payload: AudioPayload) -> AsyncIterator[_StagedFiles]:
        try:
            directory = Path(
                await asyncio.to_thread(
                    tempfile.mkdtemp,
                    prefix=f"voice-polish-{time.time_ns()}-",
                    dir=self._temp_root,
                )
            )
        except OSError as exc:
            raise PrepError(f"Failed to prepare audio for conversion: {exc}") from exc

        staged = _StagedFiles(
            directory=directory,
            input_path=directory / "input",
            output_path=directory / "output.mp3",
        )
        try:
            try:
                await asyncio.to_thread(staged.input_path.write_bytes, payload.data)
            except OSError as exc:
                raise PrepError(f"Failed to prepare audio for conversion: {exc}") from exc
            yield staged
        finally:
            await asyncio.to_thread(_remove_staged, staged)

    async def _transcode(self, staged: _StagedFiles, filename: str) -> None:
        cmd = self.build_command(staged.input_path, staged.output_path)
        logger.debug("audio.convert.command", extra={"command": " ".join(cmd)})
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            logger.error("audio.convert.spawn_failed", extra={"binary": self._ffmpeg_binary, "error": repr(exc)})
            raise ConversionError(f"Audio conversion failed: cannot run {self._ffmpeg_binary}: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout_seconds)
        except asyncio.CancelledError:
            await _kill(process)
            logger.warning("audio.convert.cancelled", extra={"upload_name": filename})
            raise
        except asyncio.TimeoutError as exc:
            await _kill(process)
            raise ConversionError(
                f"Audio conversion failed: ffmpeg did not finish within {self._timeout_seconds}s"
            ) from exc

        if process.returncode != 0:
            detail = (stderr or b"").decode("utf-8", errors="replace").strip()[-_STDERR_TAIL_CHARS:]
            logger.error(
                "audio.convert.failed",
                extra={"upload_name": filename, "returncode": process.returncode, "stderr": detail},
            )
            raise ConversionError(f"Audio conversion failed: {detail or f'ffmpeg exited with {process.returncode}'}")


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await process.wait()


def _remove_staged(staged: _StagedFiles) -> None:
    for path in (staged.input_path, staged.output_path):
        try:
            path.unlink(missing_ok=True)
        except OSError:
            logger.warning("audio.convert.cleanup_failed", extra={"path": str(path)}, exc_info=True)
    try:
        staged.directory.rmdir()
    except OSError:
        logger.warning("audio.convert.cleanup_failed", extra={"path": str(staged.directory)}, exc_info=True)


__all__ = ["AudioNormalizer", "ConversionError", "PrepError", "ReadbackError"]
