from __future__ import annotations

import os
import re
from dataclasses import dataclass

CANONICAL_CONTENT_TYPE = "audio/mpeg"
CANONICAL_EXTENSION = ".mp3"


@dataclass(frozen=True, slots=True)
class AudioPayload:
    """Raw audio supplied by a recording or an upload."""

    data: bytes
    content_type: str
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def base_content_type(self) -> str:
        """Content type without parameters, e.g. ``audio/webm`` for ``audio/webm;codecs=opus``."""
        return self.content_type.split(";", 1)[0].strip().lower()


@dataclass(frozen=True, slots=True)
class NormalizedAudio:
    """Mono 16 kHz MP3 ready for the transcription engine."""

    data: bytes
    filename: str
    content_type: str = CANONICAL_CONTENT_TYPE


def canonical_filename(filename: str) -> str:
    """Swap the extension for ``.mp3``; a bare name just gains the suffix."""
    stem = re.sub(r"\.[^.]*$", "", os.path.basename(filename or ""))
    return f"{stem or 'audio'}{CANONICAL_EXTENSION}"
