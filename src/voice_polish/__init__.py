"""voice-polish: record or upload speech, transcribe it with Whisper, and clean it up with an LLM."""

__version__ = "0.1.0"
