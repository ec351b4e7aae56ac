"""
Command line entry point for voice-polish.

  voice-polish serve [--host 0.0.0.0] [--port 3000]
  voice-polish record [--duration 30] [--save recording.wav]
  voice-polish upload path/to/audio.m4a
  voice-polish text "so um I was thinking we could uh ship it"
  voice-polish health

Client commands talk to the service at --api-url (default http://localhost:3000,
or VOICE_POLISH_API_URL).
"""
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import List, Optional

import httpx

from .client import (
    DEFAULT_API_URL,
    ApiError,
    FileValidationError,
    TranscriptionApiClient,
    TranscriptionResponse,
    load_audio_file,
)
from .logging_setup import setup_logging
from .recorder import AudioRecorder, RecorderError

logger = logging.getLogger(__name__)


def _print_result(result: TranscriptionResponse) -> None:
    sections = [("Original", result.original), ("Cleaned", result.cleaned)]
    if result.intelligent:
        sections.append(("Intelligent", result.intelligent))
    for title, text in sections:
        print(f"== {title} ==")
        print(text)
        print()
    if result.message:
        print(result.message)


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    from .app import create_app
    from .settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except ConfigurationError as exc:
        logger.error("serve.configuration_error", extra={"detail": str(exc)})
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    app = create_app(settings)
    uvicorn.run(
        app,
        host=args.host or settings.server.host,
        port=args.port or settings.server.port,
        log_level=settings.server.log_level.lower(),
    )
    return 0


async def _record(args: argparse.Namespace) -> int:
    recorder = AudioRecorder(timeslice=args.timeslice)
    try:
        await recorder.start_recording()
    except RecorderError as exc:
        print(f"recording failed: {exc}", file=sys.stderr)
        return 1

    try:
        if args.duration:
            print(f"Recording for {args.duration:g}s ...")
            await asyncio.sleep(args.duration)
        else:
            await asyncio.to_thread(input, "Recording... press Enter to stop ")
    finally:
        payload = await recorder.stop_recording()

    if payload is None or not payload.data:
        print("no audio captured", file=sys.stderr)
        return 1
    print(f"Captured {recorder.formatted_time} ({payload.size} bytes, {payload.content_type})")

    if args.save:
        with open(args.save, "wb") as fh:
            fh.write(payload.data)
        print(f"Saved to {args.save}")
    if args.no_upload:
        return 0

    client = TranscriptionApiClient(args.api_url)
    result = await client.transcribe_audio(payload)
    _print_result(result)
    return 0


async def _upload(args: argparse.Namespace) -> int:
    try:
        payload = load_audio_file(args.path, content_type=args.content_type)
    except FileValidationError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    client = TranscriptionApiClient(args.api_url)
    result = await client.transcribe_audio(payload)
    _print_result(result)
    return 0


async def _text(args: argparse.Namespace) -> int:
    text = sys.stdin.read() if args.text == "-" else args.text
    if not text.strip():
        print("No text provided or text is empty", file=sys.stderr)
        return 1
    client = TranscriptionApiClient(args.api_url)
    result = await client.cleanup_text(text)
    _print_result(result)
    return 0


async def _health(args: argparse.Namespace) -> int:
    client = TranscriptionApiClient(args.api_url)
    body = await client.check_health()
    print(json.dumps(body, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="voice-polish", description="Voice transcription and cleanup")
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"))
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="run the HTTP service")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    api_url = os.getenv("VOICE_POLISH_API_URL", DEFAULT_API_URL)

    record = sub.add_parser("record", help="record from the microphone and transcribe")
    record.add_argument("--api-url", default=api_url)
    record.add_argument("--duration", type=float, default=None, help="seconds; default waits for Enter")
    record.add_argument("--timeslice", type=float, default=1.0)
    record.add_argument("--save", default=None, help="also write the raw recording to this path")
    record.add_argument("--no-upload", action="store_true")

    upload = sub.add_parser("upload", help="transcribe an audio file")
    upload.add_argument("path")
    upload.add_argument("--api-url", default=api_url)
    upload.add_argument("--content-type", default=None)

    text = sub.add_parser("text", help="clean up typed text ('-' reads stdin)")
    text.add_argument("text")
    text.add_argument("--api-url", default=api_url)

    health = sub.add_parser("health", help="query service health")
    health.add_argument("--api-url", default=api_url)

    return parser


_COMMANDS = {
    "record": _record,
    "upload": _upload,
    "text": _text,
    "health": _health,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    if args.command == "serve":
        return _serve(args)

    try:
        return asyncio.run(_COMMANDS[args.command](args))
    except ApiError as exc:
        print(f"request failed ({exc.status_code}): {exc}", file=sys.stderr)
        return 1
    except httpx.HTTPError as exc:
        print(f"could not reach {args.api_url}: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
