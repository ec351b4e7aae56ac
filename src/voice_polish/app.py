import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from .audio.ingest import AudioIngestor, IngestLimits, UploadRejected
from .pipeline import PipelineError, TranscriptionPipeline
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)

TRANSCRIBE_SUCCESS = "Transcription and cleanup completed successfully"
CLEANUP_SUCCESS = "Text cleanup completed successfully"


def _error(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def create_app(
    settings: Optional[Settings] = None,
    *,
    pipeline: Optional[TranscriptionPipeline] = None,
) -> FastAPI:
    """Build the HTTP service.

    Settings and the pipeline are resolved here, before the server starts
    listening, so a configuration error stops the process at startup.
    """
    settings = settings or load_settings()
    pipeline = pipeline or TranscriptionPipeline.from_settings(settings)
    ingestor = AudioIngestor(
        limits=IngestLimits(
            max_bytes=settings.audio.max_upload_bytes,
            min_bytes=settings.audio.min_upload_bytes,
        )
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "service.startup",
            extra={
                "whisper_url": settings.whisper.base_url,
                "cleanup_provider": pipeline.cleanup_provider.name,
            },
        )
        try:
            yield
        finally:
            await pipeline.close()
            logger.info("service.shutdown")

    app = FastAPI(title="voice-polish", lifespan=lifespan)
    app.state.settings = settings
    app.state.pipeline = pipeline
    app.state.ingestor = ingestor

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        client_host = request.client.host if request.client else None
        logger.info(f"{request.method} {request.url.path}", extra={"ip": client_host})
        return await call_next(request)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("http.unhandled_error", extra={"path": request.url.path})
        return _error(500, "Internal server error")

    async def health() -> Dict[str, Any]:
        report = await pipeline.health_check()
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "services": {
                "whisper": "available" if report.transcription_available else "unavailable",
                "cleanup": "configured" if report.cleanup_configured else "not_configured",
            },
        }

    app.add_api_route("/", health, methods=["GET"])
    app.add_api_route("/health", health, methods=["GET"])

    @app.post("/transcribe")
    async def transcribe(request: Request) -> JSONResponse:
        # Anything other than a file part named "audio" is a 400.
        try:
            form = await request.form()
        except Exception:
            logger.warning("transcribe.form_unreadable", exc_info=True)
            return _error(400, "No audio file provided")

        try:
            audio = form.get("audio")
            if not isinstance(audio, UploadFile):
                return _error(400, "No audio file provided")
            try:
                payload = await ingestor.from_upload(
                    file_reader=audio.read,
                    content_type=audio.content_type,
                    filename=audio.filename,
                )
            except UploadRejected as exc:
                return _error(400, str(exc))
        finally:
            await form.close()

        try:
            result = await pipeline.process_audio(payload)
        except PipelineError as exc:
            logger.error(
                "transcribe.failed",
                extra={"stage": exc.stage, "upload_name": payload.filename},
                exc_info=exc.cause,
            )
            return _error(500, "Transcription failed", str(exc))

        return JSONResponse(
            status_code=201,
            content={
                "original": result.original,
                "cleaned": result.cleaned,
                "intelligent": result.intelligent,
                "message": TRANSCRIBE_SUCCESS,
            },
        )

    @app.post("/cleanup-text")
    async def cleanup_text(request: Request) -> JSONResponse:
        try:
            body = await request.json()
        except Exception:
            return _error(400, "Invalid JSON body")

        text = body.get("text") if isinstance(body, dict) else None
        if not isinstance(text, str) or not text.strip():
            return _error(400, "No text provided or text is empty")

        try:
            result = await pipeline.process_text(text)
        except PipelineError as exc:
            logger.error("cleanup_text.failed", extra={"stage": exc.stage}, exc_info=exc.cause)
            return _error(500, "Text cleanup failed", str(exc))

        return JSONResponse(
            status_code=200,
            content={
                "original": result.original,
                "cleaned": result.cleaned,
                "intelligent": result.intelligent,
                "message": CLEANUP_SUCCESS,
            },
        )

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "voice_polish.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3000")),
        reload=False,
    )
