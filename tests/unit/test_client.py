import httpx
import pytest

from voice_polish.audio.types import AudioPayload
from voice_polish.client import (
    ApiError,
    FileValidationError,
    TranscriptionApiClient,
    guess_audio_type,
    load_audio_file,
    validate_audio_file,
)


@pytest.mark.asyncio
async def test_transcribe_audio_posts_audio_field(mocker):
    mocked = mocker.patch(
        "httpx.AsyncClient.post",
        return_value=httpx.Response(
            201,
            json={"original": "umm hi", "cleaned": "Hi.", "intelligent": "Hi!", "message": "done"},
        ),
    )
    client = TranscriptionApiClient("http://api.test/")
    payload = AudioPayload(data=b"\x00" * 4096, content_type="audio/webm", filename="recording_1.webm")

    result = await client.transcribe_audio(payload)

    assert result.cleaned == "Hi."
    assert result.intelligent == "Hi!"
    args, kwargs = mocked.call_args
    assert args[0] == "http://api.test/transcribe"
    assert kwargs["files"]["audio"] == ("recording_1.webm", payload.data, "audio/webm")


@pytest.mark.asyncio
async def test_cleanup_text_error_raises_api_error(mocker):
    mocker.patch(
        "httpx.AsyncClient.post",
        return_value=httpx.Response(500, json={"error": "Text cleanup failed", "message": "Failed to cleanup transcript"}),
    )
    client = TranscriptionApiClient("http://api.test")

    with pytest.raises(ApiError) as excinfo:
        await client.cleanup_text("hello")

    assert excinfo.value.status_code == 500
    assert excinfo.value.error == "Text cleanup failed"
    assert excinfo.value.message == "Failed to cleanup transcript"


@pytest.mark.asyncio
async def test_check_health_returns_body(mocker):
    body = {"status": "ok", "timestamp": "t", "services": {"whisper": "available", "cleanup": "configured"}}
    mocked = mocker.patch("httpx.AsyncClient.get", return_value=httpx.Response(200, json=body))

    assert await TranscriptionApiClient("http://api.test").check_health() == body
    assert mocked.call_args.args[0] == "http://api.test/health"


def test_validate_rejects_unknown_type():
    with pytest.raises(FileValidationError, match="Invalid file type"):
        validate_audio_file("application/pdf", 10)


def test_validate_rejects_oversized_file():
    with pytest.raises(FileValidationError, match="100MB"):
        validate_audio_file("audio/wav", 100 * 1024 * 1024 + 1)


@pytest.mark.parametrize(
    "name, expected",
    [
        ("memo.m4a", "audio/m4a"),
        ("rec.webm", "audio/webm"),
        ("clip.ogg", "audio/ogg"),
        ("voice.wav", "audio/wav"),
        ("song.mp3", "audio/mpeg"),
        ("LOUD.WEBM", "audio/webm"),
    ],
)
def test_load_audio_file_guesses_type(tmp_path, name, expected):
    path = tmp_path / name
    path.write_bytes(b"\x00" * 2048)

    payload = load_audio_file(str(path))

    assert payload.filename == name
    assert payload.content_type == expected
    assert payload.size == 2048


@pytest.mark.parametrize(
    "reported, expected",
    [("video/webm", "audio/webm"), ("video/ogg", "audio/ogg"), ("audio/x-wav", "audio/wav")],
)
def test_guess_audio_type_maps_container_types(mocker, reported, expected):
    mocker.patch("mimetypes.guess_type", return_value=(reported, None))

    assert guess_audio_type("recording.unknownext") == expected


def test_load_audio_file_rejects_text(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")

    with pytest.raises(FileValidationError):
        load_audio_file(str(path))
