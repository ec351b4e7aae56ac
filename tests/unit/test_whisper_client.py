import httpx
import pytest

from voice_polish.asr.client import EmptyResultError, EngineError, WhisperTranscriptionClient
from voice_polish.audio.types import NormalizedAudio


def _audio() -> NormalizedAudio:
    return NormalizedAudio(data=b"ID3" + b"\x00" * 64, filename="voice.mp3")


@pytest.mark.asyncio
async def test_transcribe_posts_multipart_to_asr(mocker):
    mocked = mocker.patch("httpx.AsyncClient.post", return_value=httpx.Response(200, text="  hello world \n"))
    client = WhisperTranscriptionClient(base_url="http://whisper.test/")

    text = await client.transcribe(_audio())

    assert text == "hello world"
    mocked.assert_called_once()
    args, kwargs = mocked.call_args
    assert args[0] == "http://whisper.test/asr"
    assert kwargs["data"] == {"task": "transcribe", "output": "txt"}
    filename, data, content_type = kwargs["files"]["audio_file"]
    assert filename == "voice.mp3"
    assert content_type == "audio/mpeg"


@pytest.mark.asyncio
async def test_transcribe_reads_json_text_field(mocker):
    mocker.patch("httpx.AsyncClient.post", return_value=httpx.Response(200, json={"text": " from json "}))
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    assert await client.transcribe(_audio()) == "from json"


@pytest.mark.asyncio
async def test_transcribe_non_success_is_engine_error(mocker):
    mocker.patch("httpx.AsyncClient.post", return_value=httpx.Response(500, text="model crashed"))
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    with pytest.raises(EngineError) as excinfo:
        await client.transcribe(_audio())

    assert excinfo.value.status_code == 500
    assert "Whisper API error: 500 model crashed" in str(excinfo.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="   "),
        httpx.Response(200, json={"text": ""}),
        httpx.Response(200, json={"language": "en"}),
    ],
)
async def test_transcribe_empty_text_is_rejected(mocker, response):
    mocker.patch("httpx.AsyncClient.post", return_value=response)
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    with pytest.raises(EmptyResultError):
        await client.transcribe(_audio())


@pytest.mark.asyncio
async def test_transport_errors_propagate_unwrapped(mocker):
    async def _raise(*args, **kwargs):  # noqa: ANN001
        raise httpx.ConnectError("connection refused")

    mocker.patch("httpx.AsyncClient.post", side_effect=_raise)
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    with pytest.raises(httpx.ConnectError):
        await client.transcribe(_audio())


@pytest.mark.asyncio
async def test_availability_true_only_on_422(mocker):
    mocker.patch("httpx.AsyncClient.post", return_value=httpx.Response(422, json={"detail": "missing file"}))
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    assert await client.check_availability() is True


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [200, 404, 500])
async def test_availability_false_on_other_status(mocker, status):
    mocker.patch("httpx.AsyncClient.post", return_value=httpx.Response(status))
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    assert await client.check_availability() is False


@pytest.mark.asyncio
async def test_availability_false_on_network_error(mocker):
    async def _raise(*args, **kwargs):  # noqa: ANN001
        raise httpx.ConnectError("down")

    mocker.patch("httpx.AsyncClient.post", side_effect=_raise)
    client = WhisperTranscriptionClient(base_url="http://whisper.test")

    assert await client.check_availability() is False
