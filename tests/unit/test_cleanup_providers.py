import dataclasses
from types import SimpleNamespace

import pytest

from voice_polish.cleanup.prompts import build_cleanup_prompt, build_intelligent_prompt, extract_transcript
from voice_polish.cleanup.providers import (
    CleanupFailedError,
    CleanupProvider,
    EmptyResponseError,
    MockCleanupProvider,
    available_providers,
    build_cleanup_provider,
    register_provider,
)
from voice_polish.cleanup.providers.gemini import GeminiCleanupProvider
from voice_polish.cleanup.providers.openrouter import OpenRouterCleanupProvider
from voice_polish.settings import ConfigurationError


class _ScriptedProvider(CleanupProvider):
    name = "scripted"

    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.reply


class _StubCompletions:
    def __init__(self, response):
        self.response = response
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        return self.response


def _stub_openai(response):
    completions = _StubCompletions(response)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def _completion(*contents):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=c)) for c in contents],
    )


def test_prompts_embed_transcript_between_fences():
    raw = "so um this is\na test"

    assert extract_transcript(build_cleanup_prompt(raw)) == raw
    assert extract_transcript(build_intelligent_prompt(raw)) == raw
    assert build_cleanup_prompt(raw) != build_intelligent_prompt(raw)


@pytest.mark.asyncio
async def test_mock_provider_removes_fillers_and_pauses():
    provider = MockCleanupProvider()

    cleaned = await provider.cleanup_transcript("so umm I was uh thinking [pause] we could ship it")

    assert cleaned == "So I was thinking we could ship it"


@pytest.mark.asyncio
async def test_outputs_are_trimmed():
    provider = _ScriptedProvider(reply="\n  Clean text.  \n")

    assert await provider.cleanup_transcript("raw") == "Clean text."
    assert await provider.intelligent_cleanup("raw") == "Clean text."


@pytest.mark.asyncio
async def test_engine_error_becomes_generic_cleanup_failure():
    provider = _ScriptedProvider(error=RuntimeError("quota exceeded for key sk-123"))

    with pytest.raises(CleanupFailedError) as excinfo:
        await provider.cleanup_transcript("raw")

    assert str(excinfo.value) == "Failed to cleanup transcript"
    assert isinstance(excinfo.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_intelligent_failure_message():
    provider = _ScriptedProvider(error=RuntimeError("boom"))

    with pytest.raises(CleanupFailedError, match="Failed to intelligent-cleanup transcript"):
        await provider.intelligent_cleanup("raw")


@pytest.mark.asyncio
@pytest.mark.parametrize("reply", ["", "   \n", None])
async def test_empty_reply_is_rejected(reply):
    provider = _ScriptedProvider(reply=reply)

    with pytest.raises(EmptyResponseError):
        await provider.cleanup_transcript("raw")


@pytest.mark.asyncio
async def test_openrouter_uses_first_non_empty_choice():
    client, completions = _stub_openai(_completion("", "  Polished.  "))
    provider = OpenRouterCleanupProvider(api_key=None, model="some/model", client=client)

    assert await provider.cleanup_transcript("uh hello") == "Polished."
    call = completions.calls[0]
    assert call["model"] == "some/model"
    assert call["messages"][0]["role"] == "user"
    assert "uh hello" in call["messages"][0]["content"]


@pytest.mark.asyncio
async def test_openrouter_without_content_is_empty_response():
    client, _ = _stub_openai(SimpleNamespace(choices=[]))
    provider = OpenRouterCleanupProvider(api_key=None, model="some/model", client=client)

    with pytest.raises(EmptyResponseError):
        await provider.intelligent_cleanup("hello")


@pytest.mark.asyncio
async def test_openrouter_injected_client_is_not_closed():
    client, _ = _stub_openai(_completion("ok"))
    provider = OpenRouterCleanupProvider(api_key=None, model="m", client=client)

    await provider.close()


class _BlockedResponse:
    @property
    def text(self):
        raise ValueError("response was blocked")


@pytest.mark.asyncio
async def test_gemini_returns_trimmed_response_text(mocker):
    mocker.patch("google.generativeai.configure")
    mocked = mocker.patch(
        "google.generativeai.GenerativeModel.generate_content_async",
        return_value=SimpleNamespace(text="  Hello there.  \n"),
    )
    provider = GeminiCleanupProvider(api_key="test-key", model="gemini-2.0-flash-exp", temperature=0.2)

    assert await provider.cleanup_transcript("um hello there") == "Hello there."
    assert provider.model == "gemini-2.0-flash-exp"
    assert mocked.call_args.args[0] == build_cleanup_prompt("um hello there")
    assert mocked.call_args.kwargs["generation_config"] == {"temperature": 0.2}


@pytest.mark.asyncio
async def test_gemini_blocked_response_is_cleanup_failure(mocker):
    mocker.patch("google.generativeai.configure")
    mocker.patch(
        "google.generativeai.GenerativeModel.generate_content_async",
        return_value=_BlockedResponse(),
    )
    provider = GeminiCleanupProvider(api_key="test-key", model="gemini-2.0-flash-exp")

    with pytest.raises(CleanupFailedError, match="Failed to intelligent-cleanup transcript"):
        await provider.intelligent_cleanup("hello")


def test_gemini_requires_api_key():
    with pytest.raises(ValueError):
        GeminiCleanupProvider(api_key="", model="gemini-2.0-flash-exp")


def test_factory_builds_mock(settings):
    provider = build_cleanup_provider(settings.cleanup)

    assert isinstance(provider, MockCleanupProvider)
    assert provider.is_configured


def test_factory_rejects_unknown_provider(settings):
    cfg = dataclasses.replace(settings.cleanup, provider="claude-direct")

    with pytest.raises(ConfigurationError, match="Unsupported cleanup provider"):
        build_cleanup_provider(cfg)


def test_factory_requires_openrouter_key(settings):
    cfg = dataclasses.replace(settings.cleanup, provider="openrouter")

    with pytest.raises(ConfigurationError, match="OPENROUTER_API_KEY"):
        build_cleanup_provider(cfg)


def test_factory_builds_openrouter_with_key(settings):
    cfg = dataclasses.replace(
        settings.cleanup,
        provider="openrouter",
        openrouter=dataclasses.replace(settings.cleanup.openrouter, api_key="or-key"),
    )

    provider = build_cleanup_provider(cfg)

    assert isinstance(provider, OpenRouterCleanupProvider)
    assert provider.model == "anthropic/claude-3.5-sonnet"


def test_register_provider_adds_backend(settings, monkeypatch):
    from voice_polish.cleanup import providers as registry

    monkeypatch.setattr(registry, "_providers", dict(registry._providers))
    register_provider("Scripted", lambda cfg: _ScriptedProvider(reply="x"))
    cfg = dataclasses.replace(settings.cleanup, provider="scripted")

    assert "scripted" in available_providers()
    assert isinstance(build_cleanup_provider(cfg), _ScriptedProvider)
