"""Tests for the speech synthesizer and the TTS providers behind it."""

import time
from unittest.mock import patch

import pytest

from storycast.api.settings import Settings
from storycast.errors import SynthesisError
from storycast.infrastructure.tts import ElevenLabsProvider, OpenAIProvider, TTSProvider
from storycast.services.speech_synthesizer import (
    SpeechSynthesizer,
    create_tts_provider,
    read_to_completion,
)


class MockTTSProvider(TTSProvider):
    """Mock TTS provider for testing."""

    def __init__(self, result=None, error: Exception | None = None, delay: float = 0.0):
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def stream(self, *, text: str, voice: str):
        self.calls.append((text, voice))
        if self.delay:
            time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


def broken_stream():
    yield b"ID3"
    raise ConnectionError("connection reset")


def test_read_to_completion_joins_chunks():
    assert read_to_completion(iter([b"ab", b"", bytearray(b"cd")])) == b"abcd"


@pytest.mark.asyncio
async def test_synthesize_drains_stream():
    provider = MockTTSProvider(result=iter([b"ID3", b"\x00" * 10, b"end"]))
    synthesizer = SpeechSynthesizer(provider, default_voice="default-voice")

    audio = await synthesizer.synthesize("Hello there")

    assert audio == b"ID3" + b"\x00" * 10 + b"end"
    assert provider.calls == [("Hello there", "default-voice")]


@pytest.mark.asyncio
async def test_synthesize_voice_override():
    provider = MockTTSProvider(result=[b"mp3"])
    synthesizer = SpeechSynthesizer(provider, default_voice="default-voice")

    await synthesizer.synthesize("Hello", voice_id="other-voice")

    assert provider.calls == [("Hello", "other-voice")]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "provider, reason",
    [
        (MockTTSProvider(error=RuntimeError("401 unauthorized")), "request_failed"),
        (MockTTSProvider(result=None), "no_stream"),
        (MockTTSProvider(result=broken_stream()), "read_failed"),
        (MockTTSProvider(result=iter([])), "empty_stream"),
        (MockTTSProvider(result=[b"", b""]), "empty_stream"),
    ],
)
async def test_synthesis_failures_are_distinct(provider, reason):
    synthesizer = SpeechSynthesizer(provider, default_voice="v")

    with pytest.raises(SynthesisError) as exc_info:
        await synthesizer.synthesize("Hello")

    assert exc_info.value.reason == reason


@pytest.mark.asyncio
async def test_synthesize_without_provider():
    with pytest.raises(SynthesisError) as exc_info:
        await SpeechSynthesizer(None, default_voice="v").synthesize("Hello")
    assert exc_info.value.reason == "not_configured"


@pytest.mark.asyncio
async def test_synthesize_timeout():
    provider = MockTTSProvider(result=[b"late"], delay=0.3)
    synthesizer = SpeechSynthesizer(provider, default_voice="v", timeout=0.05)

    with pytest.raises(SynthesisError) as exc_info:
        await synthesizer.synthesize("Hello")
    assert exc_info.value.reason == "timeout"


def test_rate_limit_is_detected_through_cause():
    class ApiError(Exception):
        status_code = 429

    try:
        try:
            raise ApiError("too many requests")
        except ApiError as e:
            raise SynthesisError("Failed to generate audio", reason="request_failed") from e
    except SynthesisError as err:
        assert err.rate_limited


def test_elevenlabs_provider_requests_mp3_128k():
    with patch("storycast.infrastructure.tts.elevenlabs_provider.ElevenLabs") as mock_client_cls:
        mock_client_cls.return_value.text_to_speech.convert.return_value = iter([b"mp3"])
        provider = ElevenLabsProvider("key", timeout=5)

        stream = provider.stream(text="Hello", voice="voice-1")

    assert list(stream) == [b"mp3"]
    mock_client_cls.assert_called_once_with(api_key="key", timeout=5)
    mock_client_cls.return_value.text_to_speech.convert.assert_called_once_with(
        voice_id="voice-1",
        text="Hello",
        model_id="eleven_multilingual_v2",
        output_format="mp3_44100_128",
    )


def test_elevenlabs_provider_requires_key():
    with pytest.raises(ValueError):
        ElevenLabsProvider("")


def test_openai_provider_streams_mp3():
    with patch("storycast.infrastructure.tts.openai_provider.OpenAI") as mock_client_cls:
        speech = mock_client_cls.return_value.audio.speech
        speech.create.return_value.iter_bytes.return_value = iter([b"mp3"])
        provider = OpenAIProvider("key")

        stream = provider.stream(text="Hello", voice="alloy")

    assert list(stream) == [b"mp3"]
    assert speech.create.call_args.kwargs["response_format"] == "mp3"
    assert speech.create.call_args.kwargs["voice"] == "alloy"


def test_create_tts_provider_selection(monkeypatch):
    monkeypatch.delenv("TTS_PROVIDER", raising=False)
    settings = Settings(_env_file=None, eleven_labs_api_key="eleven", openai_api_key="oa")
    with patch("storycast.services.speech_synthesizer.ElevenLabsProvider") as eleven:
        assert create_tts_provider(settings) is eleven.return_value

    settings = Settings(_env_file=None, tts_provider="openai", openai_api_key="oa")
    with patch("storycast.services.speech_synthesizer.OpenAIProvider") as openai_cls:
        assert create_tts_provider(settings) is openai_cls.return_value
        openai_cls.assert_called_once_with("oa", timeout=settings.synthesis_timeout_seconds)


def test_create_tts_provider_without_key(monkeypatch):
    for var in ("ELEVENLABS_API_KEY", "ELEVEN_LABS_API_KEY", "ELEVEN_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    assert create_tts_provider(Settings(_env_file=None)) is None
