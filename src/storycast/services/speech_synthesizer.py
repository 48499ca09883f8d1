"""Speech synthesis service: text in, one complete MP3 buffer out."""

import asyncio
import logging
from collections.abc import Iterable

from storycast.api.settings import Settings
from storycast.errors import SynthesisError
from storycast.infrastructure.tts import ElevenLabsProvider, OpenAIProvider, TTSProvider

logger = logging.getLogger(__name__)


def read_to_completion(stream: Iterable[bytes]) -> bytes:
    """Drain *stream* into a single contiguous buffer."""
    return b"".join(bytes(chunk) for chunk in stream if chunk)


def create_tts_provider(settings: Settings) -> TTSProvider | None:
    """Build the provider selected by ``TTS_PROVIDER``, or None if it has no credentials."""
    timeout = settings.synthesis_timeout_seconds
    if settings.tts_provider == "openai":
        if not settings.openai_api_key:
            logger.warning("OPENAI_API_KEY not set - voice generation will fail")
            return None
        return OpenAIProvider(settings.openai_api_key, timeout=timeout)

    if not settings.eleven_labs_api_key:
        logger.warning("ELEVENLABS_API_KEY not set - voice generation will fail")
        return None
    return ElevenLabsProvider(
        settings.eleven_labs_api_key, model_id=settings.elevenlabs_model_id, timeout=timeout
    )


class SpeechSynthesizer:
    """Wraps a `TTSProvider` so callers always get either audio bytes or a `SynthesisError`."""

    def __init__(self, provider: TTSProvider | None, *, default_voice: str, timeout: float = 60.0) -> None:
        self.provider = provider
        self.default_voice = default_voice
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpeechSynthesizer":
        return cls(
            create_tts_provider(settings),
            default_voice=settings.default_voice_id,
            timeout=settings.synthesis_timeout_seconds,
        )

    async def synthesize(self, text: str, voice_id: str | None = None) -> bytes:
        """Synthesise *text* and return the complete MP3 audio."""
        if self.provider is None:
            logger.error("Speech synthesis requested but no TTS provider is configured")
            raise SynthesisError("No TTS provider configured", reason="not_configured")

        voice = voice_id or self.default_voice
        logger.info(f"Calling {self.provider.name} TTS with voiceId: {voice} for {len(text)} chars")
        try:
            audio = await asyncio.wait_for(
                asyncio.to_thread(self._synthesize_blocking, text, voice),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"{self.provider.name} TTS timed out after {self.timeout}s")
            raise SynthesisError(
                f"Audio generation timed out after {self.timeout}s", reason="timeout"
            ) from e

        logger.info(f"Audio buffer created, size: {len(audio)} bytes")
        return audio

    def _synthesize_blocking(self, text: str, voice: str) -> bytes:
        try:
            stream = self.provider.stream(text=text, voice=voice)
        except Exception as e:
            logger.error(f"{self.provider.name} TTS error: {e}", exc_info=True)
            raise SynthesisError(f"Failed to generate audio: {e}", reason="request_failed") from e

        if stream is None:
            logger.error(f"No audio stream received from {self.provider.name}")
            raise SynthesisError(
                f"No valid audio stream received from {self.provider.name}", reason="no_stream"
            )

        try:
            audio = read_to_completion(stream)
        except Exception as e:
            logger.error(f"Error reading audio stream: {e}", exc_info=True)
            raise SynthesisError(f"Failed to read audio stream: {e}", reason="read_failed") from e

        if not audio:
            logger.error(f"Audio stream from {self.provider.name} finished with zero bytes")
            raise SynthesisError(
                f"No audio data received from {self.provider.name}", reason="empty_stream"
            )
        return audio
