from __future__ import annotations

from collections.abc import Iterable

from elevenlabs import ElevenLabs

from storycast.infrastructure.tts.base import TTSProvider

OUTPUT_FORMAT = "mp3_44100_128"


class ElevenLabsProvider(TTSProvider):
    """TTS provider for ElevenLabs API."""

    name: str = "elevenlabs"

    def __init__(
        self,
        api_key: str,
        *,
        model_id: str = "eleven_multilingual_v2",
        timeout: float | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("ElevenLabs API key not found. Set ELEVENLABS_API_KEY.")
        self.client = ElevenLabs(api_key=api_key, timeout=timeout)
        self.model_id = model_id

    def stream(self, *, text: str, voice: str) -> Iterable[bytes] | None:
        """Request MP3 (44.1kHz, 128kbps) audio for *text* using ElevenLabs (2.x)."""
        return self.client.text_to_speech.convert(
            voice_id=voice,
            text=text,
            model_id=self.model_id,
            output_format=OUTPUT_FORMAT,
        )
