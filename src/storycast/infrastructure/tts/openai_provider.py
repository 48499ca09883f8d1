from __future__ import annotations

from collections.abc import Iterable

from openai import OpenAI

from storycast.infrastructure.tts.base import TTSProvider


class OpenAIProvider(TTSProvider):
    """TTS provider for OpenAI API (v1.0+).

    Uses tts-1-hd by default - OpenAI's high-definition TTS model for better quality.
    """

    name: str = "openai"

    def __init__(self, api_key: str, *, model: str = "tts-1-hd", timeout: float | None = None) -> None:
        if not api_key:
            raise ValueError("OpenAI API key not found. Set OPENAI_API_KEY.")
        self.client = OpenAI(api_key=api_key, timeout=timeout)
        self.model = model

    def stream(self, *, text: str, voice: str) -> Iterable[bytes] | None:
        """Synthesize MP3 audio using OpenAI TTS API."""
        response = self.client.audio.speech.create(
            model=self.model,
            voice=voice,  # type: ignore[arg-type]
            input=text,
            response_format="mp3",
        )
        return response.iter_bytes()
