"""I/O boundary adapters (external APIs)."""

from .tts import (
    AUDIO_MIME,
    ElevenLabsProvider,
    OpenAIProvider,
    TTSProvider,
)

__all__ = [
    "AUDIO_MIME",
    "ElevenLabsProvider",
    "OpenAIProvider",
    "TTSProvider",
]
