"""TTS provider implementations (ElevenLabs, OpenAI)."""

# Re-export for easier access, e.g. `from storycast.infrastructure.tts import ElevenLabsProvider`
from .base import AUDIO_MIME, TTSProvider
from .elevenlabs_provider import ElevenLabsProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "AUDIO_MIME",
    "ElevenLabsProvider",
    "OpenAIProvider",
    "TTSProvider",
]
