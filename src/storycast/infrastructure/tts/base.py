from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable

AUDIO_MIME = "audio/mpeg"


class TTSProvider(ABC):
    """Abstract base class for TTS providers.

    Every provider returns MP3 audio so the API can always report ``audio/mpeg``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the (unique) short-name for this provider (e.g. 'elevenlabs')."""

    @abstractmethod
    def stream(self, *, text: str, voice: str) -> Iterable[bytes] | None:
        """Start synthesising *text* with *voice* and return the MP3 byte stream.

        The stream may be lazy: upstream errors can surface while it is iterated.
        """
