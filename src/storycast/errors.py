"""Exception types shared by the services and the request handlers."""

from __future__ import annotations

RATE_LIMIT_STATUS = 429


def is_rate_limited(exc: BaseException | None) -> bool:
    """Return True if *exc* (or anything in its cause chain) is an upstream HTTP 429.

    The Gemini SDK exposes the status as ``code``, the ElevenLabs and OpenAI SDKs
    as ``status_code``.
    """
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        for attr in ("status_code", "code"):
            if getattr(exc, attr, None) == RATE_LIMIT_STATUS:
                return True
        exc = exc.__cause__ or exc.__context__
    return False


class StorycastError(Exception):
    """Base class for errors raised by storycast."""


class InputError(StorycastError):
    """The request cannot be served because of what the user sent.

    The message is shown to the user verbatim.
    """


class UpstreamError(StorycastError):
    """A call to one of the upstream providers failed."""

    @property
    def rate_limited(self) -> bool:
        return is_rate_limited(self.__cause__)


class GenerationError(UpstreamError):
    """Text generation or text extraction failed."""


class SynthesisError(UpstreamError):
    """Speech synthesis failed.

    ``reason`` tells the failure modes apart in logs: ``request_failed``,
    ``no_stream``, ``read_failed``, ``empty_stream``, ``timeout`` or
    ``not_configured``.
    """

    def __init__(self, message: str, *, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class PayloadTooLarge(InputError):
    """The request body is larger than the configured limit."""
