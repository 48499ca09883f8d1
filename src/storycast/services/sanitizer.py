"""Normalisation of user supplied text before it is embedded in an upstream prompt.

This is a best-effort filter against prompt and markup injection. It strips the
obvious vectors (quotes, angle brackets, ``javascript:`` and inline event
handlers) but it is not a security boundary: anything that renders model output
must still escape it.
"""

import re
from typing import Any

MAX_LENGTH = 2000

_UNSAFE_CHARS = re.compile(r"[<>\"'`]")
_JS_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)
_LINE_BREAKS = re.compile(r"[\r\n]")
_WHITESPACE = re.compile(r"\s+")


def sanitize(value: Any) -> str:
    """Return a cleaned, single-line copy of *value*, at most 2000 characters.

    Non-string or empty input gives an empty string.
    """
    if not value or not isinstance(value, str):
        return ""

    cleaned = _UNSAFE_CHARS.sub("", value)
    cleaned = _JS_SCHEME.sub("", cleaned)
    cleaned = _EVENT_HANDLER.sub("", cleaned)
    cleaned = _LINE_BREAKS.sub(" ", cleaned)
    cleaned = _WHITESPACE.sub(" ", cleaned)
    return cleaned.strip()[:MAX_LENGTH].rstrip()
