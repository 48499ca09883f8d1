"""
Storycast – short narrated stories from a prompt or an image.

This top-level package exposes the request and response models of the API.
"""

from .models import (
    ExtractAndProcessResponse,
    GenerateResponse,
    ImageRequest,
    ProcessTextResponse,
    TextRequest,
    VoiceResponse,
)

__all__ = [
    "ExtractAndProcessResponse",
    "GenerateResponse",
    "ImageRequest",
    "ProcessTextResponse",
    "TextRequest",
    "VoiceResponse",
]
