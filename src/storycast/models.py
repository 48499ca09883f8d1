from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from storycast.infrastructure.tts import AUDIO_MIME

# =============================================================================
# Request bodies
# =============================================================================


class TextRequest(BaseModel):
    """Body of the text based routes."""

    model_config = ConfigDict(extra="ignore")

    text: str | None = Field(None, description="Story idea, or story text to narrate")


class ImageRequest(BaseModel):
    """Body of the image route."""

    model_config = ConfigDict(extra="ignore")

    image: str | None = Field(None, description="Image as a base64 data URL")


# =============================================================================
# Response bodies (camelCase on the wire)
# =============================================================================


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class VoiceResponse(_CamelModel):
    audio_base64: str = Field(..., description="Base64 encoded MP3 audio")
    audio_mime: str = Field(AUDIO_MIME, description="MIME type of the audio payload")


class GenerateResponse(VoiceResponse):
    text: str = Field(..., description="Generated story")


class ProcessTextResponse(_CamelModel):
    processed_story: str


class ExtractAndProcessResponse(_CamelModel):
    extracted_text: str
    processed_story: str


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
