"""Story generation service using Google Gemini for text and image prompts."""

import asyncio
import base64
import binascii
import logging
import re

from google import genai
from google.genai import types

from storycast.api.settings import Settings
from storycast.errors import GenerationError, InputError
from storycast.services.sanitizer import sanitize

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = "Extract all text from this image. Return only the text content, nothing else."
NO_TEXT_IN_IMAGE = "No text could be extracted from the image. Please try a different image."

_DATA_URL = re.compile(r"^data:image/(\w+);base64,")


def build_story_prompt(clean_text: str, *, from_image: bool = False) -> str:
    """Build the narrative prompt for Gemini around already sanitized text."""
    source = "this idea extracted from an image" if from_image else "this idea"
    return f"""Write a very short, engaging story based on {source}: "{clean_text}".
Include natural dialogues between characters, proper narrative flow, and make it interesting.
Keep it under 20 words and make it suitable for text-to-speech reading.
Don't include markdown formatting or special characters, just plain text with dialogue."""


def decode_image_data_url(image: str) -> tuple[bytes, str]:
    """Split a ``data:image/<type>;base64,`` URL into raw bytes and a MIME type.

    A bare base64 string is accepted and treated as PNG.
    """
    match = _DATA_URL.match(image)
    mime_type = f"image/{match.group(1)}" if match else "image/png"
    payload = image[match.end():] if match else image
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InputError("Invalid image data. Please upload a valid image.") from e
    if not data:
        raise InputError("Invalid image data. Please upload a valid image.")
    return data, mime_type


class StoryGenerator:
    """Turns sanitized text, or the text found in an image, into a short narrated story."""

    def __init__(
        self,
        client: genai.Client | None,
        *,
        text_model: str = "gemini-2.0-flash",
        vision_model: str = "gemini-2.0-flash",
        timeout: float = 30.0,
    ) -> None:
        self.client = client
        self.text_model = text_model
        self.vision_model = vision_model
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "StoryGenerator":
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set - story generation will fail")
            client = None
        else:
            client = genai.Client(api_key=settings.gemini_api_key)
            logger.info("Gemini story generation service initialized")
        return cls(
            client,
            text_model=settings.text_model,
            vision_model=settings.vision_model,
            timeout=settings.generation_timeout_seconds,
        )

    async def generate_story(self, clean_text: str) -> str:
        """Generate a story from text the caller has already sanitized."""
        logger.info(f"Generating story with {self.text_model}...")
        try:
            story = await self._generate(self.text_model, build_story_prompt(clean_text))
        except Exception as e:
            logger.error(f"Gemini generation error: {e}", exc_info=True)
            raise GenerationError(f"Failed to generate story: {e}") from e

        if not story:
            logger.error("Gemini returned an empty story")
            raise GenerationError("Failed to generate story: empty response")

        logger.info(f"Story generated successfully, length: {len(story)} chars")
        logger.debug(f"Generated story preview: {story[:150]}...")
        return story

    async def generate_story_from_image(self, image_data_url: str) -> tuple[str, str]:
        """Extract the text in an image, then generate a story from it.

        Returns ``(extracted_text, story)``.
        """
        data, mime_type = decode_image_data_url(image_data_url)

        logger.info(f"Extracting text from {mime_type} image ({len(data)} bytes) with {self.vision_model}...")
        try:
            extracted_text = await self._generate(
                self.vision_model,
                [EXTRACTION_PROMPT, types.Part.from_bytes(data=data, mime_type=mime_type)],
            )
        except Exception as e:
            logger.error(f"Text extraction error: {e}", exc_info=True)
            raise GenerationError(f"Failed to extract text from image: {e}") from e

        if not extracted_text:
            raise InputError(NO_TEXT_IN_IMAGE)
        logger.info(f"Text extracted successfully, length: {len(extracted_text)} chars")

        clean_text = sanitize(extracted_text)
        if not clean_text:
            raise InputError(NO_TEXT_IN_IMAGE)

        try:
            story = await self._generate(self.text_model, build_story_prompt(clean_text, from_image=True))
        except Exception as e:
            logger.error(f"Text processing error: {e}", exc_info=True)
            raise GenerationError(f"Failed to process text: {e}") from e

        if not story:
            raise GenerationError("Failed to process text: empty response")

        logger.info(f"Story processed successfully, length: {len(story)} chars")
        return extracted_text, story

    async def _generate(self, model: str, contents) -> str:
        """Run one Gemini call under the configured timeout and return its stripped text."""
        if self.client is None:
            raise RuntimeError("Gemini client not configured (GEMINI_API_KEY missing)")
        response = await asyncio.wait_for(
            self.client.aio.models.generate_content(model=model, contents=contents),
            timeout=self.timeout,
        )
        return (response.text or "").strip()
