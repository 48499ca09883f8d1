"""Request handling shared by the long-running server and the per-route function apps.

Adapters turn their framework request into a `HandlerRequest`, call
`StoryHandlers.handle` and write the returned `HandlerResponse` back out. The
core never raises: every path ends in a JSON body, except for the empty body of
a successful OPTIONS preflight.
"""

from __future__ import annotations

import base64
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ValidationError

from storycast.errors import (
    GenerationError,
    InputError,
    PayloadTooLarge,
    SynthesisError,
    UpstreamError,
)
from storycast.models import (
    ErrorResponse,
    ExtractAndProcessResponse,
    GenerateResponse,
    ImageRequest,
    ProcessTextResponse,
    TextRequest,
    VoiceResponse,
)
from storycast.services.sanitizer import sanitize
from storycast.services.speech_synthesizer import SpeechSynthesizer
from storycast.services.story_generator import StoryGenerator

logger = logging.getLogger(__name__)

GENERIC_ERROR = "An error occurred processing your request. Please try again."
RATE_LIMITED_ERROR = (
    "Service is temporarily unavailable due to high demand. Please wait a moment and try again."
)
METHOD_NOT_ALLOWED = "Method not allowed"

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"


@dataclass
class HandlerRequest:
    method: str
    body: bytes = b""
    origin: str | None = None


@dataclass
class HandlerResponse:
    status_code: int
    body: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class CorsPolicy:
    """Allow-list based CORS, applied identically to every route.

    ``"*"`` in the allow-list accepts any origin (the request origin is echoed
    back, since credentials are allowed).
    """

    allowed_origins: tuple[str, ...] = ()

    def is_allowed(self, origin: str | None) -> bool:
        if not origin:
            return False
        return "*" in self.allowed_origins or origin in self.allowed_origins

    def headers_for(self, origin: str | None) -> dict[str, str]:
        headers = {
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Allow-Methods": ALLOW_METHODS,
            "Access-Control-Allow-Headers": ALLOW_HEADERS,
            "Vary": "Origin",
        }
        if self.is_allowed(origin):
            headers["Access-Control-Allow-Origin"] = origin
        return headers


def _preview(text: str, limit: int = 100) -> str:
    return text[:limit] + ("..." if len(text) > limit else "")


class StoryHandlers:
    """One operation per route, composed from the generator and the synthesizer."""

    def __init__(
        self,
        generator: StoryGenerator,
        synthesizer: SpeechSynthesizer,
        *,
        cors: CorsPolicy | None = None,
        expose_error_details: bool = False,
        max_body_bytes: int = 10 * 1024 * 1024,
    ) -> None:
        self.generator = generator
        self.synthesizer = synthesizer
        self.cors = cors or CorsPolicy()
        self.expose_error_details = expose_error_details
        self.max_body_bytes = max_body_bytes
        self.routes: dict[str, Callable[[bytes], Awaitable[BaseModel]]] = {
            "/api/generate": self.generate,
            "/api/extract-and-process": self.extract_and_process,
            "/api/process-text": self.process_text,
            "/api/generate-voice": self.generate_voice,
        }

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def handle(self, path: str, request: HandlerRequest) -> HandlerResponse:
        """Run the operation registered for *path* and map its outcome to a response."""
        headers = self.cors.headers_for(request.origin)
        if request.origin and not self.cors.is_allowed(request.origin):
            logger.warning(f"Origin {request.origin} is not in the allow-list for {path}")

        method = request.method.upper()
        if method == "OPTIONS":
            return HandlerResponse(200, None, headers)
        if method != "POST":
            return HandlerResponse(405, {"error": METHOD_NOT_ALLOWED}, {**headers, "Allow": ALLOW_METHODS})

        operation = self.routes.get(path)
        if operation is None:
            return HandlerResponse(404, {"error": "Not found"}, headers)

        logger.info(f"POST {path} request received")
        try:
            result = await operation(request.body)
        except PayloadTooLarge as e:
            return self.payload_too_large(path, request, e)
        except InputError as e:
            logger.info(f"Rejected {path} request: {e}")
            return HandlerResponse(400, {"error": str(e)}, headers)
        except UpstreamError as e:
            return HandlerResponse(*self._upstream_failure(path, e), headers)
        except Exception as e:
            logger.error(f"Server error on {path}: {e}", exc_info=True)
            return HandlerResponse(500, self._error_body(GENERIC_ERROR, e), headers)

        logger.info(f"Response for {path} sent successfully")
        return HandlerResponse(200, result.model_dump(by_alias=True), headers)

    def payload_too_large(self, path: str, request: HandlerRequest, exc: PayloadTooLarge) -> HandlerResponse:
        """413 response for a body the adapter stopped reading, or one the core measured."""
        logger.info(f"Rejected {path} request: {exc}")
        return HandlerResponse(413, {"error": str(exc)}, self.cors.headers_for(request.origin))

    def _upstream_failure(self, path: str, exc: UpstreamError) -> tuple[int, dict[str, Any]]:
        if isinstance(exc, SynthesisError):
            logger.error(f"Synthesis failed on {path} ({exc.reason}): {exc}")
        elif isinstance(exc, GenerationError):
            logger.error(f"Generation failed on {path}: {exc}")
        if exc.rate_limited:
            logger.warning(f"Upstream rate limit hit on {path}")
            return 429, {"error": RATE_LIMITED_ERROR}
        return 500, self._error_body(GENERIC_ERROR, exc)

    def _error_body(self, message: str, exc: Exception) -> dict[str, Any]:
        details = str(exc) if self.expose_error_details else None
        return ErrorResponse(error=message, details=details).model_dump(exclude_none=True)

    def _parse(self, body: bytes, model: type[BaseModel]) -> Any:
        if len(body) > self.max_body_bytes:
            raise PayloadTooLarge(f"Request body exceeds {self.max_body_bytes} bytes.")
        if not body.strip():
            payload: Any = {}
        else:
            try:
                payload = json.loads(body)
            except (UnicodeDecodeError, ValueError, RecursionError) as e:
                raise InputError("Invalid JSON body.") from e
        if not isinstance(payload, dict):
            raise InputError("Request body must be a JSON object.")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise InputError("Invalid request body.") from e

    def _require_text(self, body: bytes, missing: str, invalid: str) -> str:
        text = (self._parse(body, TextRequest).text or "").strip()
        if not text:
            raise InputError(missing)
        logger.info(f"User input: {_preview(text)}")
        clean_text = sanitize(text)
        if not clean_text:
            raise InputError(invalid)
        return clean_text

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def generate(self, body: bytes) -> GenerateResponse:
        """POST /api/generate: story and narration in one call."""
        clean_text = self._require_text(
            body,
            missing="Text is required. Please provide a story idea or topic.",
            invalid="Invalid input. Please provide a valid story idea or topic.",
        )
        story = await self.generator.generate_story(clean_text)
        audio = await self.synthesizer.synthesize(story)
        return GenerateResponse(text=story, audio_base64=base64.b64encode(audio).decode("ascii"))

    async def extract_and_process(self, body: bytes) -> ExtractAndProcessResponse:
        """POST /api/extract-and-process: text from an image, then a story from that text."""
        image = (self._parse(body, ImageRequest).image or "").strip()
        if not image:
            raise InputError("Image is required. Please upload an image.")
        extracted_text, story = await self.generator.generate_story_from_image(image)
        return ExtractAndProcessResponse(extracted_text=extracted_text, processed_story=story)

    async def process_text(self, body: bytes) -> ProcessTextResponse:
        """POST /api/process-text: story only, no audio."""
        clean_text = self._require_text(
            body,
            missing="Text is required. Please provide text to process.",
            invalid="Invalid input. Please provide valid text to process.",
        )
        story = await self.generator.generate_story(clean_text)
        return ProcessTextResponse(processed_story=story)

    async def generate_voice(self, body: bytes) -> VoiceResponse:
        """POST /api/generate-voice: narration for a story generated earlier."""
        clean_text = self._require_text(
            body,
            missing="Story text is required to generate voiceover.",
            invalid="Invalid story text. Please provide valid text to generate voiceover.",
        )
        audio = await self.synthesizer.synthesize(clean_text)
        return VoiceResponse(audio_base64=base64.b64encode(audio).decode("ascii"))
