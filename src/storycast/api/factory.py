"""FastAPI adapters over `StoryHandlers`.

`create_app()` serves every route from one long-running process;
`create_function_app(path)` builds a one-route app for a function runtime.
"""

import asyncio
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from storycast.errors import PayloadTooLarge
from storycast.models import (
    ErrorResponse,
    ExtractAndProcessResponse,
    GenerateResponse,
    ImageRequest,
    ProcessTextResponse,
    TextRequest,
    VoiceResponse,
)
from storycast.services.speech_synthesizer import SpeechSynthesizer
from storycast.services.story_generator import StoryGenerator

from .handlers import (
    GENERIC_ERROR,
    METHOD_NOT_ALLOWED,
    CorsPolicy,
    HandlerRequest,
    HandlerResponse,
    StoryHandlers,
)
from .middleware import LoggingMiddleware
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)

ROUTE_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# path -> (request model, success model, summary)
ROUTES: dict[str, tuple[type[BaseModel], type[BaseModel], str]] = {
    "/api/generate": (TextRequest, GenerateResponse, "Generate a story and narrate it"),
    "/api/extract-and-process": (
        ImageRequest,
        ExtractAndProcessResponse,
        "Extract text from an image and turn it into a story",
    ),
    "/api/process-text": (TextRequest, ProcessTextResponse, "Turn text into a story"),
    "/api/generate-voice": (TextRequest, VoiceResponse, "Narrate previously generated text"),
}


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        force=True,
    )


def build_handlers(settings: Settings) -> StoryHandlers:
    """Construct the upstream clients once and wire them into the handler core."""
    return StoryHandlers(
        StoryGenerator.from_settings(settings),
        SpeechSynthesizer.from_settings(settings),
        cors=CorsPolicy(tuple(settings.origin_allow_list)),
        expose_error_details=settings.expose_error_details,
        max_body_bytes=settings.max_body_bytes,
    )


def to_response(result: HandlerResponse) -> Response:
    if result.body is None:
        return Response(status_code=result.status_code, headers=result.headers)
    return JSONResponse(result.body, status_code=result.status_code, headers=result.headers)


def _log_unhandled_async_error(loop: asyncio.AbstractEventLoop, context: dict) -> None:
    """Log exceptions from tasks that have no response attached."""
    exc = context.get("exception")
    logger.error(f"Unhandled async error: {context.get('message', exc)}", exc_info=exc)


@asynccontextmanager
async def lifespan(app: FastAPI):
    loop = asyncio.get_running_loop()
    previous = loop.get_exception_handler()
    loop.set_exception_handler(_log_unhandled_async_error)
    try:
        yield
    finally:
        loop.set_exception_handler(previous)


async def read_body(request: Request, limit: int) -> bytes:
    """Read the request body, stopping as soon as it is known to exceed *limit* bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and (len(declared) > len(str(limit)) or int(declared) > limit):
        raise PayloadTooLarge(f"Request body exceeds {limit} bytes.")

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise PayloadTooLarge(f"Request body exceeds {limit} bytes.")
        chunks.append(chunk)
    return b"".join(chunks)


def _endpoint(handlers: StoryHandlers, path: str):
    async def endpoint(request: Request) -> Response:
        handler_request = HandlerRequest(method=request.method, origin=request.headers.get("origin"))
        if request.method.upper() == "POST":
            try:
                handler_request.body = await read_body(request, handlers.max_body_bytes)
            except PayloadTooLarge as e:
                return to_response(handlers.payload_too_large(path, handler_request, e))
        return to_response(await handlers.handle(path, handler_request))

    endpoint.__name__ = path.rsplit("/", 1)[-1].replace("-", "_")
    return endpoint


def create_app(
    settings: Settings | None = None,
    handlers: StoryHandlers | None = None,
    paths: Iterable[str] | None = None,
) -> FastAPI:
    """Build the API; *handlers* may be injected (tests), otherwise they come from *settings*."""
    settings = settings or get_settings()
    handlers = handlers or build_handlers(settings)
    paths = list(paths) if paths is not None else list(ROUTES)

    app = FastAPI(title="Storycast API", version="0.1.0", lifespan=lifespan)
    app.add_middleware(LoggingMiddleware)

    for path in paths:
        request_model, response_model, summary = ROUTES[path]
        app.add_api_route(
            path,
            _endpoint(handlers, path),
            methods=ROUTE_METHODS,
            summary=summary,
            tags=["Stories"],
            responses={
                200: {"model": response_model},
                400: {"model": ErrorResponse},
                405: {"model": ErrorResponse},
                429: {"model": ErrorResponse},
                500: {"model": ErrorResponse},
            },
            openapi_extra={
                "requestBody": {
                    "required": True,
                    "content": {"application/json": {"schema": request_model.model_json_schema()}},
                }
            },
        )

    @app.get("/api/health", tags=["Utility"])
    async def health() -> dict[str, str]:
        """Return basic service health status."""
        return {"status": "ok"}

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = METHOD_NOT_ALLOWED if exc.status_code == 405 else str(exc.detail)
        return JSONResponse({"error": message}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse({"error": GENERIC_ERROR}, status_code=500)

    app.state.handlers = handlers
    app.state.settings = settings
    return app


def create_function_app(path: str, settings: Settings | None = None) -> FastAPI:
    """A single-route app, for deployment as an independent function."""
    if path not in ROUTES:
        raise ValueError(f"Unknown route: {path}")
    return create_app(settings, paths=[path])
