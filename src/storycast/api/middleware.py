import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger("storycast.api.middleware")


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin", "<none>")
        logger.info(f"Request: {request.method} {request.url.path} | Origin: {origin}")
        response: Response = await call_next(request)
        logger.info(f"Response: {request.method} {request.url.path} | Status: {response.status_code}")
        return response
