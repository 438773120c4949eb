import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from gradtracker.logging_config import generate_request_id, set_request_id

logger = logging.getLogger(__name__)

SKIP_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs method, path, status and duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        path = request.url.path
        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        if not path.startswith(SKIP_PATHS):
            logger.info("%s %s -> %s (%.2fms)", request.method, path, response.status_code, duration_ms)

        response.headers["X-Request-ID"] = request_id
        return response
