"""
Request logging middleware.
"""
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("sanskrit_ocr.requests")

# Polled every second or so by the front-end; too noisy for INFO
QUIET_PREFIXES = ("/status/",)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status code and duration of every request."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        level = logging.DEBUG if request.url.path.startswith(QUIET_PREFIXES) else logging.INFO
        logger.log(
            level,
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"method": request.method, "path": request.url.path, "status_code": response.status_code},
        )
        return response
