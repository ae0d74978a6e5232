import logging
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

logger = logging.getLogger("school_records.access")


class TimingMiddleware(BaseHTTPMiddleware):
    """Adds X-Latency-Ms (and echoes X-Request-ID) on every response."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        latency_ms = int((time.perf_counter() - start) * 1000)
        response.headers["X-Latency-Ms"] = str(latency_ms)
        request_id = request.headers.get("X-Request-ID")
        if request_id:
            response.headers["X-Request-ID"] = request_id
        logger.info("%s %s -> %s (%sms)", request.method, request.url.path, response.status_code, latency_ms)
        return response
