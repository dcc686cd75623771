"""
Request context middleware
"""

import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
LATENCY_HEADER = "X-API-Latency-ms"

# polled by orchestrators; logged at DEBUG
QUIET_PATHS = ("/health",)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Tags every request with an id (the caller's X-Request-ID when sent) on
    ``request.state.request_id`` and reports the handling latency in a
    response header and the access log line.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(f"[{request_id}] {request.method} {request.url.path} failed")
            raise

        latency_ms = int((time.perf_counter() - started) * 1000)
        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers[LATENCY_HEADER] = str(latency_ms)

        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO
        logger.log(level, f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({latency_ms}ms)")
        return response
