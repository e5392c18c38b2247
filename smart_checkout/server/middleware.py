"""
MODULE OVERVIEW:
FastAPI middleware to track request timings.

WHAT IS HAPPENING HERE:
We add an `X-Process-Time-Ms` header so the scale pipeline can see how long an ingestion
request spent inside the server, fan-out included. Streaming routes are skipped: their
"processing time" is the lifetime of the connection.
"""

import time

from fastapi import Request
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

STREAM_PATHS = ("/stream-products", "/ws/")


class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith(STREAM_PATHS):
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        process_time_ms = (time.perf_counter() - start_time) * 1000

        response.headers["X-Process-Time-Ms"] = f"{process_time_ms:.2f}"
        logger.debug(f"{request.method} {request.url.path} status={response.status_code} completed in {process_time_ms:.2f}ms")

        return response
