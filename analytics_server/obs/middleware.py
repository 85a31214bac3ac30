"""
FastAPI middleware that writes an access log line per request.
"""
from __future__ import annotations
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..core.logger import get_logger

log = get_logger("access")

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        t0 = time.perf_counter()
        path = request.url.path
        method = request.method
        client = request.client.host if request.client else "-"
        status = 500
        try:
            response: Response = await call_next(request)
            status = response.status_code
            return response
        finally:
            dt = (time.perf_counter() - t0) * 1000.0
            log.info("%s %s %s %d %.2fms", client, method, path, status, dt)
