"""
API Middleware Stack

Request IDs, timing/metrics and a last-resort JSON error handler.
"""

import time
import uuid
import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response, JSONResponse

from grancamino.core import metrics
from grancamino.core.constants import ERROR_MESSAGES, ErrorCode
from grancamino.core.logging import LogContext, PerformanceLogger

logger = logging.getLogger(__name__)


# =============================================================================
# REQUEST ID MIDDLEWARE
# =============================================================================

class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Adds unique request ID to each request for tracing.

    - Generates UUID if not provided in X-Request-ID header
    - Adds to request state and the logging context
    - Returns in X-Request-ID response header
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id

        async with LogContext(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip=self._get_client_ip(request)
        ):
            response = await call_next(request)

        response.headers["X-Request-ID"] = request_id
        return response

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP, respecting proxies."""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = request.headers.get("X-Real-IP")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host

        return "unknown"


# =============================================================================
# TIMING MIDDLEWARE
# =============================================================================

class TimingMiddleware(BaseHTTPMiddleware):
    """Records request count/latency metrics and an X-Response-Time header."""

    def __init__(self, app):
        super().__init__(app)
        self.perf = PerformanceLogger("http")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        method = request.method
        start_time = time.perf_counter()
        status_code = 500

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Response-Time"] = f"{(time.perf_counter() - start_time) * 1000:.2f}ms"
            return response
        finally:
            duration = time.perf_counter() - start_time

            metrics.http_requests_total.labels(
                method=method,
                endpoint=path,
                status=str(status_code)
            ).inc()
            metrics.request_duration_seconds.labels(endpoint=path).observe(duration)

            self.perf.log_request(
                getattr(request.state, "request_id", "unknown"),
                method,
                path,
                status_code,
                duration * 1000
            )


# =============================================================================
# ERROR HANDLING MIDDLEWARE
# =============================================================================

class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns unhandled exceptions into ``{"success": false, "error": ...}``."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.error(
                f"Unhandled error: {type(e).__name__}",
                extra={
                    "request_id": request_id,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                    "path": request.url.path,
                },
                exc_info=True
            )
            return JSONResponse(
                status_code=500,
                content={"success": False, "error": ERROR_MESSAGES[ErrorCode.INTERNAL_ERROR]}
            )


# =============================================================================
# MIDDLEWARE STACK HELPER
# =============================================================================

def setup_middleware(app) -> None:
    """
    Configure all middleware in order (last added = first to process).
    Request ID is outermost so every log line of a request carries it.
    """
    app.add_middleware(TimingMiddleware)
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    logger.info("Middleware stack configured")
