"""
Registrar Backend — Request Logging Middleware
================================================

What:  One access log line per request on the `registrar.access` logger.
How:   Times the downstream call, then logs method, path, status, duration,
       request ID and client IP. The matched route template (for example
       `/students/{student_id}`) goes into the record's `extra` so lines for
       different students group together. The level follows the status class:
       5xx → ERROR, 4xx → WARNING, everything else → INFO. A request that
       escapes as an exception is logged as a 500 before it propagates.

Request bodies are never logged; they carry student personal data.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from registrar.middleware.request_id import request_id_var

logger = logging.getLogger("registrar.access")


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


def route_template(request: Request) -> str:
    """The path pattern FastAPI matched, or the raw path when none did."""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class RequestLoggingMiddleware(BaseHTTPMiddleware):

    # Probed every few seconds by orchestrators
    QUIET_PATHS = frozenset({"/health"})

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in self.QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.log_request(request, 500, start_time)
            raise
        self.log_request(request, response.status_code, start_time)
        return response

    @staticmethod
    def log_request(request: Request, status: int, start_time: float) -> None:
        duration_ms = (time.perf_counter() - start_time) * 1000
        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "route": route_template(request),
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
