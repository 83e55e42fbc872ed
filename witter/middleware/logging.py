"""
Witter API — Access Log Middleware
===================================

What:  Writes one `witter.access` line when each request finishes:
       "POST /weets/feed 201 12.3ms [a1b2c3d4] from 10.0.0.5".
How:   Severity tracks the response: ERROR for 5xx, WARNING for 4xx,
       INFO otherwise. Health-check paths in QUIET_PATHS are passed through
       without a line.

Request bodies are never logged. Authenticated bodies carry `_token` and
the account forms carry passwords.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from witter.middleware.request_id import request_id_var

logger = logging.getLogger("witter.access")

QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access log with status-driven severity and request timing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        fields = {
            "request_id": request_id_var.get(""),
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
            "client_ip": request.client.host if request.client else "unknown",
        }
        logger.log(
            level_for_status(response.status_code),
            "%(method)s %(path)s %(status)d %(duration_ms).1fms [%(request_id)s] from %(client_ip)s",
            fields,
            extra=fields,
        )
        return response
