"""
Witter API — Request ID Middleware
===================================

What:  Assigns a short unique ID to each incoming request and returns it in
       the X-Request-ID response header.
Why:   Every log line and every error body for a request carries the same ID,
       so a client-reported error can be matched to server logs.
How:   Uses the client-supplied X-Request-ID when present, otherwise the first
       8 characters of a UUID4. Stored in a ContextVar for loggers and
       exception handlers, and on request.state for route handlers.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach a correlation ID to the request context and the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response
