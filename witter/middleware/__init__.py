# Middleware package init
"""
Witter API — Middleware Package
================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Request ID: assign the correlation ID used by every later log line
    2. Logging: log method, path, status and duration with that ID
    3. CORS: applied by FastAPI's CORSMiddleware (handles preflight)

auth.py is not ASGI middleware: it holds the token checks and the FastAPI
dependencies (require_signed_in, require_owner, require_author) that
routes declare per endpoint.
"""
