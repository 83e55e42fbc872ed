"""
Witter API — Shared Request/Response Schemas
=============================================

What:  Envelopes shared by every router: the token-carrying request base,
       message/token responses, the error body and the health report.
Why:   Clients parse one error shape and one success envelope per kind.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class TokenBody(BaseModel):
    """
    Base for request bodies that carry the session token.

    The token travels in the JSON body under `_token`. Auth dependencies read
    it straight from the raw body; this field documents it in OpenAPI.
    """
    token: Optional[Any] = Field(
        default=None,
        alias="_token",
        description="Session token returned by sign-up or log-in",
    )

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class TokenResponse(BaseModel):
    token: str = Field(description="Signed session token (HS256)")


class MessageResponse(BaseModel):
    message: str = Field(description="Human-readable outcome of the operation")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "status": 403,
            "error": "conflict",
            "message": "You are already following this user",
            "request_id": "a1b2c3d4"
        }
    """
    status: int = Field(description="HTTP status code, echoed in the body")
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
