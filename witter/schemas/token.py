"""
Witter API — Session Token Claims
==================================

What:  Schema for the payload carried inside a session token.
Why:   Decoded payloads are untrusted input. Validating them against a
       schema with a required `handle` replaces ad-hoc "is there a handle
       key" checks in the auth layer.
"""

from typing import Optional

from pydantic import BaseModel, Field, StrictStr


class TokenClaims(BaseModel):
    """
    Claims placed in a token by `token_service.create_token`.

    Only `handle` is required. Extra claims are kept so tokens issued with
    additional fields still decode.
    """
    handle: StrictStr = Field(min_length=1, description="Handle of the signed-in user")
    username: Optional[str] = None
    email: Optional[str] = None
    user_description: Optional[str] = None
    profile_image: Optional[str] = None
    banner_image: Optional[str] = None
    iat: Optional[int] = Field(default=None, description="Issued-at, seconds since epoch")

    model_config = {"extra": "allow"}
