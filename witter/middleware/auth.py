"""
Witter API — Authentication & Authorization Checks
===================================================

What:  The token checks that gate every authenticated route, and the
       FastAPI dependencies that apply them.
Why:   Clients send the session token inside the JSON body as `_token`
       rather than in a header, so the checks read the body themselves.

Checks:
    ensure_signed_in(db, token)   → bool. False for a missing, non-string or
                                    undecodable token, a payload without a
                                    handle, or a handle with no account.
                                    Never raises.
    ensure_token_origin(token)    → bool. False unless the token was signed
                                    with this service's secret.
    ensure_owner(token, handle)   → raises AuthorizationError (401) unless the
                                    token's handle is `handle`.
    ensure_author(token, weet)    → raises AuthorizationError (401) unless the
                                    token's handle wrote `weet`.

Dependencies (declared on routes):
    require_signed_in  → signed-in + origin; returns the decoded TokenClaims
    require_owner      → require_signed_in + owner of the {handle} path param
    require_author     → require_signed_in + author of the {weet_id} weet.
                         A weet that does not exist fails as 401, not 404.
"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from fastapi import Depends, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.exceptions import AuthenticationError, AuthorizationError
from witter.models.user import User
from witter.models.weet import Weet
from witter.schemas.token import TokenClaims
from witter.services.token_service import decode_claims, has_valid_signature

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Checks
# ══════════════════════════════════════════════════════════════════════════


async def ensure_signed_in(db: AsyncSession, token: Any) -> bool:
    claims = decode_claims(token)
    if claims is None:
        return False
    try:
        return await db.get(User, claims.handle) is not None
    except SQLAlchemyError as e:
        logger.error("Signed-in check failed on database lookup: %s", str(e))
        return False


def ensure_token_origin(token: Any) -> bool:
    return has_valid_signature(token)


def ensure_owner(token: Any, owner_handle: Optional[str]) -> None:
    claims = decode_claims(token)
    if claims is None or not owner_handle or claims.handle != owner_handle:
        raise AuthorizationError("Unauthorized")


def ensure_author(token: Any, weet: Any) -> None:
    claims = decode_claims(token)
    if isinstance(weet, Mapping):
        author = weet.get("author")
    else:
        author = getattr(weet, "author", None)
    if claims is None or not author or claims.handle != author:
        raise AuthorizationError("Unauthorized")


# ══════════════════════════════════════════════════════════════════════════
# FastAPI Dependencies
# ══════════════════════════════════════════════════════════════════════════


async def read_token(request: Request) -> Any:
    """`_token` from the JSON body; None when the body is absent or not a JSON object."""
    if not await request.body():
        return None
    try:
        payload = await request.json()
    except ValueError:
        return None
    if not isinstance(payload, dict):
        return None
    return payload.get("_token")


async def require_signed_in(
    token: Any = Depends(read_token),
    db: AsyncSession = Depends(get_db_session),
) -> TokenClaims:
    if not await ensure_signed_in(db, token):
        raise AuthenticationError("Unauthorized")
    if not ensure_token_origin(token):
        logger.warning("Rejected token with a foreign or invalid signature")
        raise AuthenticationError("Unauthorized")
    return decode_claims(token)


async def require_owner(
    handle: str,
    token: Any = Depends(read_token),
    claims: TokenClaims = Depends(require_signed_in),
) -> TokenClaims:
    ensure_owner(token, handle)
    return claims


async def require_author(
    weet_id: int,
    token: Any = Depends(read_token),
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> TokenClaims:
    weet = await db.get(Weet, weet_id)
    ensure_author(token, weet)
    return claims
