"""
Witter API — Account Route Handlers
====================================

What:  POST /account/sign-up and POST /account/log-in.
How:   Both return a freshly signed session token carrying the user's public
       profile claims. Neither route requires a token.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.schemas.common import ErrorResponse, TokenResponse
from witter.schemas.user import LogInRequest, SignUpRequest
from witter.services.token_service import create_token, user_claims
from witter.services.user_service import user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/account", tags=["Account"])


@router.post(
    "/sign-up",
    status_code=201,
    response_model=TokenResponse,
    responses={
        201: {"description": "Account created; session token issued"},
        400: {"description": "Missing field, or handle/email already taken", "model": ErrorResponse},
    },
    summary="Register a new account",
)
async def sign_up(
    body: Optional[SignUpRequest] = None,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    body = body or SignUpRequest()
    user = await user_service.register(db, body.handle, body.username, body.password, body.email)
    return TokenResponse(token=create_token(user_claims(user)))


@router.post(
    "/log-in",
    status_code=201,
    response_model=TokenResponse,
    responses={
        201: {"description": "Credentials accepted; session token issued"},
        401: {"description": "Unknown handle or wrong password", "model": ErrorResponse},
    },
    summary="Exchange handle and password for a session token",
)
async def log_in(
    body: Optional[LogInRequest] = None,
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    body = body or LogInRequest()
    user = await user_service.authenticate(db, body.handle, body.password)
    logger.info("User logged in: %s", user.handle)
    return TokenResponse(token=create_token(user_claims(user)))
