"""
Witter API — User Search & Follow Route Handlers
=================================================

What:  Username search and follow/unfollow for the signed-in user.
Who:   The acting user is always the token's handle; the path names the
       other user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.middleware.auth import require_signed_in
from witter.schemas.common import ErrorResponse, MessageResponse
from witter.schemas.token import TokenClaims
from witter.schemas.user import UserListResponse
from witter.services.user_service import user_service

router = APIRouter(prefix="/users", tags=["Users"])

_FOLLOW_ERRORS = {
    401: {"description": "Invalid token, or the target is the signed-in user", "model": ErrorResponse},
    403: {"description": "Already following / not following", "model": ErrorResponse},
    404: {"description": "Unknown handle", "model": ErrorResponse},
}


@router.post(
    "/{search}",
    status_code=201,
    response_model=UserListResponse,
    responses={401: {"description": "Missing, invalid or foreign token", "model": ErrorResponse}},
    summary="Search users by username",
    description="Case-insensitive substring match on username. Each hit carries followStatus.",
)
async def search_users(
    search: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return UserListResponse(result=await user_service.search(db, search, claims.handle))


@router.post(
    "/{handle}/follow",
    status_code=201,
    response_model=MessageResponse,
    responses=_FOLLOW_ERRORS,
    summary="Follow a user",
)
async def follow_user(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.follow(db, claims.handle, handle)
    return MessageResponse(message=f"You are now following {handle}")


@router.post(
    "/{handle}/unfollow",
    status_code=201,
    response_model=MessageResponse,
    responses=_FOLLOW_ERRORS,
    summary="Unfollow a user",
)
async def unfollow_user(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    await user_service.unfollow(db, claims.handle, handle)
    return MessageResponse(message=f"You are no longer following {handle}")
