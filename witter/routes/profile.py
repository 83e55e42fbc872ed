"""
Witter API — Profile Route Handlers
====================================

What:  A user's profile page and everything listed on it, plus the owner-only
       edit and delete actions.

Route Inventory:
    POST   /profile/{handle}              profile with viewer follow status
    PUT    /profile/{handle}/edit         update profile (owner only) → new token
    DELETE /profile/{handle}/edit         delete account (owner only)
    POST   /profile/{handle}/weets        authored weets, newest first
    POST   /profile/{handle}/reweets      reweeted weets
    POST   /profile/{handle}/favorites    favorited weets
    POST   /profile/{handle}/tabs         tabbed weets
    POST   /profile/{handle}/following    users {handle} follows
    POST   /profile/{handle}/followers    users following {handle}

Every route needs a valid `_token` in the body. Reads are POSTs for that
reason.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.middleware.auth import require_owner, require_signed_in
from witter.schemas.common import ErrorResponse, MessageResponse, TokenResponse
from witter.schemas.token import TokenClaims
from witter.schemas.user import ProfileResponse, ProfileUpdateRequest, UserListResponse
from witter.schemas.weet import WeetListResponse
from witter.services.token_service import create_token, user_claims
from witter.services.user_service import user_service

router = APIRouter(prefix="/profile", tags=["Profile"])

_AUTH_ERRORS = {401: {"description": "Missing, invalid or foreign token", "model": ErrorResponse}}
_LOOKUP_ERRORS = {
    **_AUTH_ERRORS,
    404: {"description": "Unknown handle", "model": ErrorResponse},
}


@router.post(
    "/{handle}",
    status_code=201,
    response_model=ProfileResponse,
    responses=_LOOKUP_ERRORS,
    summary="Get a user's profile",
)
async def get_profile(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> ProfileResponse:
    user = await user_service.get(db, handle, claims.handle)
    return ProfileResponse(user=user)


@router.put(
    "/{handle}/edit",
    status_code=201,
    response_model=TokenResponse,
    responses={
        400: {"description": "Missing profile information", "model": ErrorResponse},
        401: {"description": "Not the owner, or wrong old password", "model": ErrorResponse},
        403: {"description": "Email taken, or new password rejected", "model": ErrorResponse},
    },
    summary="Update the signed-in user's profile",
    description=(
        "Re-checks the old password before applying changes. Send an empty or missing "
        "newPassword to keep the current password. Returns a new token with the updated claims."
    ),
)
async def edit_profile(
    handle: str,
    body: Optional[ProfileUpdateRequest] = None,
    claims: TokenClaims = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> TokenResponse:
    body = body or ProfileUpdateRequest()
    user = await user_service.update(
        db,
        handle,
        username=body.username,
        old_password=body.oldPassword,
        new_password=body.newPassword,
        email=body.email,
        user_description=body.userDescription,
        profile_image=body.profilePicture,
        banner_image=body.bannerPicture,
    )
    return TokenResponse(token=create_token(user_claims(user)))


@router.delete(
    "/{handle}/edit",
    status_code=201,
    response_model=MessageResponse,
    responses=_LOOKUP_ERRORS,
    summary="Delete the signed-in user's account",
)
async def delete_profile(
    handle: str,
    claims: TokenClaims = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    message = await user_service.delete(db, handle)
    return MessageResponse(message=message)


# ── Profile Listings ──────────────────────────────────────────────────────


@router.post("/{handle}/weets", status_code=201, response_model=WeetListResponse,
             responses=_LOOKUP_ERRORS, summary="Weets written by a user")
async def get_user_weets(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetListResponse:
    return WeetListResponse(result=await user_service.get_weets(db, handle, claims.handle))


@router.post("/{handle}/reweets", status_code=201, response_model=WeetListResponse,
             responses=_LOOKUP_ERRORS, summary="Weets a user has reweeted")
async def get_user_reweets(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetListResponse:
    return WeetListResponse(result=await user_service.get_reweets(db, handle, claims.handle))


@router.post("/{handle}/favorites", status_code=201, response_model=WeetListResponse,
             responses=_LOOKUP_ERRORS, summary="Weets a user has favorited")
async def get_user_favorites(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetListResponse:
    return WeetListResponse(result=await user_service.get_favorites(db, handle, claims.handle))


@router.post("/{handle}/tabs", status_code=201, response_model=WeetListResponse,
             responses=_LOOKUP_ERRORS, summary="Weets a user has tabbed")
async def get_user_tabs(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetListResponse:
    return WeetListResponse(result=await user_service.get_tabs(db, handle, claims.handle))


@router.post("/{handle}/following", status_code=201, response_model=UserListResponse,
             responses=_LOOKUP_ERRORS, summary="Users this user follows")
async def get_user_following(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return UserListResponse(result=await user_service.get_following(db, handle, claims.handle))


@router.post("/{handle}/followers", status_code=201, response_model=UserListResponse,
             responses=_LOOKUP_ERRORS, summary="Users following this user")
async def get_user_followers(
    handle: str,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> UserListResponse:
    return UserListResponse(result=await user_service.get_followers(db, handle, claims.handle))
