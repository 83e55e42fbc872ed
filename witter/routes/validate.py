"""
Witter API — Form Validation Route Handlers
============================================

What:  Dry-run field checks for the sign-up and edit-profile forms.
Why:   The frontend shows per-field messages before submitting to
       /account/sign-up or PUT /profile/{handle}/edit.
How:   Nothing is written. Every field is checked and reported, valid or not.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.middleware.auth import require_owner
from witter.schemas.common import ErrorResponse
from witter.schemas.token import TokenClaims
from witter.schemas.user import ProfileUpdateRequest, SignUpRequest
from witter.schemas.validation import SignUpValidationResponse, UpdateProfileValidationResponse
from witter.services.validation_service import validation_service

router = APIRouter(prefix="/validate", tags=["Validation"])


@router.post(
    "/sign-up",
    status_code=201,
    response_model=SignUpValidationResponse,
    summary="Check sign-up fields",
)
async def validate_sign_up(
    body: Optional[SignUpRequest] = None,
    db: AsyncSession = Depends(get_db_session),
) -> SignUpValidationResponse:
    body = body or SignUpRequest()
    result = await validation_service.is_valid_sign_up(
        db, body.handle, body.username, body.password, body.email
    )
    return SignUpValidationResponse(result=result)


@router.post(
    "/update-profile/{handle}",
    status_code=201,
    response_model=UpdateProfileValidationResponse,
    response_model_exclude_none=True,
    responses={401: {"description": "Not signed in as {handle}", "model": ErrorResponse}},
    summary="Check edit-profile fields",
    description="newPassword is omitted from the result when no new password was sent.",
)
async def validate_update_profile(
    handle: str,
    body: Optional[ProfileUpdateRequest] = None,
    claims: TokenClaims = Depends(require_owner),
    db: AsyncSession = Depends(get_db_session),
) -> UpdateProfileValidationResponse:
    body = body or ProfileUpdateRequest()
    result = await validation_service.is_valid_update_profile(
        db,
        handle,
        username=body.username,
        old_password=body.oldPassword,
        new_password=body.newPassword,
        email=body.email,
        user_description=body.userDescription,
        profile_picture=body.profilePicture,
        banner_picture=body.bannerPicture,
    )
    return UpdateProfileValidationResponse(result=result)
