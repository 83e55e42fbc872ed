"""
Witter API — Weet Route Handlers
=================================

Route Inventory:
    POST   /weets                         create a weet
    POST   /weets/feed                    own + followed users' weets, newest first
    POST   /weets/{weet_id}               one enriched weet
    PUT    /weets/{weet_id}               edit (author only)
    DELETE /weets/{weet_id}               delete (author only)
    POST   /weets/{weet_id}/reweet        and unreweet, favorite, unfavorite,
                                          tab, untab

/weets/feed is declared before /weets/{weet_id} so "feed" is never parsed
as an id.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from witter.database import get_db_session
from witter.middleware.auth import require_author, require_signed_in
from witter.schemas.common import ErrorResponse, MessageResponse
from witter.schemas.token import TokenClaims
from witter.schemas.weet import WeetBody, WeetListResponse, WeetResult
from witter.services.user_service import user_service
from witter.services.weet_service import weet_service

router = APIRouter(prefix="/weets", tags=["Weets"])

_AUTH_ERRORS = {401: {"description": "Missing, invalid or foreign token", "model": ErrorResponse}}
_REACTION_ERRORS = {
    **_AUTH_ERRORS,
    403: {"description": "Reaction already present / not present", "model": ErrorResponse},
    404: {"description": "Unknown weet", "model": ErrorResponse},
}


@router.post(
    "",
    status_code=201,
    response_model=MessageResponse,
    responses={
        **_AUTH_ERRORS,
        400: {"description": "Empty weet", "model": ErrorResponse},
    },
    summary="Post a weet as the signed-in user",
)
async def create_weet(
    body: Optional[WeetBody] = None,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    body = body or WeetBody()
    await weet_service.create(db, body.weet, claims.handle, claims.handle)
    return MessageResponse(message="Weet successfully created")


@router.post(
    "/feed",
    status_code=201,
    response_model=WeetListResponse,
    responses=_AUTH_ERRORS,
    summary="The signed-in user's feed",
)
async def get_feed(
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetListResponse:
    return WeetListResponse(result=await user_service.get_feed(db, claims.handle))


@router.post(
    "/{weet_id}",
    status_code=201,
    response_model=WeetResult,
    responses={**_AUTH_ERRORS, 404: {"description": "Unknown weet", "model": ErrorResponse}},
    summary="Get one weet",
)
async def get_weet(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> WeetResult:
    return WeetResult(result=await weet_service.get(db, weet_id, claims.handle))


@router.put(
    "/{weet_id}",
    status_code=201,
    response_model=MessageResponse,
    responses={
        400: {"description": "Empty weet", "model": ErrorResponse},
        401: {"description": "Not the author, or the weet does not exist", "model": ErrorResponse},
    },
    summary="Edit a weet's text",
)
async def edit_weet(
    weet_id: int,
    body: Optional[WeetBody] = None,
    claims: TokenClaims = Depends(require_author),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    body = body or WeetBody()
    await weet_service.edit(db, weet_id, body.weet, claims.handle)
    return MessageResponse(message="Weet successfully edited")


@router.delete(
    "/{weet_id}",
    status_code=201,
    response_model=MessageResponse,
    responses={
        401: {"description": "Not the author, or the weet does not exist", "model": ErrorResponse},
    },
    summary="Delete a weet",
)
async def delete_weet(
    weet_id: int,
    claims: TokenClaims = Depends(require_author),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await weet_service.delete(db, weet_id))


# ── Reactions ─────────────────────────────────────────────────────────────


@router.post("/{weet_id}/reweet", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Reweet a weet")
async def reweet(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.reweet(db, claims.handle, weet_id))


@router.post("/{weet_id}/unreweet", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Remove a reweet")
async def unreweet(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.un_reweet(db, claims.handle, weet_id))


@router.post("/{weet_id}/favorite", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Favorite a weet")
async def favorite(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.favorite(db, claims.handle, weet_id))


@router.post("/{weet_id}/unfavorite", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Remove a favorite")
async def unfavorite(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.un_favorite(db, claims.handle, weet_id))


@router.post("/{weet_id}/tab", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Tab (bookmark) a weet")
async def tab(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.tab(db, claims.handle, weet_id))


@router.post("/{weet_id}/untab", status_code=201, response_model=MessageResponse,
             responses=_REACTION_ERRORS, summary="Remove a tab")
async def untab(
    weet_id: int,
    claims: TokenClaims = Depends(require_signed_in),
    db: AsyncSession = Depends(get_db_session),
) -> MessageResponse:
    return MessageResponse(message=await user_service.un_tab(db, claims.handle, weet_id))
