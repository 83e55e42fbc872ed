"""
Witter API — User Request/Response Schemas
===========================================

What:  Request bodies for sign-up, log-in and profile edits, and the public
       profile shape returned by profile, search and follow-list endpoints.
Why:   The ORM row carries the password hash; UserProfile is the only shape
       that leaves the service layer, so the hash can never be serialized.

Field naming:
    Request bodies for profile edits and the follow-status flags use the
    camelCase keys the frontend already sends. Profile columns keep their
    snake_case database names.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from witter.schemas.common import TokenBody


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class SignUpRequest(BaseModel):
    """
    Fields are optional at the schema level so a missing field produces the
    service's own 400 message instead of a generic schema error.
    """
    handle: Optional[str] = Field(default=None, description="Unique handle, 8-20 alphanumerics")
    username: Optional[str] = Field(default=None, description="Display name, 8-20 characters")
    password: Optional[str] = Field(default=None, description="Plain-text password")
    email: Optional[str] = Field(default=None, description="Unique contact email")


class LogInRequest(BaseModel):
    handle: Optional[str] = None
    password: Optional[str] = None


class ProfileUpdateRequest(TokenBody):
    """Body of PUT /profile/{handle}/edit and POST /validate/update-profile/{handle}."""
    username: Optional[str] = None
    oldPassword: Optional[str] = Field(default=None, description="Current password, re-checked")
    newPassword: Optional[str] = Field(
        default=None,
        description="Replacement password; omit or send empty to keep the current one",
    )
    email: Optional[str] = None
    userDescription: Optional[str] = None
    profilePicture: Optional[str] = None
    bannerPicture: Optional[str] = None


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class FollowStatus(BaseModel):
    """
    Viewer-relative relationship flags.

    isFollower: the profile user follows the viewer
    isFollowee: the viewer follows the profile user
    """
    isFollower: bool = False
    isFollowee: bool = False


class UserProfile(BaseModel):
    """Public view of a user. Never includes the password hash."""
    handle: str
    username: str
    email: str
    user_description: str
    profile_image: str
    banner_image: str
    followStatus: Optional[FollowStatus] = Field(
        default=None,
        description="Present when the request was made by a signed-in viewer",
    )

    model_config = {"from_attributes": True}


class ProfileResponse(BaseModel):
    user: UserProfile


class UserListResponse(BaseModel):
    result: List[UserProfile]
