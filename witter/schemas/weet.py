"""
Witter API — Weet Request/Response Schemas
===========================================

What:  The weet body for create/edit, and the enriched weet returned by
       every weet listing.

Enriched weet shape:
    {
        "id": 7,
        "weet": "hello",
        "author": "handle123",
        "time_date": "2024-02-19T19:00:00+00:00",
        "date": "February 19, 2024",
        "time": "2:00 PM",
        "stats": {"reweets": 1, "favorites": 0, "tabs": 0},
        "userInfo": {"username": ..., "user_description": ...,
                     "profile_image": ..., "banner_image": ...},
        "checks": {"isReweeted": true, "isFavorited": false, "isTabbed": false}
    }
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from witter.schemas.common import TokenBody


class WeetBody(TokenBody):
    weet: Optional[str] = Field(default=None, description="Body text of the weet")


class WeetStats(BaseModel):
    reweets: int = 0
    favorites: int = 0
    tabs: int = 0


class AuthorInfo(BaseModel):
    username: str
    user_description: str
    profile_image: str
    banner_image: str

    model_config = {"from_attributes": True}


class WeetChecks(BaseModel):
    isReweeted: bool = False
    isFavorited: bool = False
    isTabbed: bool = False


class WeetResponse(BaseModel):
    id: int
    weet: str
    author: str
    time_date: datetime = Field(description="When the weet was posted (UTC)")
    date: str = Field(description="Posting date in US Eastern time, e.g. 'February 19, 2024'")
    time: str = Field(description="Posting time in US Eastern time, e.g. '2:00 PM'")
    stats: WeetStats
    userInfo: AuthorInfo
    checks: Optional[WeetChecks] = Field(
        default=None,
        description="Viewer's own reactions; present when a viewer is known",
    )


class WeetResult(BaseModel):
    result: WeetResponse


class WeetListResponse(BaseModel):
    result: List[WeetResponse]
