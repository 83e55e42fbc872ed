"""
Witter API — Weet and Profile Enrichment
=========================================

What:  Turns bare weet rows into the enriched shape every listing returns
       (date/time strings, reaction stats, author snippet, viewer checks),
       and attaches viewer-relative follow status to profiles.
Why:   The same enrichment is needed by a single weet, a user's timeline,
       their reactions and the feed.
How:   Listings go through enrich_weets()/to_profiles(), which resolve every
       lookup for the whole page in a fixed number of queries:
           - one grouped COUNT per reaction table
           - one query for all authors
           - one query per reaction table for the viewer's own reactions
       The single-item helpers (get_stats, get_author, get_checks) serve
       callers that need one piece on its own.
       Output order always matches input order.

Time display:
    Weets are shown in US Eastern Standard Time at a fixed UTC-5 offset,
    e.g. date "February 19, 2024" and time "2:00 PM".
"""

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple, Type

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from witter.exceptions import NotFoundError, ValidationError
from witter.models.user import Follow, User
from witter.models.weet import Favorite, ReactionMixin, Reweet, Tab, Weet
from witter.schemas.user import FollowStatus, UserProfile
from witter.schemas.weet import AuthorInfo, WeetChecks, WeetResponse, WeetStats

EASTERN = timezone(timedelta(hours=-5), "EST")

# stats key, checks key, model
REACTIONS: Tuple[Tuple[str, str, Type[ReactionMixin]], ...] = (
    ("reweets", "isReweeted", Reweet),
    ("favorites", "isFavorited", Favorite),
    ("tabs", "isTabbed", Tab),
)


# ══════════════════════════════════════════════════════════════════════════
# Time Formatting
# ══════════════════════════════════════════════════════════════════════════


def as_utc(moment: datetime) -> datetime:
    """Naive timestamps (SQLite) are stored in UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def format_eastern(moment: datetime) -> Tuple[str, str]:
    """Return ("February 19, 2024", "2:00 PM") for a UTC or naive-UTC timestamp."""
    local = as_utc(moment).astimezone(EASTERN)
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return (
        f"{local:%B} {local.day}, {local.year}",
        f"{hour}:{local.minute:02d} {meridiem}",
    )


def convert_time(weet: Any) -> Dict[str, Any]:
    """
    Copy of a weet mapping with `date` and `time` strings added.

    Standalone form of the formatting enrich_weets() applies to ORM rows,
    for callers holding a plain dict.

    Raises:
        ValidationError: weet is not a mapping or has no datetime `time_date`
    """
    if not isinstance(weet, Mapping):
        raise ValidationError("Cannot convert time: a weet object is required")
    moment = weet.get("time_date")
    if not isinstance(moment, datetime):
        raise ValidationError("Cannot convert time: the weet has no valid time_date", field="time_date")
    date, time = format_eastern(moment)
    return {**weet, "date": date, "time": time}


# ══════════════════════════════════════════════════════════════════════════
# Single-Item Lookups
# ══════════════════════════════════════════════════════════════════════════

# Standalone helpers for callers that need one piece of a weet on its own.
# Listings never call these; they go through enrich_weets() below.


async def get_stats(db: AsyncSession, weet_id: int) -> WeetStats:
    """Reaction counts for one weet."""
    if await db.get(Weet, weet_id) is None:
        raise NotFoundError("The weet does not appear to exist", resource="weet", resource_id=weet_id)
    counts = await _count_reactions(db, [weet_id])
    return counts[weet_id]


async def get_author(db: AsyncSession, handle: str) -> AuthorInfo:
    """Author snippet shown next to a weet."""
    user = await db.get(User, handle)
    if user is None:
        raise NotFoundError(f"{handle} does not exist", resource="user", resource_id=handle)
    return AuthorInfo.model_validate(user)


async def get_checks(db: AsyncSession, weet_id: int, viewer: str) -> WeetChecks:
    """Which reactions `viewer` holds on one weet."""
    checks = await _viewer_checks(db, [weet_id], viewer)
    return checks[weet_id]


# ══════════════════════════════════════════════════════════════════════════
# Batched Enrichment
# ══════════════════════════════════════════════════════════════════════════


async def _count_reactions(db: AsyncSession, weet_ids: Sequence[int]) -> Dict[int, WeetStats]:
    stats = {weet_id: WeetStats() for weet_id in weet_ids}
    for key, _, model in REACTIONS:
        result = await db.execute(
            select(model.weet_id, func.count(model.id))
            .where(model.weet_id.in_(weet_ids))
            .group_by(model.weet_id)
        )
        for weet_id, count in result.all():
            setattr(stats[weet_id], key, count)
    return stats


async def _viewer_checks(
    db: AsyncSession, weet_ids: Sequence[int], viewer: str
) -> Dict[int, WeetChecks]:
    checks = {weet_id: WeetChecks() for weet_id in weet_ids}
    for _, flag, model in REACTIONS:
        result = await db.execute(
            select(model.weet_id).where(model.user_id == viewer, model.weet_id.in_(weet_ids))
        )
        for weet_id in result.scalars().all():
            setattr(checks[weet_id], flag, True)
    return checks


async def enrich_weets(
    db: AsyncSession, weets: Sequence[Weet], viewer: Optional[str] = None
) -> List[WeetResponse]:
    """
    Enrich a page of weets, preserving order.

    `checks` is filled only when a viewer is given.
    """
    if not weets:
        return []

    weet_ids = list(dict.fromkeys(weet.id for weet in weets))
    stats = await _count_reactions(db, weet_ids)
    checks = await _viewer_checks(db, weet_ids, viewer) if viewer else {}

    handles = {weet.author for weet in weets}
    result = await db.execute(select(User).where(User.handle.in_(handles)))
    authors = {user.handle: AuthorInfo.model_validate(user) for user in result.scalars().all()}

    enriched = []
    for weet in weets:
        date, time = format_eastern(weet.time_date)
        enriched.append(
            WeetResponse(
                id=weet.id,
                weet=weet.weet,
                author=weet.author,
                time_date=as_utc(weet.time_date),
                date=date,
                time=time,
                stats=stats[weet.id].model_copy(),
                userInfo=authors[weet.author],
                checks=checks[weet.id].model_copy() if viewer else None,
            )
        )
    return enriched


async def enrich_weet(db: AsyncSession, weet: Weet, viewer: Optional[str] = None) -> WeetResponse:
    return (await enrich_weets(db, [weet], viewer))[0]


async def follow_statuses(
    db: AsyncSession, handles: Iterable[str], viewer: str
) -> Dict[str, FollowStatus]:
    """
    followStatus for each handle relative to `viewer`, in two queries.

    isFollower: handle follows viewer
    isFollowee: viewer follows handle
    """
    handles = list(dict.fromkeys(handles))
    statuses = {handle: FollowStatus() for handle in handles}
    if not handles:
        return statuses

    followers = await db.execute(
        select(Follow.follower_id).where(
            Follow.followee_id == viewer, Follow.follower_id.in_(handles)
        )
    )
    for handle in followers.scalars().all():
        statuses[handle].isFollower = True

    followees = await db.execute(
        select(Follow.followee_id).where(
            Follow.follower_id == viewer, Follow.followee_id.in_(handles)
        )
    )
    for handle in followees.scalars().all():
        statuses[handle].isFollowee = True

    return statuses


async def to_profiles(
    db: AsyncSession, users: Sequence[User], viewer: Optional[str] = None
) -> List[UserProfile]:
    """Public profiles for `users`, annotated with followStatus when a viewer is given."""
    statuses = await follow_statuses(db, [user.handle for user in users], viewer) if viewer else {}
    profiles = []
    for user in users:
        profile = UserProfile.model_validate(user)
        if viewer:
            profile.followStatus = statuses[user.handle].model_copy()
        profiles.append(profile)
    return profiles
