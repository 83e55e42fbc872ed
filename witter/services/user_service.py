"""
Witter API — User Service (Accounts, Follows, Reactions)
=========================================================

What:  Business logic for everything keyed by a user handle: accounts,
       profiles, follow edges, reaction edges and the user-facing listings
       (timeline, reactions, follow lists, search, feed).
Why:   Keeps HTTP concerns out of the rules. Routes only call these methods.
How:   Stateless; every method receives the request's AsyncSession. Failures
       are raised as typed exceptions from witter.exceptions and mapped to
       HTTP responses by the global handlers.

Duplicate handling:
    Follow and reaction edges follow a strict two-state machine
    (absent ⇄ present). Adding an edge that exists, or removing one that
    does not, is rejected with ConflictError (403). The check-then-insert
    pre-check gives the friendly message; the table's unique constraint is
    the backstop for concurrent requests, and its IntegrityError is mapped
    to the same ConflictError.
"""

import logging
from typing import List, Optional, Type

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from witter.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from witter.models.user import HANDLE_MAX_LENGTH, Follow, User
from witter.models.weet import Favorite, ReactionMixin, Reweet, Tab, Weet
from witter.schemas.user import UserProfile
from witter.schemas.weet import WeetResponse
from witter.services.enrichment import enrich_weets, to_profiles
from witter.services.password_service import password_service
from witter.services.validation_service import is_valid_length

logger = logging.getLogger(__name__)


class UserService:
    """
    Business logic layer for user operations.

    Responsibilities:
        - register() / authenticate() / update() / delete(): account lifecycle
        - get(): profile with viewer-relative follow status
        - follow() / unfollow(), get_followers() / get_following()
        - reweet / favorite / tab and their removals
        - get_weets() / get_reweets() / get_favorites() / get_tabs() / get_feed()
        - search()
    """

    # ── Lookups ───────────────────────────────────────────────────────────

    async def _require_user(self, db: AsyncSession, handle: Optional[str]) -> User:
        user = await db.get(User, handle) if handle else None
        if user is None:
            raise NotFoundError(f"{handle} does not exist", resource="user", resource_id=handle)
        return user

    async def _require_weet(self, db: AsyncSession, weet_id: int) -> Weet:
        weet = await db.get(Weet, weet_id)
        if weet is None:
            raise NotFoundError(
                "The weet does not appear to exist", resource="weet", resource_id=weet_id
            )
        return weet

    @staticmethod
    def _check_capacity(**values: Optional[str]) -> None:
        """Reject handle/username values the users table cannot store."""
        for field, value in values.items():
            if value is not None and len(value) > HANDLE_MAX_LENGTH:
                raise ValidationError(
                    f"{field.capitalize()} cannot be longer than {HANDLE_MAX_LENGTH} characters.",
                    field=field,
                )

    async def _email_owner(self, db: AsyncSession, email: str) -> Optional[str]:
        result = await db.execute(select(User.handle).where(User.email == email))
        return result.scalar_one_or_none()

    # ══════════════════════════════════════════════════════════════════════
    # Account Lifecycle
    # ══════════════════════════════════════════════════════════════════════

    async def register(
        self,
        db: AsyncSession,
        handle: Optional[str],
        username: Optional[str],
        password: Optional[str],
        email: Optional[str],
    ) -> User:
        """
        Create an account and return the new row.

        Field formats are not checked here; the /validate endpoints cover
        that. Only presence, column capacity (handle and username up to 20
        characters) and uniqueness are enforced.

        Raises:
            ValidationError: a field is missing or too long, or the handle/email is taken
        """
        if not all([handle, username, password, email]):
            raise ValidationError(
                "Missing information. Please provide a handle, username, password and email."
            )
        self._check_capacity(handle=handle, username=username)
        if await db.get(User, handle) is not None:
            raise ValidationError(
                f"Please use a different handle. {handle} is already taken", field="handle"
            )
        if await self._email_owner(db, email) is not None:
            raise ValidationError(
                f"Please use a different email. {email} is already taken", field="email"
            )

        user = User(
            handle=handle,
            username=username,
            password=password_service.hash(password),
            email=email,
        )
        db.add(user)
        try:
            await db.flush()
        except IntegrityError as e:
            await db.rollback()
            raise ValidationError(
                "Please use a different handle or email. One of them is already taken",
                context={"original_error": type(e).__name__},
            )
        except SQLAlchemyError as e:
            logger.error("Failed to register %s: %s", handle, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "register", "handle": handle})

        logger.info("Registered new account: %s", handle)
        return user

    async def authenticate(
        self, db: AsyncSession, handle: Optional[str], password: Optional[str]
    ) -> User:
        """Return the user row for valid credentials, else AuthenticationError (401)."""
        user = await db.get(User, handle) if handle else None
        if user is None or not password_service.verify(password or "", user.password):
            logger.warning("Failed log-in attempt for handle: %s", handle)
            raise AuthenticationError("Cannot authenticate")
        return user

    async def get(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> UserProfile:
        """Public profile; carries followStatus when a viewer is given."""
        user = await self._require_user(db, handle)
        return (await to_profiles(db, [user], viewer))[0]

    async def update(
        self,
        db: AsyncSession,
        handle: str,
        username: Optional[str],
        old_password: Optional[str],
        new_password: Optional[str],
        email: Optional[str],
        user_description: Optional[str],
        profile_image: Optional[str],
        banner_image: Optional[str],
    ) -> User:
        """
        Update profile fields, optionally rotating the password.

        An empty or missing new_password keeps the current password.

        Raises:
            ValidationError (400):     a required field is missing, or the
                                       username is longer than 20 characters
            NotFoundError (404):       unknown handle
            AuthenticationError (401): old_password does not match
            ConflictError (403):       email owned by another account, or the
                                       new password equals the old one or is
                                       outside 8-20 characters
        """
        required = [username, old_password, email, user_description, profile_image, banner_image]
        if any(value is None or value == "" for value in required):
            raise ValidationError(
                "Missing information. Please provide a username, old password, email, "
                "user description, profile picture and banner picture."
            )
        self._check_capacity(username=username)

        user = await self._require_user(db, handle)

        if not password_service.verify(old_password, user.password):
            logger.warning("Profile update for %s rejected: wrong password", handle)
            raise AuthenticationError("Invalid credentials. Please provide the proper password.")

        owner = await self._email_owner(db, email)
        if owner is not None and owner != handle:
            raise ConflictError(f"Please select a different email. {email} is already taken.")

        if new_password:
            if new_password == old_password:
                raise ConflictError("New password cannot be the same as the old password.")
            if not is_valid_length(new_password):
                raise ConflictError("New password must be between 8 - 20 characters long.")
            user.password = password_service.hash(new_password)

        user.username = username
        user.email = email
        user.user_description = user_description
        user.profile_image = profile_image
        user.banner_image = banner_image

        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(f"Please select a different email. {email} is already taken.")
        except SQLAlchemyError as e:
            logger.error("Failed to update %s: %s", handle, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "update", "handle": handle})

        logger.info("Updated profile: %s (password changed: %s)", handle, bool(new_password))
        return user

    async def delete(self, db: AsyncSession, handle: str) -> str:
        """Delete an account. Weets, follows and reactions cascade at the store."""
        user = await self._require_user(db, handle)
        try:
            await db.delete(user)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to delete %s: %s", handle, str(e), exc_info=True)
            raise DatabaseError(context={"operation": "delete", "handle": handle})
        logger.info("Deleted account: %s", handle)
        return f"{handle} has been deleted"

    # ══════════════════════════════════════════════════════════════════════
    # Follow Graph
    # ══════════════════════════════════════════════════════════════════════

    async def _follow_edge(self, db: AsyncSession, follower: str, followee: str) -> Optional[Follow]:
        result = await db.execute(
            select(Follow).where(Follow.follower_id == follower, Follow.followee_id == followee)
        )
        return result.scalar_one_or_none()

    async def follow(self, db: AsyncSession, follower: str, followee: str) -> str:
        """
        Add the edge follower → followee.

        Self-follows are rejected before either handle is looked up.
        """
        if follower == followee:
            raise AuthorizationError("You cannot follow yourself")
        await self._require_user(db, follower)
        await self._require_user(db, followee)

        if await self._follow_edge(db, follower, followee) is not None:
            raise ConflictError("You are already following this user")

        db.add(Follow(follower_id=follower, followee_id=followee))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError("You are already following this user")
        except SQLAlchemyError as e:
            logger.error("Failed to add follow %s -> %s: %s", follower, followee, str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": "follow", "follower": follower, "followee": followee}
            )

        logger.info("%s followed %s", follower, followee)
        return f"{follower} is now following {followee}"

    async def unfollow(self, db: AsyncSession, follower: str, followee: str) -> str:
        """Remove the edge follower → followee."""
        if follower == followee:
            raise AuthorizationError("You cannot unfollow yourself")
        await self._require_user(db, follower)
        await self._require_user(db, followee)

        edge = await self._follow_edge(db, follower, followee)
        if edge is None:
            raise ConflictError("You are not following this user")

        try:
            await db.delete(edge)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Failed to remove follow %s -> %s: %s", follower, followee, str(e), exc_info=True)
            raise DatabaseError(
                context={"operation": "unfollow", "follower": follower, "followee": followee}
            )
        logger.info("%s unfollowed %s", follower, followee)
        return f"{follower} is no longer following {followee}"

    async def get_followers(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[UserProfile]:
        """Users following `handle`, in the order the edges were created."""
        await self._require_user(db, handle)
        result = await db.execute(
            select(User)
            .join(Follow, Follow.follower_id == User.handle)
            .where(Follow.followee_id == handle)
            .order_by(Follow.id.asc())
        )
        return await to_profiles(db, result.scalars().all(), viewer)

    async def get_following(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[UserProfile]:
        """Users `handle` follows, in the order the edges were created."""
        await self._require_user(db, handle)
        result = await db.execute(
            select(User)
            .join(Follow, Follow.followee_id == User.handle)
            .where(Follow.follower_id == handle)
            .order_by(Follow.id.asc())
        )
        return await to_profiles(db, result.scalars().all(), viewer)

    async def search(
        self, db: AsyncSession, query: str, viewer: Optional[str] = None
    ) -> List[UserProfile]:
        """Case-insensitive substring match on username; LIKE wildcards are literal."""
        result = await db.execute(
            select(User)
            .where(User.username.icontains(query, autoescape=True))
            .order_by(User.handle.asc())
        )
        return await to_profiles(db, result.scalars().all(), viewer)

    # ══════════════════════════════════════════════════════════════════════
    # Reactions (reweet / favorite / tab)
    # ══════════════════════════════════════════════════════════════════════

    async def _has_reaction(
        self, db: AsyncSession, model: Type[ReactionMixin], handle: str, weet_id: int
    ) -> bool:
        result = await db.execute(
            select(model.id).where(model.user_id == handle, model.weet_id == weet_id)
        )
        return result.scalar_one_or_none() is not None

    async def _add_reaction(
        self,
        db: AsyncSession,
        model: Type[ReactionMixin],
        handle: str,
        weet_id: int,
        verb: str,
    ) -> None:
        await self._require_weet(db, weet_id)
        await self._require_user(db, handle)

        if await self._has_reaction(db, model, handle, weet_id):
            raise ConflictError(f"{handle} has already {verb} the weet.")

        db.add(model(user_id=handle, weet_id=weet_id))
        try:
            await db.flush()
        except IntegrityError:
            await db.rollback()
            raise ConflictError(f"{handle} has already {verb} the weet.")
        except SQLAlchemyError as e:
            logger.error("Failed to add %s on weet %s: %s", model.__tablename__, weet_id, str(e),
                         exc_info=True)
            raise DatabaseError(
                context={"operation": f"add_{model.__tablename__}", "handle": handle, "weet_id": weet_id}
            )
        logger.info("%s %s weet %s", handle, verb, weet_id)

    async def _remove_reaction(
        self,
        db: AsyncSession,
        model: Type[ReactionMixin],
        handle: str,
        weet_id: int,
        verb: str,
    ) -> None:
        await self._require_weet(db, weet_id)
        await self._require_user(db, handle)

        try:
            result = await db.execute(
                delete(model).where(model.user_id == handle, model.weet_id == weet_id)
            )
        except SQLAlchemyError as e:
            logger.error("Failed to remove %s on weet %s: %s", model.__tablename__, weet_id, str(e),
                         exc_info=True)
            raise DatabaseError(
                context={"operation": f"remove_{model.__tablename__}", "handle": handle,
                         "weet_id": weet_id}
            )
        if result.rowcount == 0:
            raise ConflictError(f"{handle} has not {verb} the weet.")
        logger.info("%s removed %s on weet %s", handle, model.__tablename__, weet_id)

    async def reweet(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._add_reaction(db, Reweet, handle, weet_id, "reweeted")
        return "Weet successfully reweeted"

    async def un_reweet(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._remove_reaction(db, Reweet, handle, weet_id, "reweeted")
        return "Successfully removed the reweet"

    async def favorite(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._add_reaction(db, Favorite, handle, weet_id, "favorited")
        return "Weet successfully favorited"

    async def un_favorite(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._remove_reaction(db, Favorite, handle, weet_id, "favorited")
        return "Successfully removed the favorite"

    async def tab(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._add_reaction(db, Tab, handle, weet_id, "tabbed")
        return "Weet successfully tabbed"

    async def un_tab(self, db: AsyncSession, handle: str, weet_id: int) -> str:
        await self._remove_reaction(db, Tab, handle, weet_id, "tabbed")
        return "Successfully removed the tab"

    # ══════════════════════════════════════════════════════════════════════
    # Listings
    # ══════════════════════════════════════════════════════════════════════

    async def get_weets(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[WeetResponse]:
        """Weets authored by `handle`, newest first."""
        await self._require_user(db, handle)
        result = await db.execute(
            select(Weet)
            .where(Weet.author == handle)
            .order_by(Weet.time_date.desc(), Weet.id.desc())
        )
        return await enrich_weets(db, result.scalars().all(), viewer)

    async def _get_reacted(
        self,
        db: AsyncSession,
        model: Type[ReactionMixin],
        handle: str,
        viewer: Optional[str],
    ) -> List[WeetResponse]:
        await self._require_user(db, handle)
        result = await db.execute(
            select(Weet)
            .join(model, model.weet_id == Weet.id)
            .where(model.user_id == handle)
            .order_by(model.time_date.desc(), model.id.desc())
        )
        return await enrich_weets(db, result.scalars().all(), viewer)

    async def get_reweets(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[WeetResponse]:
        """Weets reweeted by `handle`, most recent reweet first."""
        return await self._get_reacted(db, Reweet, handle, viewer)

    async def get_favorites(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[WeetResponse]:
        return await self._get_reacted(db, Favorite, handle, viewer)

    async def get_tabs(
        self, db: AsyncSession, handle: str, viewer: Optional[str] = None
    ) -> List[WeetResponse]:
        return await self._get_reacted(db, Tab, handle, viewer)

    async def get_feed(self, db: AsyncSession, handle: str) -> List[WeetResponse]:
        """
        The user's own weets plus those of everyone they follow, newest first.

        With no follows this is exactly get_weets(handle, handle).
        """
        await self._require_user(db, handle)
        followees = select(Follow.followee_id).where(Follow.follower_id == handle)
        result = await db.execute(
            select(Weet)
            .where((Weet.author == handle) | Weet.author.in_(followees))
            .order_by(Weet.time_date.desc(), Weet.id.desc())
        )
        return await enrich_weets(db, result.scalars().all(), handle)


user_service = UserService()
