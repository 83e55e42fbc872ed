"""
Witter API — User Service Unit Tests
=====================================

What we test:
    ✅ register / authenticate / update / delete
    ✅ Follow graph rules and follow-list ordering
    ✅ Reaction state machine (absent ⇄ present) for all three kinds
    ✅ Timelines, reaction listings, search and the feed
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from conftest import DEFAULT_PASSWORD
from witter.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
)
from witter.models.user import Follow, User
from witter.models.weet import Favorite, Weet
from witter.services.password_service import password_service
from witter.services.user_service import UserService

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
PICTURE = "https://images.example.com/me.png"


def _later(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


def _failing_store() -> AsyncMock:
    return AsyncMock(side_effect=OperationalError("statement", {}, Exception("disk I/O error")))


# ══════════════════════════════════════════════════════════════════════════
# Accounts
# ══════════════════════════════════════════════════════════════════════════


class TestRegisterAndAuthenticate:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_register_hashes_password_and_sets_defaults(self, db_session):
        user = await self.service.register(
            db_session, "register01", "Register User", DEFAULT_PASSWORD, "register@mail.com"
        )
        assert user.password != DEFAULT_PASSWORD
        assert password_service.verify(DEFAULT_PASSWORD, user.password)
        assert user.user_description == "A default user description"
        assert user.profile_image == "A default profile image"
        assert user.banner_image == "A default banner image"

    @pytest.mark.asyncio
    async def test_register_missing_field(self, db_session):
        with pytest.raises(ValidationError):
            await self.service.register(db_session, "register01", None, DEFAULT_PASSWORD, "r@mail.com")

    @pytest.mark.asyncio
    async def test_register_duplicate_handle(self, db_session, make_user):
        await make_user("register01")
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(
                db_session, "register01", "Someone Else", DEFAULT_PASSWORD, "else@mail.com"
            )
        assert exc_info.value.status_code == 400
        assert "register01 is already taken" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, db_session, make_user):
        await make_user("register01", email="shared@mail.com")
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(
                db_session, "register02", "Someone Else", DEFAULT_PASSWORD, "shared@mail.com"
            )
        assert "shared@mail.com is already taken" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_register_email_race_hits_unique_constraint(self, db_session, make_user, monkeypatch):
        await make_user("register01", email="shared@mail.com")
        # Simulates a concurrent sign-up claiming the email after the lookup
        monkeypatch.setattr(self.service, "_email_owner", AsyncMock(return_value=None))
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(
                db_session, "register02", "Someone Else", DEFAULT_PASSWORD, "shared@mail.com"
            )
        assert exc_info.value.status_code == 400
        assert exc_info.value.message == (
            "Please use a different handle or email. One of them is already taken"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handle,username", [
        ("h" * 21, "Fine Name"),
        ("h" * 200, "Fine Name"),
        ("register01", "u" * 21),
    ])
    async def test_register_rejects_values_over_20_characters(self, db_session, handle, username):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.register(db_session, handle, username, DEFAULT_PASSWORD, "r@mail.com")
        assert exc_info.value.status_code == 400
        assert "cannot be longer than 20 characters" in exc_info.value.message
        assert await db_session.scalar(select(func.count(User.handle))) == 0

    @pytest.mark.asyncio
    async def test_register_accepts_20_characters(self, db_session):
        user = await self.service.register(
            db_session, "h" * 20, "u" * 20, DEFAULT_PASSWORD, "edge@mail.com"
        )
        assert user.handle == "h" * 20

    @pytest.mark.asyncio
    async def test_register_database_failure(self, db_session, monkeypatch):
        monkeypatch.setattr(db_session, "flush", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.register(
                db_session, "register01", "Register User", DEFAULT_PASSWORD, "r@mail.com"
            )
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_authenticate(self, db_session, make_user):
        await make_user("loginuser1")
        user = await self.service.authenticate(db_session, "loginuser1", DEFAULT_PASSWORD)
        assert user.handle == "loginuser1"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("handle,password", [
        ("loginuser1", "Wrong1!pass"),
        ("nosuchuser", DEFAULT_PASSWORD),
        (None, None),
    ])
    async def test_authenticate_failures(self, db_session, make_user, handle, password):
        await make_user("loginuser1")
        with pytest.raises(AuthenticationError) as exc_info:
            await self.service.authenticate(db_session, handle, password)
        assert exc_info.value.message == "Cannot authenticate"


class TestProfile:

    def setup_method(self):
        self.service = UserService()

    async def _update(self, db_session, handle, **overrides):
        fields = dict(
            username="Updated Name",
            old_password=DEFAULT_PASSWORD,
            new_password="",
            email=f"{handle}@witter.com",
            user_description="Updated description",
            profile_image=PICTURE,
            banner_image=PICTURE,
        )
        fields.update(overrides)
        return await self.service.update(db_session, handle, **fields)

    @pytest.mark.asyncio
    async def test_get_without_viewer(self, db_session, make_user):
        await make_user("profile001")
        profile = await self.service.get(db_session, "profile001")
        assert profile.handle == "profile001"
        assert profile.followStatus is None
        assert "password" not in profile.model_dump()

    @pytest.mark.asyncio
    async def test_get_with_viewer(self, db_session, make_user):
        await make_user("profile001")
        await make_user("viewer0001")
        await self.service.follow(db_session, "viewer0001", "profile001")
        profile = await self.service.get(db_session, "profile001", "viewer0001")
        assert profile.followStatus.isFollowee is True
        assert profile.followStatus.isFollower is False

    @pytest.mark.asyncio
    async def test_get_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get(db_session, "nosuchuser")

    @pytest.mark.asyncio
    async def test_update_keeps_password_when_no_new_one(self, db_session, make_user):
        await make_user("profile001")
        user = await self._update(db_session, "profile001")
        assert user.username == "Updated Name"
        assert user.profile_image == PICTURE
        assert password_service.verify(DEFAULT_PASSWORD, user.password)

    @pytest.mark.asyncio
    async def test_update_rotates_password(self, db_session, make_user):
        await make_user("profile001")
        user = await self._update(db_session, "profile001", new_password="Another2@pw")
        assert password_service.verify("Another2@pw", user.password)
        assert not password_service.verify(DEFAULT_PASSWORD, user.password)

    @pytest.mark.asyncio
    async def test_update_missing_field(self, db_session, make_user):
        await make_user("profile001")
        with pytest.raises(ValidationError):
            await self._update(db_session, "profile001", banner_image=None)

    @pytest.mark.asyncio
    async def test_update_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self._update(db_session, "nosuchuser")

    @pytest.mark.asyncio
    async def test_update_wrong_old_password(self, db_session, make_user):
        await make_user("profile001")
        with pytest.raises(AuthenticationError):
            await self._update(db_session, "profile001", old_password="Wrong1!pass")

    @pytest.mark.asyncio
    async def test_update_email_of_another_user(self, db_session, make_user):
        await make_user("profile001")
        await make_user("profile002", email="taken@mail.com")
        with pytest.raises(ConflictError):
            await self._update(db_session, "profile001", email="taken@mail.com")

    @pytest.mark.asyncio
    async def test_update_email_race_hits_unique_constraint(self, db_session, make_user, monkeypatch):
        await make_user("profile001")
        await make_user("profile002", email="taken@mail.com")
        monkeypatch.setattr(self.service, "_email_owner", AsyncMock(return_value=None))
        with pytest.raises(ConflictError) as exc_info:
            await self._update(db_session, "profile001", email="taken@mail.com")
        assert exc_info.value.status_code == 403
        assert exc_info.value.message == "Please select a different email. taken@mail.com is already taken."

    @pytest.mark.asyncio
    async def test_update_username_over_20_characters(self, db_session, make_user):
        await make_user("profile001")
        with pytest.raises(ValidationError) as exc_info:
            await self._update(db_session, "profile001", username="n" * 21)
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("new_password", [DEFAULT_PASSWORD, "Sh0rt!", "Way2Long!" * 3])
    async def test_update_bad_new_password(self, db_session, make_user, new_password):
        await make_user("profile001")
        with pytest.raises(ConflictError):
            await self._update(db_session, "profile001", new_password=new_password)

    @pytest.mark.asyncio
    async def test_delete_cascades(self, db_session, make_user, make_weet):
        await make_user("leaving001")
        await make_user("staying01")
        own = await make_weet("leaving001")
        other = await make_weet("staying01")
        await self.service.follow(db_session, "leaving001", "staying01")
        await self.service.favorite(db_session, "leaving001", other.id)

        message = await self.service.delete(db_session, "leaving001")
        assert message == "leaving001 has been deleted"

        weets = await db_session.scalar(select(func.count(Weet.id)).where(Weet.id == own.id))
        follows = await db_session.scalar(select(func.count(Follow.id)))
        favorites = await db_session.scalar(select(func.count(Favorite.id)))
        assert (weets, follows, favorites) == (0, 0, 0)

    @pytest.mark.asyncio
    async def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.delete(db_session, "nosuchuser")

    @pytest.mark.asyncio
    async def test_delete_database_failure(self, db_session, make_user, monkeypatch):
        await make_user("leaving001")
        monkeypatch.setattr(db_session, "flush", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.delete(db_session, "leaving001")
        assert exc_info.value.context["operation"] == "delete"


# ══════════════════════════════════════════════════════════════════════════
# Follow Graph
# ══════════════════════════════════════════════════════════════════════════


class TestFollowGraph:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_follow_and_unfollow(self, db_session, make_user):
        await make_user("follower01")
        await make_user("followee01")
        assert await self.service.follow(db_session, "follower01", "followee01") == (
            "follower01 is now following followee01"
        )
        assert await self.service.unfollow(db_session, "follower01", "followee01") == (
            "follower01 is no longer following followee01"
        )

    @pytest.mark.asyncio
    async def test_self_follow_rejected_before_lookup(self, db_session):
        with pytest.raises(AuthorizationError):
            await self.service.follow(db_session, "ghostuser1", "ghostuser1")
        with pytest.raises(AuthorizationError):
            await self.service.unfollow(db_session, "ghostuser1", "ghostuser1")

    @pytest.mark.asyncio
    async def test_follow_unknown_user(self, db_session, make_user):
        await make_user("follower01")
        with pytest.raises(NotFoundError):
            await self.service.follow(db_session, "follower01", "nosuchuser")

    @pytest.mark.asyncio
    async def test_duplicate_follow(self, db_session, make_user):
        await make_user("follower01")
        await make_user("followee01")
        await self.service.follow(db_session, "follower01", "followee01")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.follow(db_session, "follower01", "followee01")
        assert exc_info.value.message == "You are already following this user"

    @pytest.mark.asyncio
    async def test_duplicate_follow_caught_by_unique_constraint(self, db_session, make_user, monkeypatch):
        await make_user("follower01")
        await make_user("followee01")
        # Both requests pass the existence check, as two concurrent ones would
        monkeypatch.setattr(self.service, "_follow_edge", AsyncMock(return_value=None))
        await self.service.follow(db_session, "follower01", "followee01")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.follow(db_session, "follower01", "followee01")
        assert exc_info.value.message == "You are already following this user"

    @pytest.mark.asyncio
    async def test_follow_database_failure(self, db_session, make_user, monkeypatch):
        await make_user("follower01")
        await make_user("followee01")
        monkeypatch.setattr(db_session, "flush", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.follow(db_session, "follower01", "followee01")
        assert exc_info.value.context["operation"] == "follow"

    @pytest.mark.asyncio
    async def test_unfollow_database_failure(self, db_session, make_user, monkeypatch):
        await make_user("follower01")
        await make_user("followee01")
        await self.service.follow(db_session, "follower01", "followee01")
        monkeypatch.setattr(db_session, "flush", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.unfollow(db_session, "follower01", "followee01")
        assert exc_info.value.context["operation"] == "unfollow"

    @pytest.mark.asyncio
    async def test_unfollow_without_edge(self, db_session, make_user):
        await make_user("follower01")
        await make_user("followee01")
        with pytest.raises(ConflictError) as exc_info:
            await self.service.unfollow(db_session, "follower01", "followee01")
        assert exc_info.value.message == "You are not following this user"

    @pytest.mark.asyncio
    async def test_follow_lists_in_edge_order(self, db_session, make_user):
        for handle in ("celebrity1", "zfan00001", "afan00001", "mfan00001"):
            await make_user(handle)
        for fan in ("zfan00001", "afan00001", "mfan00001"):
            await self.service.follow(db_session, fan, "celebrity1")

        followers = await self.service.get_followers(db_session, "celebrity1")
        assert [p.handle for p in followers] == ["zfan00001", "afan00001", "mfan00001"]

        following = await self.service.get_following(db_session, "afan00001")
        assert [p.handle for p in following] == ["celebrity1"]
        assert await self.service.get_following(db_session, "celebrity1") == []

    @pytest.mark.asyncio
    async def test_follow_lists_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_followers(db_session, "nosuchuser")
        with pytest.raises(NotFoundError):
            await self.service.get_following(db_session, "nosuchuser")


class TestSearch:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_case_insensitive_substring(self, db_session, make_user):
        await make_user("searchb001", username="Bobby Tables")
        await make_user("searcha001", username="Little BOBBY")
        await make_user("searchc001", username="Alice Liddell")

        results = await self.service.search(db_session, "bobby")
        assert [p.handle for p in results] == ["searcha001", "searchb001"]

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, db_session, make_user):
        await make_user("searcha001", username="Plain Name")
        assert await self.service.search(db_session, "%") == []
        assert await self.service.search(db_session, "_") == []

    @pytest.mark.asyncio
    async def test_search_with_viewer(self, db_session, make_user):
        await make_user("searcha001", username="Findable User")
        await make_user("viewer0001")
        await self.service.follow(db_session, "searcha001", "viewer0001")
        results = await self.service.search(db_session, "findable", "viewer0001")
        assert results[0].followStatus.isFollower is True


# ══════════════════════════════════════════════════════════════════════════
# Reactions
# ══════════════════════════════════════════════════════════════════════════


class TestReactions:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("add,remove,verb,added,removed", [
        ("reweet", "un_reweet", "reweeted",
         "Weet successfully reweeted", "Successfully removed the reweet"),
        ("favorite", "un_favorite", "favorited",
         "Weet successfully favorited", "Successfully removed the favorite"),
        ("tab", "un_tab", "tabbed",
         "Weet successfully tabbed", "Successfully removed the tab"),
    ])
    async def test_state_machine(self, db_session, make_user, make_weet,
                                 add, remove, verb, added, removed):
        await make_user("reactor001")
        weet = await make_weet("reactor001")
        do_add = getattr(self.service, add)
        do_remove = getattr(self.service, remove)

        assert await do_add(db_session, "reactor001", weet.id) == added
        with pytest.raises(ConflictError) as exc_info:
            await do_add(db_session, "reactor001", weet.id)
        assert exc_info.value.message == f"reactor001 has already {verb} the weet."

        assert await do_remove(db_session, "reactor001", weet.id) == removed
        with pytest.raises(ConflictError) as exc_info:
            await do_remove(db_session, "reactor001", weet.id)
        assert exc_info.value.message == f"reactor001 has not {verb} the weet."

    @pytest.mark.asyncio
    async def test_unknown_weet(self, db_session, make_user):
        await make_user("reactor001")
        with pytest.raises(NotFoundError):
            await self.service.reweet(db_session, "reactor001", 12345)
        with pytest.raises(NotFoundError):
            await self.service.un_tab(db_session, "reactor001", 12345)

    @pytest.mark.asyncio
    async def test_unknown_user(self, db_session, make_user, make_weet):
        await make_user("reactor001")
        weet = await make_weet("reactor001")
        with pytest.raises(NotFoundError):
            await self.service.favorite(db_session, "nosuchuser", weet.id)

    @pytest.mark.asyncio
    async def test_duplicate_reaction_caught_by_unique_constraint(self, db_session, make_user,
                                                                  make_weet, monkeypatch):
        await make_user("reactor001")
        weet = await make_weet("reactor001")
        monkeypatch.setattr(self.service, "_has_reaction", AsyncMock(return_value=False))
        await self.service.reweet(db_session, "reactor001", weet.id)
        with pytest.raises(ConflictError) as exc_info:
            await self.service.reweet(db_session, "reactor001", weet.id)
        assert exc_info.value.message == "reactor001 has already reweeted the weet."

    @pytest.mark.asyncio
    async def test_add_reaction_database_failure(self, db_session, make_user, make_weet, monkeypatch):
        await make_user("reactor001")
        weet = await make_weet("reactor001")
        monkeypatch.setattr(db_session, "flush", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.favorite(db_session, "reactor001", weet.id)
        assert exc_info.value.context["operation"] == "add_favorites"

    @pytest.mark.asyncio
    async def test_remove_reaction_database_failure(self, db_session, make_user, make_weet, monkeypatch):
        await make_user("reactor001")
        weet = await make_weet("reactor001")
        await self.service.tab(db_session, "reactor001", weet.id)
        monkeypatch.setattr(db_session, "execute", _failing_store())
        with pytest.raises(DatabaseError) as exc_info:
            await self.service.un_tab(db_session, "reactor001", weet.id)
        assert exc_info.value.context["operation"] == "remove_tabs"


# ══════════════════════════════════════════════════════════════════════════
# Listings
# ══════════════════════════════════════════════════════════════════════════


class TestListings:

    def setup_method(self):
        self.service = UserService()

    @pytest.mark.asyncio
    async def test_weets_newest_first(self, db_session, make_user, make_weet):
        await make_user("timeline01")
        await make_weet("timeline01", "first", _later(0))
        await make_weet("timeline01", "third", _later(20))
        await make_weet("timeline01", "second", _later(10))

        weets = await self.service.get_weets(db_session, "timeline01")
        assert [w.weet for w in weets] == ["third", "second", "first"]
        assert weets[0].checks is None

    @pytest.mark.asyncio
    async def test_weets_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            await self.service.get_weets(db_session, "nosuchuser")

    @pytest.mark.asyncio
    async def test_reactions_most_recent_first(self, db_session, make_user, make_weet):
        await make_user("timeline01")
        await make_user("reactor001")
        early = await make_weet("timeline01", "early", _later(0))
        late = await make_weet("timeline01", "late", _later(5))
        await self.service.reweet(db_session, "reactor001", late.id)
        await self.service.reweet(db_session, "reactor001", early.id)

        reweets = await self.service.get_reweets(db_session, "reactor001", "reactor001")
        assert [w.weet for w in reweets] == ["early", "late"]
        assert all(w.checks.isReweeted for w in reweets)
        assert await self.service.get_favorites(db_session, "reactor001") == []
        assert await self.service.get_tabs(db_session, "reactor001") == []

    @pytest.mark.asyncio
    async def test_feed_merges_followees(self, db_session, make_user, make_weet):
        await make_user("handle0001")
        await make_user("handle0002")
        await make_user("handle0003")
        await make_weet("handle0001", "mine", _later(0))
        await make_weet("handle0002", "followed", _later(10))
        await make_weet("handle0003", "not followed", _later(20))
        await self.service.follow(db_session, "handle0001", "handle0002")

        feed = await self.service.get_feed(db_session, "handle0001")
        assert [(w.author, w.weet) for w in feed] == [
            ("handle0002", "followed"),
            ("handle0001", "mine"),
        ]
        assert all(w.checks is not None for w in feed)

    @pytest.mark.asyncio
    async def test_feed_without_follows_is_own_timeline(self, db_session, make_user, make_weet):
        await make_user("handle0001")
        await make_weet("handle0001", "one", _later(0))
        await make_weet("handle0001", "two", _later(1))

        feed = await self.service.get_feed(db_session, "handle0001")
        own = await self.service.get_weets(db_session, "handle0001", "handle0001")
        assert feed == own
