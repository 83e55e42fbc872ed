"""
Witter API — User and Follow SQLAlchemy Models
===============================================

What:  ORM models for the `users` and `followers` tables.
Why:   Users are the root of every other row: weets, follow edges and
       reactions all reference `users.handle` and cascade on delete.
Who:   Used by UserService, the validators and the auth checks; read by
       Alembic for migrations.

Table Design Rationale:
    - handle is the primary key: it appears in URLs and token claims, so
      lookups by handle are the dominant access path
    - email carries its own unique constraint
    - followers is a directed edge table. The composite unique constraint
      rejects duplicate follows and the check constraint rejects self-follows
      at the storage layer, behind the service-level pre-checks
"""

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from witter.database import Base

# Column capacity for handles and usernames, and every column that stores a handle
HANDLE_MAX_LENGTH = 20

DEFAULT_USER_DESCRIPTION = "A default user description"
DEFAULT_PROFILE_IMAGE = "A default profile image"
DEFAULT_BANNER_IMAGE = "A default banner image"


class User(Base):
    """
    A registered account.

    The password column always holds a bcrypt hash, never the plain text.
    Profile serialization (see schemas/user.py) leaves it out.
    """

    __tablename__ = "users"

    handle: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        primary_key=True,
        comment="Unique public identifier; used in URLs and token claims",
    )
    username: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        nullable=False,
        comment="Display name",
    )
    password: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="bcrypt hash of the account password",
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Contact email; unique across accounts",
    )
    user_description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_USER_DESCRIPTION,
    )
    profile_image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_PROFILE_IMAGE,
    )
    banner_image: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default=DEFAULT_BANNER_IMAGE,
    )

    def __repr__(self) -> str:
        return f"<User(handle='{self.handle}', username='{self.username}')>"


class Follow(Base):
    """A directed follow edge: `follower_id` follows `followee_id`."""

    __tablename__ = "followers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    follower_id: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        ForeignKey("users.handle", ondelete="CASCADE"),
        nullable=False,
    )
    followee_id: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        ForeignKey("users.handle", ondelete="CASCADE"),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("follower_id", "followee_id", name="uq_followers_follower_followee"),
        CheckConstraint("follower_id <> followee_id", name="ck_followers_not_self"),
        Index("idx_followers_followee", "followee_id"),
    )

    def __repr__(self) -> str:
        return f"<Follow(follower='{self.follower_id}', followee='{self.followee_id}')>"
