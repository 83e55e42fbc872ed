"""
Witter API — Weet and Reaction SQLAlchemy Models
=================================================

What:  ORM models for `weets` and the three reaction tables
       (`reweets`, `favorites`, `tabs`).
Why:   A weet belongs to exactly one author; each reaction is an edge
       between one user and one weet.
Who:   Used by WeetService, UserService and the enrichment helpers.

Reaction edges:
    Reweet, Favorite and Tab share one shape through ReactionMixin. Each
    table has its own UNIQUE (user_id, weet_id) so a user can hold at most
    one edge of each kind per weet. Edges are timestamped so a user's
    reaction lists can be ordered by when they reacted.

Timestamps:
    Stored timezone-aware in UTC. SQLite drops the offset, so readers treat
    naive values as UTC (see services/enrichment.py).
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from witter.database import Base
from witter.models.user import HANDLE_MAX_LENGTH


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Weet(Base):
    """
    A single post.

    Query Patterns:
        - Author timeline: WHERE author = :handle ORDER BY time_date DESC, id DESC
        - Feed: WHERE author IN (:handle, <followees>) ORDER BY time_date DESC, id DESC
          → both use idx_weets_author_time
    """

    __tablename__ = "weets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    weet: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Body text of the post",
    )
    author: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        ForeignKey("users.handle", ondelete="CASCADE"),
        nullable=False,
    )
    time_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        comment="When the weet was posted (UTC)",
    )

    __table_args__ = (
        Index("idx_weets_author_time", "author", "time_date"),
        Index("idx_weets_time_date", "time_date"),
    )

    def __repr__(self) -> str:
        return f"<Weet(id={self.id}, author='{self.author}', time_date='{self.time_date}')>"


class ReactionMixin:
    """Columns and constraints shared by every user→weet reaction table."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(HANDLE_MAX_LENGTH),
        ForeignKey("users.handle", ondelete="CASCADE"),
        nullable=False,
    )
    weet_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("weets.id", ondelete="CASCADE"),
        nullable=False,
    )
    time_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
    )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            UniqueConstraint("user_id", "weet_id", name=f"uq_{cls.__tablename__}_user_weet"),
            Index(f"idx_{cls.__tablename__}_weet", "weet_id"),
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(user='{self.user_id}', weet_id={self.weet_id})>"


class Reweet(ReactionMixin, Base):
    __tablename__ = "reweets"


class Favorite(ReactionMixin, Base):
    __tablename__ = "favorites"


class Tab(ReactionMixin, Base):
    __tablename__ = "tabs"
