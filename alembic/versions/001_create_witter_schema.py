"""Create users, weets, followers and reaction tables

Revision ID: 001
Revises: None
Create Date: 2024-02-19 00:00:00.000000+00:00

What:  Creates the full initial schema.
How:   Every foreign key cascades on delete, so removing a user removes their
       weets, follow edges and reactions, and removing a weet removes its
       reactions.

Rollback: downgrade() drops all tables in reverse dependency order
(destructive — all data lost).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REACTION_TABLES = ("reweets", "favorites", "tabs")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("handle", sa.String(20), primary_key=True,
                  comment="Unique public identifier; used in URLs and token claims"),
        sa.Column("username", sa.String(20), nullable=False, comment="Display name"),
        sa.Column("password", sa.Text(), nullable=False,
                  comment="bcrypt hash of the account password"),
        sa.Column("email", sa.String(255), nullable=False,
                  comment="Contact email; unique across accounts"),
        sa.Column("user_description", sa.Text(), nullable=False,
                  server_default=sa.text("'A default user description'")),
        sa.Column("profile_image", sa.Text(), nullable=False,
                  server_default=sa.text("'A default profile image'")),
        sa.Column("banner_image", sa.Text(), nullable=False,
                  server_default=sa.text("'A default banner image'")),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    op.create_table(
        "weets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("weet", sa.Text(), nullable=False, comment="Body text of the post"),
        sa.Column("author", sa.String(20),
                  sa.ForeignKey("users.handle", ondelete="CASCADE"), nullable=False),
        sa.Column("time_date", sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text("CURRENT_TIMESTAMP"),
                  comment="When the weet was posted (UTC)"),
    )
    op.create_index("idx_weets_author_time", "weets", ["author", "time_date"])
    op.create_index("idx_weets_time_date", "weets", ["time_date"])

    op.create_table(
        "followers",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("follower_id", sa.String(20),
                  sa.ForeignKey("users.handle", ondelete="CASCADE"), nullable=False),
        sa.Column("followee_id", sa.String(20),
                  sa.ForeignKey("users.handle", ondelete="CASCADE"), nullable=False),
        sa.UniqueConstraint("follower_id", "followee_id", name="uq_followers_follower_followee"),
        sa.CheckConstraint("follower_id <> followee_id", name="ck_followers_not_self"),
    )
    op.create_index("idx_followers_followee", "followers", ["followee_id"])

    for table in REACTION_TABLES:
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
            sa.Column("user_id", sa.String(20),
                      sa.ForeignKey("users.handle", ondelete="CASCADE"), nullable=False),
            sa.Column("weet_id", sa.Integer(),
                      sa.ForeignKey("weets.id", ondelete="CASCADE"), nullable=False),
            sa.Column("time_date", sa.DateTime(timezone=True), nullable=False,
                      server_default=sa.text("CURRENT_TIMESTAMP")),
            sa.UniqueConstraint("user_id", "weet_id", name=f"uq_{table}_user_weet"),
        )
        op.create_index(f"idx_{table}_weet", table, ["weet_id"])


def downgrade() -> None:
    for table in reversed(REACTION_TABLES):
        op.drop_index(f"idx_{table}_weet", table_name=table)
        op.drop_table(table)
    op.drop_index("idx_followers_followee", table_name="followers")
    op.drop_table("followers")
    op.drop_index("idx_weets_time_date", table_name="weets")
    op.drop_index("idx_weets_author_time", table_name="weets")
    op.drop_table("weets")
    op.drop_table("users")
