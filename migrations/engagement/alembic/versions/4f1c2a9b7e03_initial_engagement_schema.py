"""Initial engagement schema: content items, engagement records, comments.

Revision ID: 4f1c2a9b7e03
Revises:
Create Date: 2026-10-18 12:00:00.000000

Changes:
  1. Enum types: content_category, content_visibility, engagement_kind
  2. content_items with non-negative like_count / comment_count checks
  3. engagement_records (FK → content_items, CASCADE) with
       uq_engagement_records_actor_content_kind (actor_id, content_id, kind)
  4. comments (FK → content_items, CASCADE)
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSON, TIMESTAMP, UUID

revision: str = "4f1c2a9b7e03"
down_revision: str | None = None
branch_labels = None
depends_on = None

_CATEGORIES = (
    "Programming",
    "Reactions",
    "Wholesome",
    "Animals",
    "Sports",
    "Movies",
    "Gaming",
    "Other",
)

content_category = ENUM(*_CATEGORIES, name="content_category", create_type=False)
content_visibility = ENUM("public", "private", name="content_visibility", create_type=False)
engagement_kind = ENUM("like", "save", name="engagement_kind", create_type=False)


def upgrade() -> None:
    bind = op.get_bind()
    content_category.create(bind, checkfirst=True)
    content_visibility.create(bind, checkfirst=True)
    engagement_kind.create(bind, checkfirst=True)

    op.create_table(
        "content_items",
        sa.Column("content_id", UUID(as_uuid=True), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("media_url", sa.String(2048), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("category", content_category, nullable=False, server_default="Other"),
        sa.Column("tags", JSON(), nullable=False, server_default=sa.text("'[]'::json")),
        sa.Column("owner_id", UUID(as_uuid=True), nullable=False),
        sa.Column("owner_name", sa.String(100), nullable=False),
        sa.Column("visibility", content_visibility, nullable=False, server_default="public"),
        sa.Column("like_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("comment_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("content_id", name="pk_content_items"),
        sa.CheckConstraint(
            "like_count >= 0", name="ck_content_items_like_count_non_negative"
        ),
        sa.CheckConstraint(
            "comment_count >= 0", name="ck_content_items_comment_count_non_negative"
        ),
    )
    op.create_index("ix_content_items_created_at", "content_items", ["created_at"])
    op.create_index(
        "ix_content_items_category_created_at", "content_items", ["category", "created_at"]
    )
    op.create_index("ix_content_items_like_count", "content_items", ["like_count"])
    op.create_index("ix_content_items_owner_id", "content_items", ["owner_id"])

    op.create_table(
        "engagement_records",
        sa.Column("record_id", UUID(as_uuid=True), nullable=False),
        sa.Column("actor_id", UUID(as_uuid=True), nullable=False),
        sa.Column("content_id", UUID(as_uuid=True), nullable=False),
        sa.Column("kind", engagement_kind, nullable=False),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("record_id", name="pk_engagement_records"),
        sa.ForeignKeyConstraint(
            ["content_id"],
            ["content_items.content_id"],
            name="fk_engagement_records_content_id_content_items",
            ondelete="CASCADE",
        ),
        sa.UniqueConstraint(
            "actor_id",
            "content_id",
            "kind",
            name="uq_engagement_records_actor_content_kind",
        ),
    )
    op.create_index(
        "ix_engagement_records_actor_kind", "engagement_records", ["actor_id", "kind"]
    )
    op.create_index(
        "ix_engagement_records_content_kind", "engagement_records", ["content_id", "kind"]
    )

    op.create_table(
        "comments",
        sa.Column("comment_id", UUID(as_uuid=True), nullable=False),
        sa.Column("content_id", UUID(as_uuid=True), nullable=False),
        sa.Column("author_id", UUID(as_uuid=True), nullable=False),
        sa.Column("author_name", sa.String(100), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column(
            "created_at",
            TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.PrimaryKeyConstraint("comment_id", name="pk_comments"),
        sa.ForeignKeyConstraint(
            ["content_id"],
            ["content_items.content_id"],
            name="fk_comments_content_id_content_items",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_comments_content_created_at", "comments", ["content_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_comments_content_created_at", table_name="comments")
    op.drop_table("comments")

    op.drop_index("ix_engagement_records_content_kind", table_name="engagement_records")
    op.drop_index("ix_engagement_records_actor_kind", table_name="engagement_records")
    op.drop_table("engagement_records")

    op.drop_index("ix_content_items_owner_id", table_name="content_items")
    op.drop_index("ix_content_items_like_count", table_name="content_items")
    op.drop_index("ix_content_items_category_created_at", table_name="content_items")
    op.drop_index("ix_content_items_created_at", table_name="content_items")
    op.drop_table("content_items")

    bind = op.get_bind()
    engagement_kind.drop(bind, checkfirst=True)
    content_visibility.drop(bind, checkfirst=True)
    content_category.drop(bind, checkfirst=True)
