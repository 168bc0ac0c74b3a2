import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import Category, Visibility, category_enum, visibility_enum


class ContentItem(Base):
    __tablename__ = "content_items"

    content_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    media_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    category: Mapped[Category] = mapped_column(
        category_enum, nullable=False, default=Category.OTHER
    )
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    # Soft reference: owners live in identity_db
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    owner_name: Mapped[str] = mapped_column(String(100), nullable=False)
    visibility: Mapped[Visibility] = mapped_column(
        visibility_enum, nullable=False, default=Visibility.PUBLIC
    )
    # Denormalized from engagement_records / comments; written only via stores.content
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comment_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    engagements = relationship(
        "EngagementRecord",
        back_populates="content",
        lazy="noload",
        passive_deletes=True,
    )
    comments = relationship(
        "Comment",
        back_populates="content",
        lazy="noload",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("like_count >= 0", name="like_count_non_negative"),
        CheckConstraint("comment_count >= 0", name="comment_count_non_negative"),
        Index("ix_content_items_created_at", "created_at"),
        Index("ix_content_items_category_created_at", "category", "created_at"),
        Index("ix_content_items_like_count", "like_count"),
        Index("ix_content_items_owner_id", "owner_id"),
    )
