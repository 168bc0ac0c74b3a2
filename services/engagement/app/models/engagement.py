import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base

from .enums import EngagementKind, engagement_kind_enum


class EngagementRecord(Base):
    """One actor's like or save of one content item. Hard-deleted on toggle-off."""

    __tablename__ = "engagement_records"

    record_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    # Soft reference: actors live in identity_db
    actor_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("content_items.content_id", ondelete="CASCADE"),
        nullable=False,
    )
    kind: Mapped[EngagementKind] = mapped_column(engagement_kind_enum, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    content = relationship("ContentItem", back_populates="engagements", lazy="noload")

    __table_args__ = (
        # Serialization point for toggles: one row per (actor, content, kind)
        UniqueConstraint(
            "actor_id", "content_id", "kind", name="uq_engagement_records_actor_content_kind"
        ),
        Index("ix_engagement_records_actor_kind", "actor_id", "kind"),
        Index("ix_engagement_records_content_kind", "content_id", "kind"),
    )
