import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shared.database.postgres import Base


class Comment(Base):
    __tablename__ = "comments"

    comment_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    content_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("content_items.content_id", ondelete="CASCADE"),
        nullable=False,
    )
    # Soft reference: User lives in identity_db
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    author_name: Mapped[str] = mapped_column(String(100), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    content = relationship("ContentItem", back_populates="comments", lazy="noload")

    __table_args__ = (Index("ix_comments_content_created_at", "content_id", "created_at"),)
