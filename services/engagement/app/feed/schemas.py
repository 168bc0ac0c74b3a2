"""Feed domain Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import Category, Visibility


class ContentCard(BaseModel):
    """Content item as rendered in feed listings, annotated for the caller."""

    model_config = ConfigDict(from_attributes=True)

    content_id: UUID
    title: str
    media_url: str = Field(description="Locator of the image/media asset.")
    description: str
    category: Category
    tags: list[str]
    owner_id: UUID = Field(description="User ID of the owner (identity_db reference).")
    owner_name: str
    visibility: Visibility
    like_count: int = Field(description="Denormalized like count.")
    comment_count: int = Field(description="Denormalized comment count.")
    created_at: datetime
    is_liked: bool = Field(default=False, description="True if the caller has liked the item.")
    is_saved: bool = Field(default=False, description="True if the caller has saved the item.")


class CreatorStandingResponse(BaseModel):
    """One row of the creator leaderboard."""

    model_config = ConfigDict(from_attributes=True)

    owner_id: UUID
    owner_name: str
    total_likes: int = Field(description="Likes received on items inside the period.")
    item_count: int = Field(description="Public items created inside the period.")
