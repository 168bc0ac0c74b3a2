"""Comment Pydantic V2 schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CreateCommentRequest(BaseModel):
    body: str = Field(..., min_length=1, max_length=2000, description="Comment text.")
    author_name: str = Field(
        ..., min_length=1, max_length=100, description="Display name shown next to the comment."
    )


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    comment_id: UUID
    content_id: UUID
    author_id: UUID
    author_name: str
    body: str
    created_at: datetime
