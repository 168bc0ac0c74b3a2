"""Engagement ledger Pydantic V2 schemas."""

from pydantic import BaseModel, Field


class LikeToggleResponse(BaseModel):
    """Like state after a toggle."""

    liked: bool = Field(description="True if the caller now likes the item.")
    likes: int = Field(description="Like count after the toggle, reconciled with the relation set.")


class SaveToggleResponse(BaseModel):
    """Save state after a toggle."""

    saved: bool = Field(description="True if the caller now has the item saved.")


class EngagementStatusResponse(BaseModel):
    liked: bool
    saved: bool
