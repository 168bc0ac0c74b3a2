from app.models.comment import Comment
from app.models.content import ContentItem
from app.models.engagement import EngagementRecord

__all__ = [
    "ContentItem",
    "EngagementRecord",
    "Comment",
]
