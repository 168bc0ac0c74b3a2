"""Feed controller: orchestration layer between router and service."""

from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import EngagementServiceError, to_http
from app.feed import service
from app.feed.ranking import FeedQuery, FeedView
from app.feed.schemas import ContentCard, CreatorStandingResponse
from app.feed.service import FeedItem
from app.pagination import Page


def _card(feed_item: FeedItem) -> ContentCard:
    return ContentCard.model_validate(feed_item.item).model_copy(
        update={"is_liked": feed_item.is_liked, "is_saved": feed_item.is_saved}
    )


async def get_feed(
    db: AsyncSession,
    redis: Redis | None,
    settings: Settings,
    *,
    view: FeedView,
    actor_id: UUID | None,
    sort: str = "newest",
    period: str = "week",
    search: str | None = None,
    category: str | None = None,
    page: int = 1,
    page_size: int | None = None,
) -> Page[ContentCard]:
    try:
        query = FeedQuery.parse(
            view=view,
            sort=sort,
            period=period,
            search=search,
            category=category,
            actor_id=actor_id,
            page=page,
            page_size=settings.default_page_size if page_size is None else page_size,
        )
        result = await service.get_feed(
            query,
            db,
            redis,
            max_page_size=settings.max_page_size,
            affinity_ttl_s=settings.affinity_cache_ttl_s,
        )
    except EngagementServiceError as exc:
        raise to_http(exc)
    return Page[ContentCard].from_result(result.map(_card))


async def get_top_creators(
    db: AsyncSession, period: str = "all", limit: int = 10
) -> list[CreatorStandingResponse]:
    try:
        standings = await service.top_creators(db, period=period, limit=limit)
    except EngagementServiceError as exc:
        raise to_http(exc)
    return [CreatorStandingResponse.model_validate(s) for s in standings]
