"""Feed service: pure business logic, no FastAPI imports.

Flow for every view: resolve the plan (feed.ranking) → clamped pagination over
the content store → annotate each item with the caller's like/save status.
Store failures propagate unchanged as StoreUnavailableError.

Also hosts the creator leaderboard, which reuses the trending window.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidQueryError
from app.feed import cache as feed_cache
from app.feed.ranking import (
    FeedQuery,
    FeedView,
    RankingContext,
    TrendingPeriod,
    build_plan,
    parse_period,
    period_start,
)
from app.ledger import service as ledger
from app.models.content import ContentItem
from app.models.enums import Category, EngagementKind
from app.pagination import MAX_PAGE_SIZE, PageResult, paginate, validate_window
from app.stores import content as content_store
from app.stores.base import ContentCriteria

# Leaderboard size cap, mirrors the page-size bound
_MAX_LEADERBOARD: int = 50


@dataclass(frozen=True)
class FeedItem:
    item: ContentItem
    is_liked: bool
    is_saved: bool


@dataclass(frozen=True)
class CreatorStanding:
    owner_id: UUID
    owner_name: str
    total_likes: int
    item_count: int


async def category_affinity(
    actor_id: UUID,
    db: AsyncSession,
    redis: Redis | None = None,
    ttl_s: int = feed_cache.DEFAULT_AFFINITY_TTL_S,
) -> frozenset[Category]:
    """Distinct categories of everything the actor has liked (Redis L1 + DB fallback)."""
    cached = await feed_cache.get_affinity(actor_id, redis)
    if cached is not None:
        return cached
    liked_ids = await ledger.list_content_for(actor_id, EngagementKind.LIKE, db)
    affinity = frozenset(await content_store.distinct_categories(db, liked_ids))
    await feed_cache.set_affinity(actor_id, affinity, redis, ttl_s)
    return affinity


async def annotate(
    result: PageResult[ContentItem], actor_id: UUID | None, db: AsyncSession
) -> PageResult[FeedItem]:
    liked, saved = await ledger.statuses(actor_id, [i.content_id for i in result.items], db)
    return result.map(
        lambda i: FeedItem(item=i, is_liked=i.content_id in liked, is_saved=i.content_id in saved)
    )


async def get_feed(
    query: FeedQuery,
    db: AsyncSession,
    redis: Redis | None = None,
    *,
    now: datetime | None = None,
    max_page_size: int = MAX_PAGE_SIZE,
    affinity_ttl_s: int = feed_cache.DEFAULT_AFFINITY_TTL_S,
) -> PageResult[FeedItem]:
    validate_window(query.page, query.page_size, max_page_size)

    affinity: frozenset[Category] = frozenset()
    if query.view is FeedView.PERSONALIZED and query.actor_id is not None:
        affinity = await category_affinity(query.actor_id, db, redis, affinity_ttl_s)

    context = RankingContext(now=now or datetime.now(timezone.utc), affinity=affinity)
    plan = build_plan(query, context)

    result = await paginate(
        count=lambda: content_store.count_matching(db, plan.criteria),
        fetch=lambda skip, limit: content_store.fetch_page(
            db, plan.criteria, plan.order, skip, limit
        ),
        page=query.page,
        page_size=query.page_size,
        max_page_size=max_page_size,
    )
    return await annotate(result, query.actor_id, db)


async def top_creators(
    db: AsyncSession,
    period: TrendingPeriod | str = TrendingPeriod.ALL,
    limit: int = 10,
    *,
    now: datetime | None = None,
) -> list[CreatorStanding]:
    """Owners ranked by likes received on public items created within the period."""
    if limit < 1 or limit > _MAX_LEADERBOARD:
        raise InvalidQueryError(f"limit must be between 1 and {_MAX_LEADERBOARD}, got {limit}")
    now = now or datetime.now(timezone.utc)
    window = parse_period(period)
    criteria = ContentCriteria(created_after=period_start(window, now), created_before=now)
    rows = await content_store.top_owners(db, criteria, limit)
    return [
        CreatorStanding(
            owner_id=row.owner_id,
            owner_name=row.owner_name,
            total_likes=int(row.total_likes or 0),
            item_count=int(row.item_count),
        )
        for row in rows
    ]
