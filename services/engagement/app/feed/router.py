from uuid import UUID

from fastapi import APIRouter, Depends, Query
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_optional_user, get_redis, get_settings
from app.feed import controller
from app.feed.ranking import FeedView
from app.feed.schemas import ContentCard, CreatorStandingResponse
from app.pagination import Page

router = APIRouter(prefix="/feed", tags=["Feed"])

_422 = {"description": "Unknown sort mode / period / category, or page values out of bounds"}
_503 = {"description": "Store temporarily unavailable; retry"}


@router.get(
    "",
    response_model=Page[ContentCard],
    summary="Sorted feed",
    description=(
        "Public items filtered by optional search term and category, ordered by "
        "`newest`, `oldest`, `most-liked` or `most-commented`. Pages past the end "
        "are clamped to the last page."
    ),
    responses={422: _422, 503: _503},
)
async def get_feed(
    sort: str = Query("newest", description="newest | oldest | most-liked | most-commented"),
    search: str | None = Query(None, max_length=200),
    category: str | None = Query(None, description="Category name, or 'all'."),
    page: int = Query(1, description="1-indexed page."),
    page_size: int | None = Query(None, description="Items per page (max 50)."),
    actor_id: UUID | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> Page[ContentCard]:
    return await controller.get_feed(
        db,
        redis,
        settings,
        view=FeedView.SORTED,
        actor_id=actor_id,
        sort=sort,
        search=search,
        category=category,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/trending",
    response_model=Page[ContentCard],
    summary="Trending feed",
    description=(
        "Public items created within the period (`day`, `week`, `month`, `all`), "
        "most liked first, ties newest first."
    ),
    responses={422: _422, 503: _503},
)
async def get_trending(
    period: str = Query("week", description="day | week | month | all"),
    category: str | None = Query(None),
    page: int = Query(1),
    page_size: int | None = Query(None),
    actor_id: UUID | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> Page[ContentCard]:
    return await controller.get_feed(
        db,
        redis,
        settings,
        view=FeedView.TRENDING,
        actor_id=actor_id,
        period=period,
        category=category,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/personalized",
    response_model=Page[ContentCard],
    summary="Personalized feed",
    description=(
        "Items in categories the caller has liked come first, newest first within "
        "each group. Anonymous callers and callers without likes get the newest feed."
    ),
    responses={422: _422, 503: _503},
)
async def get_personalized(
    page: int = Query(1),
    page_size: int | None = Query(None),
    actor_id: UUID | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> Page[ContentCard]:
    return await controller.get_feed(
        db,
        redis,
        settings,
        view=FeedView.PERSONALIZED,
        actor_id=actor_id,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/leaderboard/creators",
    response_model=list[CreatorStandingResponse],
    summary="Top creators",
    description="Owners ranked by likes received on public items created within the period.",
    responses={422: _422, 503: _503},
)
async def get_top_creators(
    period: str = Query("all", description="day | week | month | all"),
    limit: int = Query(10, description="Rows to return (max 50)."),
    db: AsyncSession = Depends(get_db),
) -> list[CreatorStandingResponse]:
    return await controller.get_top_creators(db, period=period, limit=limit)
