"""Engagement ledger controller: orchestration layer between router and service."""

from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.exceptions import EngagementServiceError, to_http
from app.feed.schemas import ContentCard
from app.ledger import service
from app.ledger.schemas import (
    EngagementStatusResponse,
    LikeToggleResponse,
    SaveToggleResponse,
)
from app.models.enums import EngagementKind
from app.pagination import Page


async def toggle_like(
    content_id: UUID, actor_id: UUID, db: AsyncSession, redis: Redis | None
) -> LikeToggleResponse:
    try:
        result = await service.toggle(actor_id, content_id, EngagementKind.LIKE, db, redis)
    except EngagementServiceError as exc:
        raise to_http(exc)
    return LikeToggleResponse(liked=result.active, likes=result.new_count)


async def toggle_save(
    content_id: UUID, actor_id: UUID, db: AsyncSession, redis: Redis | None
) -> SaveToggleResponse:
    try:
        result = await service.toggle(actor_id, content_id, EngagementKind.SAVE, db, redis)
    except EngagementServiceError as exc:
        raise to_http(exc)
    return SaveToggleResponse(saved=result.active)


async def get_status(content_id: UUID, actor_id: UUID, db: AsyncSession) -> EngagementStatusResponse:
    try:
        status = await service.get_status(actor_id, content_id, db)
    except EngagementServiceError as exc:
        raise to_http(exc)
    return EngagementStatusResponse(liked=status.liked, saved=status.saved)


async def list_engaged(
    actor_id: UUID,
    kind: EngagementKind,
    db: AsyncSession,
    settings: Settings,
    page: int = 1,
    page_size: int | None = None,
) -> Page[ContentCard]:
    try:
        result = await service.list_engaged(
            actor_id,
            kind,
            db,
            page=page,
            page_size=settings.default_page_size if page_size is None else page_size,
            max_page_size=settings.max_page_size,
        )
        liked, saved = await service.statuses(actor_id, [i.content_id for i in result.items], db)
    except EngagementServiceError as exc:
        raise to_http(exc)
    return Page[ContentCard].from_result(
        result.map(
            lambda i: ContentCard.model_validate(i).model_copy(
                update={"is_liked": i.content_id in liked, "is_saved": i.content_id in saved}
            )
        )
    )


async def delete_content(
    content_id: UUID, actor_id: UUID, db: AsyncSession, redis: Redis | None
) -> None:
    try:
        await service.delete_content(content_id, actor_id, db, redis)
    except EngagementServiceError as exc:
        raise to_http(exc)
