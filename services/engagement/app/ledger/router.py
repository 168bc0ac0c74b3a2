"""Engagement router: all /api/v1/engagement endpoints.

Like/save toggles, status reads, the caller's liked/saved lists and owner
deletion. Zero business logic; delegates entirely to controller.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_redis, get_settings
from app.feed.schemas import ContentCard
from app.ledger import controller
from app.ledger.schemas import (
    EngagementStatusResponse,
    LikeToggleResponse,
    SaveToggleResponse,
)
from app.models.enums import EngagementKind
from app.pagination import Page

router = APIRouter(prefix="/engagement", tags=["Engagement"])

_401 = {"description": "Not authenticated"}
_403 = {"description": "Forbidden"}
_404 = {"description": "Content not found"}
_503 = {"description": "Store temporarily unavailable; retry"}


@router.post(
    "/content/{content_id}/like",
    response_model=LikeToggleResponse,
    summary="Toggle like",
    description=(
        "Likes the item if the caller has not liked it, otherwise removes the like. "
        "Returns the new state and the reconciled like count."
    ),
    responses={401: _401, 404: _404, 503: _503},
)
async def toggle_like(
    content_id: UUID,
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> LikeToggleResponse:
    return await controller.toggle_like(content_id, actor_id, db, redis)


@router.post(
    "/content/{content_id}/save",
    response_model=SaveToggleResponse,
    summary="Toggle save",
    responses={401: _401, 404: _404, 503: _503},
)
async def toggle_save(
    content_id: UUID,
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> SaveToggleResponse:
    return await controller.toggle_save(content_id, actor_id, db, redis)


@router.get(
    "/content/{content_id}/status",
    response_model=EngagementStatusResponse,
    summary="Caller's like/save status for an item",
    responses={401: _401, 404: _404},
)
async def get_status(
    content_id: UUID,
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> EngagementStatusResponse:
    return await controller.get_status(content_id, actor_id, db)


@router.delete(
    "/content/{content_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own content",
    description="Hard delete. Engagement records and comments are removed with the item.",
    responses={401: _401, 403: _403, 404: _404},
)
async def delete_content(
    content_id: UUID,
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    redis: Redis | None = Depends(get_redis),
) -> None:
    await controller.delete_content(content_id, actor_id, db, redis)


@router.get(
    "/me/liked",
    response_model=Page[ContentCard],
    summary="Items the caller has liked",
    responses={401: _401},
)
async def list_liked(
    page: int = Query(1),
    page_size: int | None = Query(None),
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Page[ContentCard]:
    return await controller.list_engaged(
        actor_id, EngagementKind.LIKE, db, settings, page=page, page_size=page_size
    )


@router.get(
    "/me/saved",
    response_model=Page[ContentCard],
    summary="Items the caller has saved",
    responses={401: _401},
)
async def list_saved(
    page: int = Query(1),
    page_size: int | None = Query(None),
    actor_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Page[ContentCard]:
    return await controller.list_engaged(
        actor_id, EngagementKind.SAVE, db, settings, page=page, page_size=page_size
    )
