"""Comments controller: orchestration layer between router and service."""

from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.comments import service
from app.comments.schemas import CommentResponse, CreateCommentRequest
from app.config import Settings
from app.exceptions import EngagementServiceError, to_http
from app.pagination import Page


async def list_comments(
    content_id: UUID,
    db: AsyncSession,
    settings: Settings,
    page: int = 1,
    page_size: int | None = None,
) -> Page[CommentResponse]:
    try:
        result = await service.list_comments(
            content_id,
            db,
            page=page,
            page_size=settings.default_page_size if page_size is None else page_size,
            max_page_size=settings.max_page_size,
        )
    except EngagementServiceError as exc:
        raise to_http(exc)
    return Page[CommentResponse].from_result(result.map(CommentResponse.model_validate))


async def create_comment(
    content_id: UUID,
    payload: CreateCommentRequest,
    author_id: UUID,
    db: AsyncSession,
) -> CommentResponse:
    try:
        comment = await service.add_comment(
            content_id, author_id, payload.author_name, payload.body, db
        )
    except EngagementServiceError as exc:
        raise to_http(exc)
    return CommentResponse.model_validate(comment)


async def delete_comment(comment_id: UUID, author_id: UUID, db: AsyncSession) -> None:
    try:
        await service.delete_comment(comment_id, author_id, db)
    except EngagementServiceError as exc:
        raise to_http(exc)
