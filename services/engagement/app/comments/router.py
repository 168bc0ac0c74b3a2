from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments import controller
from app.comments.schemas import CommentResponse, CreateCommentRequest
from app.config import Settings
from app.database import get_db
from app.dependencies import get_current_user, get_settings
from app.pagination import Page

router = APIRouter(prefix="/comments", tags=["Comments"])

_403 = {"description": "Forbidden"}
_404 = {"description": "Not found"}


@router.get(
    "/content/{content_id}",
    response_model=Page[CommentResponse],
    summary="List comments on an item (oldest first)",
    responses={404: _404},
)
async def list_comments(
    content_id: UUID,
    page: int = Query(1),
    page_size: int | None = Query(None),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Page[CommentResponse]:
    return await controller.list_comments(content_id, db, settings, page=page, page_size=page_size)


@router.post(
    "/content/{content_id}",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on an item",
    description="Appends a comment and increments the item's comment_count.",
    responses={404: _404},
)
async def create_comment(
    content_id: UUID,
    payload: CreateCommentRequest,
    author_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CommentResponse:
    return await controller.create_comment(content_id, payload, author_id, db)


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own comment",
    responses={403: _403, 404: _404},
)
async def delete_comment(
    comment_id: UUID,
    author_id: UUID = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> None:
    await controller.delete_comment(comment_id, author_id, db)
