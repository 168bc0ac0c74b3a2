"""Comment log: append-only list per content item, oldest first.

comment_count on the item moves through stores.content.adjust_counter, the same
path the ledger uses for like_count.
"""

from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import CommentAccessDeniedError, CommentNotFoundError, ContentNotFoundError
from app.models.comment import Comment
from app.models.enums import CounterField
from app.pagination import MAX_PAGE_SIZE, PageResult, paginate
from app.stores import content as content_store
from app.stores.base import store_call


@store_call
async def _get_comment(comment_id: UUID, db: AsyncSession) -> Comment:
    result = await db.execute(select(Comment).where(Comment.comment_id == comment_id))
    comment = result.scalar_one_or_none()
    if comment is None:
        raise CommentNotFoundError(comment_id)
    return comment


async def add_comment(
    content_id: UUID,
    author_id: UUID,
    author_name: str,
    body: str,
    db: AsyncSession,
) -> Comment:
    if not await content_store.exists(db, content_id):
        raise ContentNotFoundError(content_id)
    comment = Comment(
        content_id=content_id,
        author_id=author_id,
        author_name=author_name,
        body=body,
    )
    db.add(comment)
    await db.flush()
    await content_store.adjust_counter(db, content_id, CounterField.COMMENT_COUNT, 1)
    await db.refresh(comment)
    return comment


async def list_comments(
    content_id: UUID,
    db: AsyncSession,
    page: int = 1,
    page_size: int = 20,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageResult[Comment]:
    if not await content_store.exists(db, content_id):
        raise ContentNotFoundError(content_id)
    base = select(Comment).where(Comment.content_id == content_id)

    @store_call
    async def _count() -> int:
        result = await db.execute(select(func.count()).select_from(base.subquery()))
        return result.scalar_one()

    @store_call
    async def _fetch(skip: int, limit: int) -> list[Comment]:
        result = await db.execute(
            base.order_by(Comment.created_at.asc(), Comment.comment_id.asc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    return await paginate(_count, _fetch, page, page_size, max_page_size=max_page_size)


async def delete_comment(comment_id: UUID, author_id: UUID, db: AsyncSession) -> None:
    comment = await _get_comment(comment_id, db)
    if comment.author_id != author_id:
        raise CommentAccessDeniedError("Only the author can delete this comment.")
    content_id = comment.content_id
    await db.delete(comment)
    await db.flush()
    await content_store.adjust_counter(db, content_id, CounterField.COMMENT_COUNT, -1)


@store_call
async def delete_for_content(content_id: UUID, db: AsyncSession) -> int:
    result = await db.execute(
        delete(Comment)
        .where(Comment.content_id == content_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
