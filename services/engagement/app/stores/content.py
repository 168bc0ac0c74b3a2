"""Content store: SQL adapter over content_items.

Only this module writes the denormalized counters. Counter updates are single
``UPDATE … RETURNING`` statements so concurrent adjustments from different
actors never lose an increment, and they floor at zero.
"""

from collections.abc import Iterable, Sequence
from uuid import UUID

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ContentNotFoundError
from app.models.content import ContentItem
from app.models.enums import Category, CounterField
from app.stores.base import ContentCriteria, OrderKey, SortField, store_call

_SORT_COLUMNS = {
    SortField.CREATED_AT: ContentItem.created_at,
    SortField.LIKE_COUNT: ContentItem.like_count,
    SortField.COMMENT_COUNT: ContentItem.comment_count,
    SortField.CONTENT_ID: ContentItem.content_id,
}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _tag_matches(pattern: str, dialect: str):
    """EXISTS over the tag list: true when any single tag matches ``pattern``."""
    # Tags are a JSON array; SQLite backs local runs and the test suite
    if dialect == "sqlite":
        value = func.json_each(ContentItem.tags).table_valued("value").alias("tag").c.value
    else:
        value = func.json_array_elements_text(ContentItem.tags).column_valued("tag")
    return select(1).where(value.ilike(pattern, escape="\\")).exists()


def _where(criteria: ContentCriteria, dialect: str) -> list:
    clauses = []
    if criteria.visibility is not None:
        clauses.append(ContentItem.visibility == criteria.visibility)
    if criteria.category is not None:
        clauses.append(ContentItem.category == criteria.category)
    if criteria.owner_id is not None:
        clauses.append(ContentItem.owner_id == criteria.owner_id)
    if criteria.created_after is not None:
        clauses.append(ContentItem.created_at >= criteria.created_after)
    if criteria.created_before is not None:
        clauses.append(ContentItem.created_at <= criteria.created_before)
    if criteria.search:
        pattern = f"%{_escape_like(criteria.search)}%"
        clauses.append(
            or_(
                ContentItem.title.ilike(pattern, escape="\\"),
                ContentItem.description.ilike(pattern, escape="\\"),
                _tag_matches(pattern, dialect),
            )
        )
    return clauses


def _order_by(order: Sequence[OrderKey]) -> list:
    clauses = []
    for key in order:
        if key.field is SortField.CATEGORY_MATCH:
            expr = case(
                (ContentItem.category.in_(sorted(key.categories, key=lambda c: c.value)), 1),
                else_=0,
            )
        else:
            expr = _SORT_COLUMNS[key.field]
        clauses.append(expr.desc() if key.descending else expr.asc())
    return clauses


@store_call
async def get_item(db: AsyncSession, content_id: UUID) -> ContentItem | None:
    result = await db.execute(select(ContentItem).where(ContentItem.content_id == content_id))
    return result.scalar_one_or_none()


@store_call
async def exists(db: AsyncSession, content_id: UUID) -> bool:
    result = await db.execute(
        select(ContentItem.content_id).where(ContentItem.content_id == content_id)
    )
    return result.scalar_one_or_none() is not None


@store_call
async def count_matching(db: AsyncSession, criteria: ContentCriteria) -> int:
    base = select(ContentItem.content_id).where(*_where(criteria, db.bind.dialect.name))
    result = await db.execute(select(func.count()).select_from(base.subquery()))
    return result.scalar_one()


@store_call
async def fetch_page(
    db: AsyncSession,
    criteria: ContentCriteria,
    order: Sequence[OrderKey],
    skip: int,
    limit: int,
) -> list[ContentItem]:
    stmt = (
        select(ContentItem)
        .where(*_where(criteria, db.bind.dialect.name))
        .order_by(*_order_by(order))
        .offset(skip)
        .limit(limit)
        # Counters change through UPDATE statements; never serve stale identity-map values
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())


@store_call
async def get_counter(db: AsyncSession, content_id: UUID, field: CounterField) -> int | None:
    column = getattr(ContentItem, field.value)
    result = await db.execute(select(column).where(ContentItem.content_id == content_id))
    return result.scalar_one_or_none()


@store_call
async def adjust_counter(
    db: AsyncSession, content_id: UUID, field: CounterField, delta: int
) -> int:
    """Add ``delta`` to a counter (never below zero) and return the new value."""
    column = getattr(ContentItem, field.value)
    stmt = (
        update(ContentItem)
        .where(ContentItem.content_id == content_id)
        .values({field.value: case((column + delta < 0, 0), else_=column + delta)})
        .returning(column)
        .execution_options(synchronize_session=False)
    )
    value = (await db.execute(stmt)).scalar_one_or_none()
    if value is None:
        raise ContentNotFoundError(content_id)
    return value


@store_call
async def set_counter(db: AsyncSession, content_id: UUID, field: CounterField, value: int) -> None:
    await db.execute(
        update(ContentItem)
        .where(ContentItem.content_id == content_id)
        .values({field.value: max(0, value)})
        .execution_options(synchronize_session=False)
    )


@store_call
async def distinct_categories(db: AsyncSession, content_ids: Iterable[UUID]) -> set[Category]:
    ids = list(content_ids)
    if not ids:
        return set()
    result = await db.execute(
        select(ContentItem.category).where(ContentItem.content_id.in_(ids)).distinct()
    )
    return set(result.scalars().all())


@store_call
async def top_owners(db: AsyncSession, criteria: ContentCriteria, limit: int) -> list:
    """Owners ranked by total likes over matching items, then by item count."""
    total_likes = func.sum(ContentItem.like_count).label("total_likes")
    item_count = func.count(ContentItem.content_id).label("item_count")
    stmt = (
        select(
            ContentItem.owner_id,
            func.max(ContentItem.owner_name).label("owner_name"),
            total_likes,
            item_count,
        )
        .where(*_where(criteria, db.bind.dialect.name))
        .group_by(ContentItem.owner_id)
        .order_by(total_likes.desc(), item_count.desc(), ContentItem.owner_id.asc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.all())


@store_call
async def delete_item(db: AsyncSession, content_id: UUID) -> None:
    await db.execute(delete(ContentItem).where(ContentItem.content_id == content_id))
