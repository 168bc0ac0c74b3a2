"""Engagement store: SQL adapter over engagement_records.

The (actor_id, content_id, kind) unique constraint is the serialization point
for toggles: ``insert_if_absent`` relies on ``ON CONFLICT DO NOTHING`` rather
than a read-then-write, so two processes racing on the same tuple can never
both insert.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.content import ContentItem
from app.models.engagement import EngagementRecord
from app.models.enums import EngagementKind
from app.stores.base import store_call

_TUPLE_COLUMNS = ["actor_id", "content_id", "kind"]


def _tuple_filter(actor_id: UUID, content_id: UUID, kind: EngagementKind) -> tuple:
    return (
        EngagementRecord.actor_id == actor_id,
        EngagementRecord.content_id == content_id,
        EngagementRecord.kind == kind,
    )


def _upsert_insert(db: AsyncSession):
    # ON CONFLICT is dialect-specific; SQLite backs local runs and the test suite
    return sqlite_insert if db.bind.dialect.name == "sqlite" else pg_insert


@store_call
async def insert_if_absent(
    db: AsyncSession, actor_id: UUID, content_id: UUID, kind: EngagementKind
) -> bool:
    """Insert the record; True if this call created it, False if it already existed."""
    insert = _upsert_insert(db)
    stmt = (
        insert(EngagementRecord)
        .values(actor_id=actor_id, content_id=content_id, kind=kind)
        .on_conflict_do_nothing(index_elements=_TUPLE_COLUMNS)
        .returning(EngagementRecord.record_id)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


@store_call
async def delete_record(
    db: AsyncSession, actor_id: UUID, content_id: UUID, kind: EngagementKind
) -> bool:
    """Delete the record; True if this call removed it."""
    result = await db.execute(
        delete(EngagementRecord)
        .where(*_tuple_filter(actor_id, content_id, kind))
        .returning(EngagementRecord.record_id)
        .execution_options(synchronize_session=False)
    )
    return result.scalar_one_or_none() is not None


@store_call
async def exists(db: AsyncSession, actor_id: UUID, content_id: UUID, kind: EngagementKind) -> bool:
    result = await db.execute(
        select(EngagementRecord.record_id).where(*_tuple_filter(actor_id, content_id, kind))
    )
    return result.scalar_one_or_none() is not None


@store_call
async def count_for_content(db: AsyncSession, content_id: UUID, kind: EngagementKind) -> int:
    result = await db.execute(
        select(func.count(EngagementRecord.record_id)).where(
            EngagementRecord.content_id == content_id,
            EngagementRecord.kind == kind,
        )
    )
    return result.scalar_one()


@store_call
async def count_for_actor(db: AsyncSession, actor_id: UUID, kind: EngagementKind) -> int:
    result = await db.execute(
        select(func.count(EngagementRecord.record_id)).where(
            EngagementRecord.actor_id == actor_id,
            EngagementRecord.kind == kind,
        )
    )
    return result.scalar_one()


@store_call
async def list_content_ids(db: AsyncSession, actor_id: UUID, kind: EngagementKind) -> list[UUID]:
    """Content ids the actor has engaged with, most recent engagement first."""
    result = await db.execute(
        select(EngagementRecord.content_id)
        .where(EngagementRecord.actor_id == actor_id, EngagementRecord.kind == kind)
        .order_by(EngagementRecord.created_at.desc(), EngagementRecord.record_id.desc())
    )
    return list(result.scalars().all())


@store_call
async def list_likers(db: AsyncSession, content_id: UUID) -> list[UUID]:
    result = await db.execute(
        select(EngagementRecord.actor_id).where(
            EngagementRecord.content_id == content_id,
            EngagementRecord.kind == EngagementKind.LIKE,
        )
    )
    return list(result.scalars().all())


@store_call
async def fetch_engaged_content(
    db: AsyncSession, actor_id: UUID, kind: EngagementKind, skip: int, limit: int
) -> list[ContentItem]:
    result = await db.execute(
        select(ContentItem)
        .join(EngagementRecord, EngagementRecord.content_id == ContentItem.content_id)
        .where(EngagementRecord.actor_id == actor_id, EngagementRecord.kind == kind)
        .order_by(EngagementRecord.created_at.desc(), EngagementRecord.record_id.desc())
        .offset(skip)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return list(result.scalars().all())


@store_call
async def kinds_by_content(
    db: AsyncSession, actor_id: UUID, content_ids: Iterable[UUID]
) -> dict[EngagementKind, set[UUID]]:
    """For one actor, which of ``content_ids`` carry each engagement kind."""
    found: dict[EngagementKind, set[UUID]] = {kind: set() for kind in EngagementKind}
    ids = list(content_ids)
    if not ids:
        return found
    result = await db.execute(
        select(EngagementRecord.content_id, EngagementRecord.kind).where(
            EngagementRecord.actor_id == actor_id,
            EngagementRecord.content_id.in_(ids),
        )
    )
    for content_id, kind in result.all():
        found[kind].add(content_id)
    return found


@store_call
async def delete_for_content(db: AsyncSession, content_id: UUID) -> int:
    result = await db.execute(
        delete(EngagementRecord)
        .where(EngagementRecord.content_id == content_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount
