"""Engagement ledger: pure business logic, no FastAPI imports.

engagement_records is the source of truth; content_items.like_count is a
materialized view of it. Every like toggle adjusts the counter inside the same
transaction as the relation write, then reconciles it against the relation
count so any earlier drift is repaired on the next toggle.
Affinity cache entries are dropped only after the transaction commits.

Absent content is always an error here (ContentNotFoundError), never a silent
``False``: status reads, toggles and counts share that policy.
"""

import logging
from dataclasses import dataclass
from functools import partial
from uuid import UUID

from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments import service as comments_service
from app.database import after_commit
from app.exceptions import (
    ContentAccessDeniedError,
    ContentNotFoundError,
    InvalidActorError,
    UnauthorizedError,
)
from app.feed import cache as feed_cache
from app.models.content import ContentItem
from app.models.enums import CounterField, EngagementKind
from app.pagination import MAX_PAGE_SIZE, PageResult, paginate
from app.stores import content as content_store
from app.stores import engagement as engagement_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToggleResult:
    active: bool
    new_count: int


@dataclass(frozen=True)
class EngagementStatus:
    liked: bool
    saved: bool


def validate_actor(actor_id: UUID | str | None) -> UUID:
    """Coerce an actor id to UUID. Missing → UnauthorizedError, malformed → InvalidActorError."""
    if actor_id is None:
        raise UnauthorizedError("Authentication required")
    if isinstance(actor_id, UUID):
        actor = actor_id
    else:
        try:
            actor = UUID(str(actor_id))
        except ValueError:
            raise InvalidActorError(f"Malformed actor id: {actor_id!r}")
    if actor.int == 0:
        raise InvalidActorError("Nil UUID is not a valid actor id")
    return actor


async def _require_content(content_id: UUID, db: AsyncSession) -> None:
    if not await content_store.exists(db, content_id):
        raise ContentNotFoundError(content_id)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


async def has_engagement(
    actor_id: UUID, content_id: UUID, kind: EngagementKind, db: AsyncSession
) -> bool:
    actor = validate_actor(actor_id)
    await _require_content(content_id, db)
    return await engagement_store.exists(db, actor, content_id, kind)


async def count(content_id: UUID, kind: EngagementKind, db: AsyncSession) -> int:
    """Authoritative engagement count derived from the relation set."""
    await _require_content(content_id, db)
    return await engagement_store.count_for_content(db, content_id, kind)


async def list_content_for(actor_id: UUID, kind: EngagementKind, db: AsyncSession) -> list[UUID]:
    actor = validate_actor(actor_id)
    return await engagement_store.list_content_ids(db, actor, kind)


async def get_status(actor_id: UUID, content_id: UUID, db: AsyncSession) -> EngagementStatus:
    actor = validate_actor(actor_id)
    await _require_content(content_id, db)
    found = await engagement_store.kinds_by_content(db, actor, [content_id])
    return EngagementStatus(
        liked=content_id in found[EngagementKind.LIKE],
        saved=content_id in found[EngagementKind.SAVE],
    )


async def statuses(
    actor_id: UUID | None, content_ids: list[UUID], db: AsyncSession
) -> tuple[set[UUID], set[UUID]]:
    """(liked ids, saved ids) among ``content_ids``; both empty for anonymous callers."""
    if actor_id is None or not content_ids:
        return set(), set()
    found = await engagement_store.kinds_by_content(db, actor_id, content_ids)
    return found[EngagementKind.LIKE], found[EngagementKind.SAVE]


async def list_engaged(
    actor_id: UUID,
    kind: EngagementKind,
    db: AsyncSession,
    page: int = 1,
    page_size: int = 10,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageResult[ContentItem]:
    """The actor's liked or saved items, most recent engagement first."""
    actor = validate_actor(actor_id)
    return await paginate(
        count=lambda: engagement_store.count_for_actor(db, actor, kind),
        fetch=lambda skip, limit: engagement_store.fetch_engaged_content(
            db, actor, kind, skip, limit
        ),
        page=page,
        page_size=page_size,
        max_page_size=max_page_size,
    )


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------


async def reconcile_counter(content_id: UUID, db: AsyncSession) -> int:
    """Overwrite like_count with the relation count when they disagree."""
    authoritative = await engagement_store.count_for_content(db, content_id, EngagementKind.LIKE)
    stored = await content_store.get_counter(db, content_id, CounterField.LIKE_COUNT)
    if stored is None:
        raise ContentNotFoundError(content_id)
    if stored != authoritative:
        logger.warning(
            "like_count drift on content %s: stored=%d relation=%d; repairing",
            content_id,
            stored,
            authoritative,
        )
        await content_store.set_counter(db, content_id, CounterField.LIKE_COUNT, authoritative)
    return authoritative


async def toggle(
    actor_id: UUID,
    content_id: UUID,
    kind: EngagementKind,
    db: AsyncSession,
    redis: Redis | None = None,
) -> ToggleResult:
    """Flip the (actor, content, kind) relation and keep the counter in step.

    Insert-first: a conflicting insert means the record is already active, so
    it is deleted instead. A delete that removes nothing means a concurrent
    toggle by the same actor got there first; the relation is inactive and the
    counter is left alone.
    """
    actor = validate_actor(actor_id)
    await _require_content(content_id, db)

    if await engagement_store.insert_if_absent(db, actor, content_id, kind):
        active, delta = True, 1
    elif await engagement_store.delete_record(db, actor, content_id, kind):
        active, delta = False, -1
    else:
        active, delta = False, 0

    if kind is EngagementKind.LIKE:
        # UPDATE even for delta=0 so the content row is locked before reconciling
        await content_store.adjust_counter(db, content_id, CounterField.LIKE_COUNT, delta)
        new_count = await reconcile_counter(content_id, db)
        after_commit(db, partial(feed_cache.invalidate_affinity, actor, redis))
    else:
        new_count = await engagement_store.count_for_content(db, content_id, kind)

    logger.debug(
        "toggle %s actor=%s content=%s active=%s count=%d",
        kind.value,
        actor,
        content_id,
        active,
        new_count,
    )
    return ToggleResult(active=active, new_count=new_count)


async def delete_content(
    content_id: UUID,
    owner_id: UUID,
    db: AsyncSession,
    redis: Redis | None = None,
) -> None:
    """Owner-only hard delete. Engagement records and comments go with the item."""
    owner = validate_actor(owner_id)
    item = await content_store.get_item(db, content_id)
    if item is None:
        raise ContentNotFoundError(content_id)
    if item.owner_id != owner:
        raise ContentAccessDeniedError("Only the owner can delete this content.")

    likers = await engagement_store.list_likers(db, content_id)
    removed = await engagement_store.delete_for_content(db, content_id)
    await comments_service.delete_for_content(content_id, db)
    await content_store.delete_item(db, content_id)
    for liker in likers:
        after_commit(db, partial(feed_cache.invalidate_affinity, liker, redis))
    logger.info("Deleted content %s with %d engagement records", content_id, removed)
