import json
import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.comments import service as comments_service
from app.database import commit
from app.exceptions import (
    ContentAccessDeniedError,
    ContentNotFoundError,
    InvalidActorError,
    UnauthorizedError,
)
from app.ledger import service
from app.models.enums import Category, CounterField, EngagementKind
from app.stores import content as content_store
from app.stores import engagement as engagement_store

LIKE = EngagementKind.LIKE
SAVE = EngagementKind.SAVE


async def _stored_likes(db: AsyncSession, content_id: uuid.UUID) -> int:
    return await content_store.get_counter(db, content_id, CounterField.LIKE_COUNT)


# ---------------------------------------------------------------------------
# Actor validation
# ---------------------------------------------------------------------------


def test_validate_actor_accepts_uuid_and_string() -> None:
    actor = uuid.uuid4()
    assert service.validate_actor(actor) == actor
    assert service.validate_actor(str(actor)) == actor


def test_validate_actor_missing_is_unauthorized() -> None:
    with pytest.raises(UnauthorizedError):
        service.validate_actor(None)


@pytest.mark.parametrize("bad", ["not-a-uuid", "", uuid.UUID(int=0), str(uuid.UUID(int=0))])
def test_validate_actor_rejects_malformed_and_nil(bad) -> None:
    with pytest.raises(InvalidActorError):
        service.validate_actor(bad)


# ---------------------------------------------------------------------------
# Like toggle
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_like_toggle_on_then_off(db_session: AsyncSession, make_item) -> None:
    item = await make_item()
    actor = uuid.uuid4()

    first = await service.toggle(actor, item.content_id, LIKE, db_session)
    assert first.active is True
    assert first.new_count == 1
    assert await service.has_engagement(actor, item.content_id, LIKE, db_session)

    second = await service.toggle(actor, item.content_id, LIKE, db_session)
    assert second.active is False
    assert second.new_count == 0
    assert not await service.has_engagement(actor, item.content_id, LIKE, db_session)
    assert await _stored_likes(db_session, item.content_id) == 0


@pytest.mark.asyncio
async def test_two_actors_then_first_unlikes(db_session: AsyncSession, make_item) -> None:
    item = await make_item()
    a, b = uuid.uuid4(), uuid.uuid4()

    assert (await service.toggle(a, item.content_id, LIKE, db_session)).new_count == 1
    assert (await service.toggle(b, item.content_id, LIKE, db_session)).new_count == 2
    result = await service.toggle(a, item.content_id, LIKE, db_session)

    assert result.active is False
    assert result.new_count == 1
    assert await service.count(item.content_id, LIKE, db_session) == 1
    assert await _stored_likes(db_session, item.content_id) == 1
    status = await service.get_status(b, item.content_id, db_session)
    assert status.liked is True


@pytest.mark.asyncio
async def test_counter_matches_relation_after_many_toggles(
    db_session: AsyncSession, make_item
) -> None:
    item = await make_item()
    actors = [uuid.uuid4() for _ in range(5)]
    # Actors 0..4 toggle 1..5 times: odd counts end liked
    for n, actor in enumerate(actors, start=1):
        for _ in range(n):
            await service.toggle(actor, item.content_id, LIKE, db_session)

    relation = await service.count(item.content_id, LIKE, db_session)
    assert relation == 3
    assert await _stored_likes(db_session, item.content_id) == relation


@pytest.mark.asyncio
async def test_toggle_repairs_counter_drift(db_session: AsyncSession, make_item) -> None:
    item = await make_item(like_count=7)
    actor = uuid.uuid4()

    result = await service.toggle(actor, item.content_id, LIKE, db_session)

    assert result.active is True
    assert result.new_count == 1
    assert await _stored_likes(db_session, item.content_id) == 1


@pytest.mark.asyncio
async def test_toggle_losing_race_to_concurrent_unlike_leaves_counter_alone(
    db_session: AsyncSession, make_item, monkeypatch
) -> None:
    item = await make_item()
    await service.toggle(uuid.uuid4(), item.content_id, LIKE, db_session)
    actor = uuid.uuid4()

    # Insert conflicts, yet the delete finds no row: another toggle removed it first
    async def conflicting_insert(*args, **kwargs) -> bool:
        return False

    monkeypatch.setattr(engagement_store, "insert_if_absent", conflicting_insert)
    result = await service.toggle(actor, item.content_id, LIKE, db_session)

    assert result.active is False
    assert result.new_count == 1
    assert await _stored_likes(db_session, item.content_id) == 1
    assert not await service.has_engagement(actor, item.content_id, LIKE, db_session)


@pytest.mark.asyncio
async def test_reconcile_counter_is_noop_when_consistent(
    db_session: AsyncSession, make_item
) -> None:
    item = await make_item()
    await service.toggle(uuid.uuid4(), item.content_id, LIKE, db_session)
    assert await service.reconcile_counter(item.content_id, db_session) == 1
    assert await _stored_likes(db_session, item.content_id) == 1


@pytest.mark.asyncio
async def test_counter_never_goes_negative(db_session: AsyncSession, make_item) -> None:
    item = await make_item()
    value = await content_store.adjust_counter(
        db_session, item.content_id, CounterField.LIKE_COUNT, -1
    )
    assert value == 0


@pytest.mark.asyncio
async def test_toggle_on_missing_content_writes_nothing(db_session: AsyncSession) -> None:
    actor = uuid.uuid4()
    with pytest.raises(ContentNotFoundError):
        await service.toggle(actor, uuid.uuid4(), LIKE, db_session)
    assert await engagement_store.count_for_actor(db_session, actor, LIKE) == 0


@pytest.mark.asyncio
async def test_reads_on_missing_content_raise_not_found(db_session: AsyncSession) -> None:
    missing = uuid.uuid4()
    with pytest.raises(ContentNotFoundError):
        await service.has_engagement(uuid.uuid4(), missing, LIKE, db_session)
    with pytest.raises(ContentNotFoundError):
        await service.count(missing, LIKE, db_session)
    with pytest.raises(ContentNotFoundError):
        await service.get_status(uuid.uuid4(), missing, db_session)


@pytest.mark.asyncio
async def test_toggle_requires_actor(db_session: AsyncSession, make_item) -> None:
    item = await make_item()
    with pytest.raises(UnauthorizedError):
        await service.toggle(None, item.content_id, LIKE, db_session)
    with pytest.raises(InvalidActorError):
        await service.toggle("nope", item.content_id, LIKE, db_session)
    assert await service.count(item.content_id, LIKE, db_session) == 0


@pytest.mark.asyncio
async def test_like_toggle_invalidates_affinity_cache_after_commit(
    db_session: AsyncSession, make_item, redis
) -> None:
    item = await make_item(category=Category.ANIMALS)
    actor = uuid.uuid4()
    key = f"feed:{actor}:affinity"
    redis.store[key] = json.dumps(["Programming"])

    await service.toggle(actor, item.content_id, LIKE, db_session, redis)

    assert key in redis.store
    await commit(db_session)
    assert key not in redis.store


# ---------------------------------------------------------------------------
# Save toggle and status
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_save_toggle_leaves_like_count_alone(db_session: AsyncSession, make_item) -> None:
    item = await make_item()
    actor = uuid.uuid4()

    saved = await service.toggle(actor, item.content_id, SAVE, db_session)
    assert saved.active is True
    assert saved.new_count == 1
    assert await _stored_likes(db_session, item.content_id) == 0

    status = await service.get_status(actor, item.content_id, db_session)
    assert (status.liked, status.saved) == (False, True)

    unsaved = await service.toggle(actor, item.content_id, SAVE, db_session)
    assert unsaved.active is False
    assert unsaved.new_count == 0


@pytest.mark.asyncio
async def test_statuses_for_page(db_session: AsyncSession, make_item) -> None:
    liked_item = await make_item()
    saved_item = await make_item()
    plain = await make_item()
    actor = uuid.uuid4()
    await service.toggle(actor, liked_item.content_id, LIKE, db_session)
    await service.toggle(actor, saved_item.content_id, SAVE, db_session)
    ids = [liked_item.content_id, saved_item.content_id, plain.content_id]

    liked, saved = await service.statuses(actor, ids, db_session)
    assert liked == {liked_item.content_id}
    assert saved == {saved_item.content_id}

    assert await service.statuses(None, ids, db_session) == (set(), set())


@pytest.mark.asyncio
async def test_list_engaged_and_content_ids(db_session: AsyncSession, make_item) -> None:
    items = [await make_item() for _ in range(3)]
    other = await make_item()
    actor = uuid.uuid4()
    for item in items:
        await service.toggle(actor, item.content_id, LIKE, db_session)
    await service.toggle(actor, other.content_id, SAVE, db_session)

    page = await service.list_engaged(actor, LIKE, db_session, page=1, page_size=2)
    assert page.total == 3
    assert page.total_pages == 2
    assert len(page.items) == 2

    ids = await service.list_content_for(actor, LIKE, db_session)
    assert set(ids) == {i.content_id for i in items}


# ---------------------------------------------------------------------------
# Owner deletion
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_delete_content_removes_dependents(
    db_session: AsyncSession, make_item, redis
) -> None:
    owner = uuid.uuid4()
    item = await make_item(owner_id=owner)
    keep = await make_item()
    liker = uuid.uuid4()
    await service.toggle(liker, item.content_id, LIKE, db_session)
    await service.toggle(liker, keep.content_id, LIKE, db_session)
    await service.toggle(liker, item.content_id, SAVE, db_session)
    await comments_service.add_comment(item.content_id, liker, "bob", "nice", db_session)
    redis.store[f"feed:{liker}:affinity"] = "[]"

    await service.delete_content(item.content_id, owner, db_session, redis)
    await commit(db_session)

    assert await content_store.get_item(db_session, item.content_id) is None
    assert await engagement_store.list_content_ids(db_session, liker, LIKE) == [keep.content_id]
    assert await engagement_store.count_for_actor(db_session, liker, SAVE) == 0
    assert f"feed:{liker}:affinity" not in redis.store
    with pytest.raises(ContentNotFoundError):
        await comments_service.list_comments(item.content_id, db_session)


@pytest.mark.asyncio
async def test_delete_content_by_non_owner_is_denied(
    db_session: AsyncSession, make_item
) -> None:
    item = await make_item()
    with pytest.raises(ContentAccessDeniedError):
        await service.delete_content(item.content_id, uuid.uuid4(), db_session)
    assert await content_store.exists(db_session, item.content_id)


@pytest.mark.asyncio
async def test_delete_missing_content(db_session: AsyncSession) -> None:
    with pytest.raises(ContentNotFoundError):
        await service.delete_content(uuid.uuid4(), uuid.uuid4(), db_session)
