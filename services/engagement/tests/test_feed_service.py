import json
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidQueryError
from app.feed import service
from app.feed.ranking import FeedQuery
from app.ledger import service as ledger
from app.models.enums import Category, EngagementKind, Visibility

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def _ids(result) -> list[uuid.UUID]:
    return [fi.item.content_id for fi in result.items]


@pytest.mark.asyncio
async def test_newest_and_oldest(db_session: AsyncSession, make_item) -> None:
    old = await make_item(created_at=NOW - timedelta(days=2))
    mid = await make_item(created_at=NOW - timedelta(days=1))
    new = await make_item(created_at=NOW)

    newest = await service.get_feed(FeedQuery.parse(sort="newest"), db_session, now=NOW)
    oldest = await service.get_feed(FeedQuery.parse(sort="oldest"), db_session, now=NOW)

    assert _ids(newest) == [new.content_id, mid.content_id, old.content_id]
    assert _ids(oldest) == [old.content_id, mid.content_id, new.content_id]


@pytest.mark.asyncio
async def test_most_liked_ties_break_newest_first(db_session: AsyncSession, make_item) -> None:
    a = await make_item(like_count=3, created_at=NOW - timedelta(hours=3))
    b = await make_item(like_count=9, created_at=NOW - timedelta(hours=2))
    c = await make_item(like_count=3, created_at=NOW - timedelta(hours=1))

    result = await service.get_feed(FeedQuery.parse(sort="most-liked"), db_session, now=NOW)
    assert _ids(result) == [b.content_id, c.content_id, a.content_id]


@pytest.mark.asyncio
async def test_most_commented(db_session: AsyncSession, make_item) -> None:
    quiet = await make_item(comment_count=0)
    busy = await make_item(comment_count=4)
    result = await service.get_feed(FeedQuery.parse(sort="most-commented"), db_session, now=NOW)
    assert _ids(result) == [busy.content_id, quiet.content_id]


@pytest.mark.asyncio
async def test_search_matches_title_description_and_tags(
    db_session: AsyncSession, make_item
) -> None:
    by_title = await make_item(title="Cat in a box", created_at=NOW - timedelta(hours=1))
    by_desc = await make_item(description="my CAT again", created_at=NOW - timedelta(hours=2))
    by_tag = await make_item(tags=["cats", "funny"], created_at=NOW - timedelta(hours=3))
    await make_item(title="dog", description="just a dog")

    result = await service.get_feed(FeedQuery.parse(search="cat"), db_session, now=NOW)
    assert _ids(result) == [by_title.content_id, by_desc.content_id, by_tag.content_id]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(db_session: AsyncSession, make_item) -> None:
    await make_item(title="hundred percent")
    hit = await make_item(title="100% real")
    result = await service.get_feed(FeedQuery.parse(search="%"), db_session, now=NOW)
    assert _ids(result) == [hit.content_id]


@pytest.mark.asyncio
async def test_search_matches_non_ascii_tag(db_session: AsyncSession, make_item) -> None:
    hit = await make_item(title="latte art", tags=["café", "morning"])
    await make_item(title="tea", tags=["cafe"])
    result = await service.get_feed(FeedQuery.parse(search="café"), db_session, now=NOW)
    assert _ids(result) == [hit.content_id]


@pytest.mark.asyncio
async def test_search_matches_each_tag_not_the_serialized_list(
    db_session: AsyncSession, make_item
) -> None:
    await make_item(title="dog", description="plain", tags=["a", "b"])

    for term in ('", "', '["', "a,"):
        result = await service.get_feed(FeedQuery.parse(search=term), db_session, now=NOW)
        assert result.total == 0, term


@pytest.mark.asyncio
async def test_category_filter_and_all(db_session: AsyncSession, make_item) -> None:
    code = await make_item(category=Category.PROGRAMMING)
    await make_item(category=Category.SPORTS)

    only_code = await service.get_feed(
        FeedQuery.parse(category="Programming"), db_session, now=NOW
    )
    everything = await service.get_feed(FeedQuery.parse(category="all"), db_session, now=NOW)

    assert _ids(only_code) == [code.content_id]
    assert everything.total == 2


@pytest.mark.asyncio
async def test_private_items_are_hidden(db_session: AsyncSession, make_item) -> None:
    await make_item(visibility=Visibility.PRIVATE)
    public = await make_item()
    result = await service.get_feed(FeedQuery.parse(), db_session, now=NOW)
    assert _ids(result) == [public.content_id]


@pytest.mark.asyncio
async def test_pagination_over_25_items(db_session: AsyncSession, make_item) -> None:
    items = [await make_item(created_at=NOW - timedelta(minutes=i)) for i in range(25)]

    first = await service.get_feed(FeedQuery.parse(page=1, page_size=10), db_session, now=NOW)
    last = await service.get_feed(FeedQuery.parse(page=3, page_size=10), db_session, now=NOW)
    clamped = await service.get_feed(FeedQuery.parse(page=5, page_size=10), db_session, now=NOW)

    assert len(first.items) == 10
    assert first.total_pages == 3

    assert last.total == 25
    assert last.total_pages == 3
    assert _ids(last) == [i.content_id for i in items[20:]]
    assert clamped.page == 3
    assert _ids(clamped) == _ids(last)


@pytest.mark.asyncio
async def test_empty_feed(db_session: AsyncSession) -> None:
    result = await service.get_feed(FeedQuery.parse(page=2), db_session, now=NOW)
    assert result.items == []
    assert result.total == 0
    assert result.total_pages == 0


@pytest.mark.asyncio
async def test_page_size_over_limit_is_rejected(db_session: AsyncSession) -> None:
    with pytest.raises(InvalidQueryError):
        await service.get_feed(FeedQuery.parse(page_size=51), db_session, now=NOW)


@pytest.mark.asyncio
async def test_trending_week_window(db_session: AsyncSession, make_item) -> None:
    await make_item(like_count=50, created_at=NOW - timedelta(days=10))
    three_days = await make_item(like_count=5, created_at=NOW - timedelta(days=3))
    twelve_hours = await make_item(like_count=8, created_at=NOW - timedelta(hours=12))

    result = await service.get_feed(
        FeedQuery.parse(view="trending", period="week"), db_session, now=NOW
    )
    assert _ids(result) == [twelve_hours.content_id, three_days.content_id]


@pytest.mark.asyncio
async def test_trending_day_and_all(db_session: AsyncSession, make_item) -> None:
    old = await make_item(like_count=50, created_at=NOW - timedelta(days=10))
    recent = await make_item(like_count=1, created_at=NOW - timedelta(hours=12))

    day = await service.get_feed(FeedQuery.parse(view="trending", period="day"), db_session, now=NOW)
    all_time = await service.get_feed(
        FeedQuery.parse(view="trending", period="all"), db_session, now=NOW
    )
    assert _ids(day) == [recent.content_id]
    assert _ids(all_time) == [old.content_id, recent.content_id]


@pytest.mark.asyncio
async def test_personalized_boosts_liked_category(db_session: AsyncSession, make_item) -> None:
    actor = uuid.uuid4()
    liked = await make_item(category=Category.PROGRAMMING, created_at=NOW - timedelta(days=5))
    older_code = await make_item(category=Category.PROGRAMMING, created_at=NOW - timedelta(days=4))
    newer_sport = await make_item(category=Category.SPORTS, created_at=NOW - timedelta(days=1))
    await ledger.toggle(actor, liked.content_id, EngagementKind.LIKE, db_session)

    result = await service.get_feed(
        FeedQuery.parse(view="personalized", actor_id=actor), db_session, now=NOW
    )
    assert _ids(result) == [older_code.content_id, liked.content_id, newer_sport.content_id]
    assert [fi.is_liked for fi in result.items] == [False, True, False]


@pytest.mark.asyncio
async def test_personalized_without_likes_matches_newest(
    db_session: AsyncSession, make_item
) -> None:
    for days in (3, 1, 2):
        await make_item(category=Category.GAMING, created_at=NOW - timedelta(days=days))

    newest = await service.get_feed(FeedQuery.parse(), db_session, now=NOW)
    personalized = await service.get_feed(
        FeedQuery.parse(view="personalized", actor_id=uuid.uuid4()), db_session, now=NOW
    )
    anonymous = await service.get_feed(FeedQuery.parse(view="personalized"), db_session, now=NOW)
    assert _ids(personalized) == _ids(newest)
    assert _ids(anonymous) == _ids(newest)


@pytest.mark.asyncio
async def test_affinity_is_cached(db_session: AsyncSession, make_item, redis) -> None:
    actor = uuid.uuid4()
    item = await make_item(category=Category.MOVIES)
    await ledger.toggle(actor, item.content_id, EngagementKind.LIKE, db_session)

    affinity = await service.category_affinity(actor, db_session, redis, ttl_s=60)

    key = f"feed:{actor}:affinity"
    assert affinity == frozenset({Category.MOVIES})
    assert json.loads(redis.store[key]) == ["Movies"]
    assert redis.ttls[key] == 60


@pytest.mark.asyncio
async def test_cached_affinity_is_used(db_session: AsyncSession, redis) -> None:
    actor = uuid.uuid4()
    redis.store[f"feed:{actor}:affinity"] = json.dumps(["Animals"])
    affinity = await service.category_affinity(actor, db_session, redis)
    assert affinity == frozenset({Category.ANIMALS})


@pytest.mark.asyncio
async def test_feed_annotates_caller_status(db_session: AsyncSession, make_item) -> None:
    actor = uuid.uuid4()
    item = await make_item()
    await ledger.toggle(actor, item.content_id, EngagementKind.SAVE, db_session)

    mine = await service.get_feed(FeedQuery.parse(actor_id=actor), db_session, now=NOW)
    anon = await service.get_feed(FeedQuery.parse(), db_session, now=NOW)

    assert (mine.items[0].is_liked, mine.items[0].is_saved) == (False, True)
    assert (anon.items[0].is_liked, anon.items[0].is_saved) == (False, False)


@pytest.mark.asyncio
async def test_top_creators(db_session: AsyncSession, make_item) -> None:
    alice, bob, carol = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
    await make_item(owner_id=alice, owner_name="alice", like_count=4)
    await make_item(owner_id=alice, owner_name="alice", like_count=3)
    await make_item(owner_id=bob, owner_name="bob", like_count=10)
    await make_item(owner_id=carol, owner_name="carol", like_count=1)

    standings = await service.top_creators(db_session, limit=2, now=NOW)

    assert [(s.owner_name, s.total_likes, s.item_count) for s in standings] == [
        ("bob", 10, 1),
        ("alice", 7, 2),
    ]


@pytest.mark.asyncio
async def test_top_creators_respects_period(db_session: AsyncSession, make_item) -> None:
    await make_item(owner_name="old", like_count=100, created_at=NOW - timedelta(days=40))
    await make_item(owner_name="fresh", like_count=2, created_at=NOW - timedelta(days=2))

    standings = await service.top_creators(db_session, period="week", now=NOW)
    assert [s.owner_name for s in standings] == ["fresh"]


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 51])
async def test_top_creators_limit_bounds(db_session: AsyncSession, limit: int) -> None:
    with pytest.raises(InvalidQueryError):
        await service.top_creators(db_session, limit=limit, now=NOW)
