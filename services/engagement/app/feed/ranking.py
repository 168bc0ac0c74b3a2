"""Feed ranking: turns a FeedQuery into a (criteria, order) plan. No I/O.

Views
-----
sorted        newest | oldest | most-liked | most-commented
trending      created within [now - period, now], like_count desc
personalized  liked-category items first, then newest; plain newest when the
              actor has no likes or is anonymous

Every view is a member of ``FeedView`` bound to exactly one plan builder in
``_BUILDERS``; the table is checked at import so a new view cannot fall
through to a default. Each order ends on content_id so pages stay
deterministic when timestamps collide.
"""

import calendar
import enum
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from uuid import UUID

from app.exceptions import InvalidQueryError
from app.models.enums import Category
from app.stores.base import ContentCriteria, OrderKey, SortField


class FeedView(str, enum.Enum):
    SORTED = "sorted"
    TRENDING = "trending"
    PERSONALIZED = "personalized"


class SortMode(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_LIKED = "most-liked"
    MOST_COMMENTED = "most-commented"


class TrendingPeriod(str, enum.Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


_NEWEST = (OrderKey.desc(SortField.CREATED_AT), OrderKey.desc(SortField.CONTENT_ID))

_SORT_ORDERS: dict[SortMode, tuple[OrderKey, ...]] = {
    SortMode.NEWEST: _NEWEST,
    SortMode.OLDEST: (OrderKey.asc(SortField.CREATED_AT), OrderKey.asc(SortField.CONTENT_ID)),
    SortMode.MOST_LIKED: (OrderKey.desc(SortField.LIKE_COUNT), *_NEWEST),
    SortMode.MOST_COMMENTED: (OrderKey.desc(SortField.COMMENT_COUNT), *_NEWEST),
}


# ---------------------------------------------------------------------------
# Parsing (stable external strings → enums)
# ---------------------------------------------------------------------------


def _parse(enum_cls: type[enum.Enum], value, label: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidQueryError(f"Unknown {label} {value!r}; expected one of: {allowed}")


def parse_view(value: FeedView | str) -> FeedView:
    return _parse(FeedView, value, "feed view")


def parse_sort_mode(value: SortMode | str) -> SortMode:
    return _parse(SortMode, value, "sort mode")


def parse_period(value: TrendingPeriod | str) -> TrendingPeriod:
    return _parse(TrendingPeriod, value, "trending period")


def parse_category(value: Category | str | None) -> Category | None:
    """None, empty or 'all' (any case) mean no category filter."""
    if value is None or isinstance(value, Category):
        return value
    name = value.strip()
    if not name or name.lower() == "all":
        return None
    by_lower = {c.value.lower(): c for c in Category}
    return by_lower.get(name.lower()) or _parse(Category, name, "category")


# ---------------------------------------------------------------------------
# Query / plan values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FeedQuery:
    view: FeedView = FeedView.SORTED
    sort: SortMode = SortMode.NEWEST
    period: TrendingPeriod = TrendingPeriod.WEEK
    search: str | None = None
    category: Category | None = None
    actor_id: UUID | None = None
    page: int = 1
    page_size: int = 10

    @classmethod
    def parse(
        cls,
        *,
        view: FeedView | str = FeedView.SORTED,
        sort: SortMode | str = SortMode.NEWEST,
        period: TrendingPeriod | str = TrendingPeriod.WEEK,
        search: str | None = None,
        category: Category | str | None = None,
        actor_id: UUID | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> "FeedQuery":
        """Build a query from raw request values; bad values raise InvalidQueryError."""
        term = search.strip() if search else None
        return cls(
            view=parse_view(view),
            sort=parse_sort_mode(sort),
            period=parse_period(period),
            search=term or None,
            category=parse_category(category),
            actor_id=actor_id,
            page=page,
            page_size=page_size,
        )


@dataclass(frozen=True)
class RankingContext:
    now: datetime
    # Categories of items the actor has liked; empty for anonymous or new actors
    affinity: frozenset[Category] = field(default_factory=frozenset)


@dataclass(frozen=True)
class FeedPlan:
    criteria: ContentCriteria
    order: tuple[OrderKey, ...]


def _one_month_before(now: datetime) -> datetime:
    year, month = (now.year, now.month - 1) if now.month > 1 else (now.year - 1, 12)
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def period_start(period: TrendingPeriod, now: datetime) -> datetime | None:
    """Lower bound of the trending window; None for ``all``."""
    if period is TrendingPeriod.DAY:
        return now - timedelta(days=1)
    if period is TrendingPeriod.WEEK:
        return now - timedelta(days=7)
    if period is TrendingPeriod.MONTH:
        return _one_month_before(now)
    return None


def base_criteria(query: FeedQuery) -> ContentCriteria:
    return ContentCriteria(search=query.search, category=query.category)


# ---------------------------------------------------------------------------
# Plan builders
# ---------------------------------------------------------------------------


def _sorted_plan(query: FeedQuery, context: RankingContext) -> FeedPlan:
    return FeedPlan(criteria=base_criteria(query), order=_SORT_ORDERS[query.sort])


def _trending_plan(query: FeedQuery, context: RankingContext) -> FeedPlan:
    criteria = replace(
        base_criteria(query),
        created_after=period_start(query.period, context.now),
        created_before=context.now,
    )
    return FeedPlan(criteria=criteria, order=_SORT_ORDERS[SortMode.MOST_LIKED])


def _personalized_plan(query: FeedQuery, context: RankingContext) -> FeedPlan:
    if query.actor_id is None or not context.affinity:
        return FeedPlan(criteria=base_criteria(query), order=_SORT_ORDERS[SortMode.NEWEST])
    return FeedPlan(
        criteria=base_criteria(query),
        order=(OrderKey.category_boost(context.affinity), *_NEWEST),
    )


PlanBuilder = Callable[[FeedQuery, RankingContext], FeedPlan]

_BUILDERS: dict[FeedView, PlanBuilder] = {
    FeedView.SORTED: _sorted_plan,
    FeedView.TRENDING: _trending_plan,
    FeedView.PERSONALIZED: _personalized_plan,
}

_missing = set(FeedView) - set(_BUILDERS)
if _missing:
    raise RuntimeError(f"Feed views without a plan builder: {sorted(v.value for v in _missing)}")

_missing_sorts = set(SortMode) - set(_SORT_ORDERS)
if _missing_sorts:
    raise RuntimeError(f"Sort modes without an order: {sorted(s.value for s in _missing_sorts)}")


def build_plan(query: FeedQuery, context: RankingContext) -> FeedPlan:
    return _BUILDERS[query.view](query, context)
