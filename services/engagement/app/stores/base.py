"""Store-layer vocabulary shared by the content and engagement adapters.

``ContentCriteria`` and ``OrderKey`` are plain values: the ranking layer builds
them, ``stores.content`` compiles them into SQL. Nothing here touches a session.
"""

import enum
import functools
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import ParamSpec, TypeVar
from uuid import UUID

from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.exceptions import StoreUnavailableError
from app.models.enums import Category, Visibility

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

# Connectivity-class failures; everything else (integrity, programming errors) propagates as-is
_TRANSIENT_ERRORS = (OperationalError, InterfaceError, PoolTimeoutError, ConnectionError, TimeoutError)


def store_call(fn: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
    """Re-raise transient database failures as StoreUnavailableError."""

    @functools.wraps(fn)
    async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        try:
            return await fn(*args, **kwargs)
        except _TRANSIENT_ERRORS as exc:
            logger.warning("Store call %s failed: %s", fn.__qualname__, exc)
            raise StoreUnavailableError(f"Store unavailable during {fn.__name__}") from exc

    return wrapper


@dataclass(frozen=True)
class ContentCriteria:
    """Filter over content_items. Unset fields do not constrain the result."""

    search: str | None = None
    category: Category | None = None
    created_after: datetime | None = None
    created_before: datetime | None = None
    owner_id: UUID | None = None
    visibility: Visibility | None = Visibility.PUBLIC


class SortField(str, enum.Enum):
    CREATED_AT = "created_at"
    LIKE_COUNT = "like_count"
    COMMENT_COUNT = "comment_count"
    CONTENT_ID = "content_id"
    # 1 when the item's category is in OrderKey.categories, else 0
    CATEGORY_MATCH = "category_match"


@dataclass(frozen=True)
class OrderKey:
    field: SortField
    descending: bool = True
    categories: frozenset[Category] = frozenset()

    @classmethod
    def desc(cls, field: SortField) -> "OrderKey":
        return cls(field=field, descending=True)

    @classmethod
    def asc(cls, field: SortField) -> "OrderKey":
        return cls(field=field, descending=False)

    @classmethod
    def category_boost(cls, categories: frozenset[Category]) -> "OrderKey":
        return cls(field=SortField.CATEGORY_MATCH, descending=True, categories=categories)
