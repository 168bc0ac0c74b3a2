"""Clamped offset pagination shared by every feed view and list endpoint.

The engine knows nothing about ranking: callers hand it a ``count`` coroutine
and a ``fetch(skip, limit)`` coroutine already bound to their filter and order.

Out-of-range pages are clamped to the last page instead of raising, so a client
holding stale page state after the result set shrinks still gets a page back.
An empty result set short-circuits before any fetch is issued.
"""

import math
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from app.exceptions import InvalidQueryError

T = TypeVar("T")
U = TypeVar("U")

MAX_PAGE_SIZE = 50

CountFn = Callable[[], Awaitable[int]]
FetchFn = Callable[[int, int], Awaitable[Sequence[T]]]


@dataclass(frozen=True)
class PageResult(Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int

    def map(self, fn: Callable[[T], U]) -> "PageResult[U]":
        return PageResult(
            items=[fn(item) for item in self.items],
            total=self.total,
            page=self.page,
            page_size=self.page_size,
            total_pages=self.total_pages,
        )


class Page(BaseModel, Generic[T]):
    """Offset-paginated response envelope."""

    items: list[T]
    total: int = Field(description="Total number of matching records.")
    page: int = Field(description="Page actually served (1-indexed, after clamping).")
    page_size: int = Field(description="Number of items per page.")
    total_pages: int = Field(description="ceil(total / page_size); 0 when total is 0.")

    @classmethod
    def from_result(cls, result: PageResult[T]) -> "Page[T]":
        return cls(
            items=result.items,
            total=result.total,
            page=result.page,
            page_size=result.page_size,
            total_pages=result.total_pages,
        )


def validate_window(page: int, page_size: int, max_page_size: int = MAX_PAGE_SIZE) -> None:
    if page < 1:
        raise InvalidQueryError(f"page must be >= 1, got {page}")
    if page_size < 1 or page_size > max_page_size:
        raise InvalidQueryError(f"page_size must be between 1 and {max_page_size}, got {page_size}")


async def paginate(
    count: CountFn,
    fetch: FetchFn[T],
    page: int,
    page_size: int,
    *,
    max_page_size: int = MAX_PAGE_SIZE,
) -> PageResult[T]:
    validate_window(page, page_size, max_page_size)

    total = await count()
    if total == 0:
        return PageResult(items=[], total=0, page=page, page_size=page_size, total_pages=0)

    total_pages = math.ceil(total / page_size)
    effective_page = min(page, total_pages)
    skip = (effective_page - 1) * page_size
    items = await fetch(skip, page_size)
    return PageResult(
        items=list(items),
        total=total,
        page=effective_page,
        page_size=page_size,
        total_pages=total_pages,
    )
