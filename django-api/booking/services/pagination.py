"""Cursor pagination over an already ranked list.

The cursor is the id of the last item of the previous page. Clients must
treat it as opaque.
"""

from dataclasses import dataclass
from typing import Generic, Protocol, Sequence, TypeVar

MIN_PAGE_SIZE = 1
MAX_PAGE_SIZE = 50


class Identified(Protocol):
    @property
    def id(self) -> str: ...


T = TypeVar("T", bound=Identified)


@dataclass(frozen=True)
class Page(Generic[T]):
    items: list[T]
    next_cursor: str | None

    @property
    def has_more(self) -> bool:
        return self.next_cursor is not None


def clamp_page_size(page_size: int) -> int:
    return min(max(page_size, MIN_PAGE_SIZE), MAX_PAGE_SIZE)


def _start_index(items: Sequence[T], cursor: str | None) -> int:
    if not cursor:
        return 0
    for index, item in enumerate(items):
        if item.id == cursor:
            return index + 1
    # Unknown cursor (item dropped out of the feed): start over.
    return 0


def paginate(items: Sequence[T], cursor: str | None, page_size: int) -> Page[T]:
    size = clamp_page_size(page_size)
    start = _start_index(items, cursor)
    window = list(items[start : start + size])
    more = start + size < len(items)
    next_cursor = window[-1].id if more and window else None
    return Page(items=window, next_cursor=next_cursor)
