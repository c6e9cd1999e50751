"""
Page slicing for note listings.
"""
import math
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int
    total_pages: int


def total_pages(total: int, per_page: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / per_page)


def paginate(items: Sequence[T], page: int = 1, per_page: Optional[int] = None) -> Page[T]:
    """
    Slice `items` into the 1-based `page` of size `per_page`.

    Without `per_page` everything fits on a single page. A page past the end
    is clamped to the last one, so callers never get an empty middle page.
    """
    total = len(items)
    size = per_page if per_page and per_page > 0 else max(total, 1)
    pages = total_pages(total, size)
    current = min(max(page, 1), max(pages, 1))
    start = (current - 1) * size
    return Page(
        items=list(items[start:start + size]),
        total=total,
        page=current,
        per_page=size,
        total_pages=pages,
    )
