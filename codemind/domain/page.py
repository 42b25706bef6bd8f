from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Page(BaseModel, Generic[T]):
    """One page of a longer result list. Pages are numbered from 0."""

    items: list[T] = []
    total: int
    page: int
    page_size: int
    has_next: bool
    has_prev: bool

    @property
    def total_pages(self) -> int:
        return -(-self.total // self.page_size)


def paginate(items: Sequence[T], page: int = 0, page_size: int = 20) -> Page[T]:
    """Cut a page out of `items`.

    Args:
        items: Full, already ordered result list
        page: Zero-based page number
        page_size: Number of items per page

    Returns:
        The requested page, empty when `page` is past the end

    Raises:
        ValueError: If `page` is negative or `page_size` is not positive
    """
    if page < 0:
        raise ValueError(f"Page must not be negative, got {page}")
    if page_size < 1:
        raise ValueError(f"Page size must be positive, got {page_size}")

    start = page * page_size
    end = start + page_size
    return Page(
        items=list(items[start:end]),
        total=len(items),
        page=page,
        page_size=page_size,
        has_next=end < len(items),
        has_prev=page > 0,
    )
