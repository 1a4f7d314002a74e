"""
Sort and pagination composition.

Turns the raw ``sort``, ``page`` and ``limit`` request values into a single
ordering key and offset/limit bounds, and computes pagination metadata.
"""

import math
from dataclasses import dataclass
from typing import Any, Optional

from nestify.models.search import PaginationMeta
from .criteria import parse_int
from . import predicate as p

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
# Keeps the store offset within a signed 64-bit integer
MAX_PAGE = 10 ** 9


@dataclass(frozen=True)
class SortKey:
    """Single-field ordering; ties keep store order."""
    field: str
    descending: bool = False


SORT_OPTIONS = {
    "newest": SortKey(p.CREATED_AT, descending=True),
    "price_asc": SortKey(p.PRICE),
    "price_desc": SortKey(p.PRICE, descending=True),
    "surface_asc": SortKey(p.SURFACE),
    "surface_desc": SortKey(p.SURFACE, descending=True),
    "views": SortKey(p.VIEWS, descending=True),
}
DEFAULT_SORT = "newest"


def resolve_sort(keyword: Optional[str]) -> SortKey:
    """Map a sort keyword to its key; unknown keywords fall back to newest."""
    if keyword is not None:
        keyword = str(keyword).strip().lower()
    return SORT_OPTIONS.get(keyword, SORT_OPTIONS[DEFAULT_SORT])


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def compose_page(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> PageRequest:
    """
    Normalize page and limit.

    Malformed values use the defaults; page is clamped to [1, MAX_PAGE] and
    limit to [1, max_limit].
    """
    page_value = parse_int(page)
    if page_value is None:
        page_value = DEFAULT_PAGE
    limit_value = parse_int(limit)
    if limit_value is None:
        limit_value = default_limit
    return PageRequest(
        page=min(max(1, page_value), MAX_PAGE),
        limit=min(max(1, limit_value), max_limit),
    )


def build_pagination(total: int, page: PageRequest) -> PaginationMeta:
    total_pages = math.ceil(total / page.limit) if total > 0 else 0
    return PaginationMeta(
        current_page=page.page,
        total_pages=total_pages,
        total_items=total,
        items_per_page=page.limit,
        has_next=page.page < total_pages,
        has_prev=page.page > 1,
    )
