"""
Report pagination, filter parsing and sorting helpers.

Every paginated report (dependencies, licenses) goes through these helpers so
that page arithmetic and filter-string parsing behave the same everywhere.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

MAX_ENTRIES_PER_PAGE = 100
DEFAULT_ENTRIES_PER_PAGE = 20
DEFAULT_PAGE = 0

SORT_ASC = "ASC"
SORT_DESC = "DESC"

T = TypeVar("T")


@dataclass
class PaginatedReport:
    """
    One page of a report.

    Attributes:
        data: Rows on this page
        page: Zero-based page number actually served
        entries_per_page: Page size actually applied
        total_entries: Number of rows before search/filtering
        total_pages: Pages needed for the filtered rows
        filter_count: Number of rows after search/filtering, before pagination
    """

    data: List[Any] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    entries_per_page: int = DEFAULT_ENTRIES_PER_PAGE
    total_entries: int = 0
    total_pages: int = 0
    filter_count: int = 0

    @property
    def entry_count(self) -> int:
        return len(self.data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [row.to_dict() if hasattr(row, "to_dict") else row for row in self.data],
            "page": self.page,
            "entries_per_page": self.entries_per_page,
            "entry_count": self.entry_count,
            "total_entries": self.total_entries,
            "total_pages": self.total_pages,
            "filter_count": self.filter_count,
        }


def normalize_entries_per_page(
    entries_per_page: Optional[int],
    max_entries_per_page: int = MAX_ENTRIES_PER_PAGE,
    default_entries_per_page: int = DEFAULT_ENTRIES_PER_PAGE,
) -> int:
    """Clamp a requested page size: missing or non-positive gives the default, too large saturates."""
    if entries_per_page is None or entries_per_page <= 0:
        return default_entries_per_page
    return min(entries_per_page, max_entries_per_page)


def paginate(
    elements: Sequence[T],
    total_entries: int,
    page: Optional[int] = None,
    entries_per_page: Optional[int] = None,
    max_entries_per_page: int = MAX_ENTRIES_PER_PAGE,
    default_entries_per_page: int = DEFAULT_ENTRIES_PER_PAGE,
) -> PaginatedReport:
    """
    Slice already filtered and sorted rows into one page.

    Args:
        elements: Filtered, sorted rows
        total_entries: Row count before filtering
        page: Zero-based page number; missing or negative means the first page
        entries_per_page: Requested page size
        max_entries_per_page: Upper bound for the page size
        default_entries_per_page: Page size used when the request is missing or invalid

    Returns:
        PaginatedReport for the requested page. A page past the end is empty.
    """
    size = normalize_entries_per_page(entries_per_page, max_entries_per_page, default_entries_per_page)
    current = page if page is not None and page >= 0 else DEFAULT_PAGE

    start = current * size
    return PaginatedReport(
        data=list(elements[start : start + size]),
        page=current,
        entries_per_page=size,
        total_entries=total_entries,
        total_pages=math.ceil(len(elements) / size),
        filter_count=len(elements),
    )


def parse_active_filters(value: Optional[str]) -> List[str]:
    """
    Parse a bracketed, comma separated filter list such as ``[MIT, Apache-2.0]``.

    One leading ``[`` and one trailing ``]`` are removed, tokens are stripped and
    empty tokens dropped.
    """
    if not value:
        return []
    text = value.strip()
    if text.startswith("["):
        text = text[1:]
    if text.endswith("]"):
        text = text[:-1]
    return [token.strip() for token in text.split(",") if token.strip()]


def normalize_sort_direction(value: Optional[str], default: str = SORT_DESC) -> str:
    """Return ``ASC`` or ``DESC``; anything else falls back to ``default``."""
    if value and value.upper() in (SORT_ASC, SORT_DESC):
        return value.upper()
    return default


def stable_sort(rows: Iterable[T], key: Callable[[T], Any], direction: str = SORT_DESC) -> List[T]:
    """Sort rows by key; rows with equal keys keep their input order in both directions."""
    return sorted(rows, key=key, reverse=direction == SORT_DESC)


def matches_search(search_key: Optional[str], *values: Optional[str]) -> bool:
    """Case-insensitive substring match of ``search_key`` against any of ``values``."""
    if not search_key:
        return True
    needle = search_key.lower()
    return any(needle in value.lower() for value in values if value)
