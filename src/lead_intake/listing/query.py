"""
Listing over an already fetched enrollment collection.

The admin view fetches the full collection once and does all searching,
filtering, sorting and pagination locally.
"""

import math
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.schemas import EnrolledUser

PAGE_SIZE = 10
MAX_PAGE_BUTTONS = 5


class TimeWindow(str, Enum):
    """Enrollment date filters, relative to fetch time."""

    ALL = "all"
    TODAY = "today"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"


class SortOrder(str, Enum):
    """Listing sort orders."""

    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"


class ListingQuery(BaseModel):
    """What the admin typed and clicked."""

    model_config = ConfigDict(frozen=True)

    search: str = ""
    window: TimeWindow = TimeWindow.ALL
    sort: SortOrder = SortOrder.NEWEST
    page: int = 1


class ListingPage(BaseModel):
    """One rendered page of the listing."""

    items: List[EnrolledUser] = Field(default_factory=list)
    total: int = Field(..., description="Enrollments before filtering")
    filtered_total: int = Field(..., description="Enrollments matching search and window")
    page: int
    total_pages: int
    first_row: int = Field(..., description="1-based index of the first row shown, 0 if none")
    last_row: int = Field(..., description="1-based index of the last row shown, 0 if none")
    page_numbers: List[int] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when nothing matches; the view shows 'No candidates found'."""
        return self.filtered_total == 0

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def matches_search(user: EnrolledUser, search: str) -> bool:
    """Case-insensitive substring match over name or email."""
    needle = search.strip().lower()
    if not needle:
        return True
    return needle in user.name.lower() or needle in user.email.lower()


def window_start(window: TimeWindow, now: datetime) -> Optional[datetime]:
    if window == TimeWindow.TODAY:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if window == TimeWindow.LAST_7_DAYS:
        return now - timedelta(days=7)
    if window == TimeWindow.LAST_30_DAYS:
        return now - timedelta(days=30)
    return None


def sort_users(users: List[EnrolledUser], order: SortOrder) -> List[EnrolledUser]:
    if order == SortOrder.OLDEST:
        return sorted(users, key=lambda user: user.enrolled_at)
    if order == SortOrder.NAME:
        return sorted(users, key=lambda user: (user.name.casefold(), user.email))
    return sorted(users, key=lambda user: user.enrolled_at, reverse=True)


def page_window(current_page: int, total_pages: int, max_buttons: int = MAX_PAGE_BUTTONS) -> List[int]:
    """
    Page buttons to show: at most ``max_buttons``, centred on the current
    page and clamped at both ends.

    >>> page_window(1, 8)
    [1, 2, 3, 4, 5]
    >>> page_window(5, 8)
    [3, 4, 5, 6, 7]
    >>> page_window(8, 8)
    [4, 5, 6, 7, 8]
    """
    if total_pages <= max_buttons:
        return list(range(1, total_pages + 1))

    half = max_buttons // 2
    first = current_page - half
    first = max(1, min(first, total_pages - max_buttons + 1))
    return list(range(first, first + max_buttons))


def build_listing_page(
    users: List[EnrolledUser],
    query: ListingQuery,
    now: Optional[datetime] = None,
    page_size: int = PAGE_SIZE,
) -> ListingPage:
    """
    Apply search, time window, sort and pagination to a fetched collection.

    Args:
        users: Full collection as fetched from the store or the API
        query: Search text, window, sort order and requested page
        now: Fetch time; windows are relative to it (defaults to now, UTC)
        page_size: Rows per page

    Returns:
        The requested page, with the page number clamped to the valid range
    """
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    start = window_start(query.window, now)
    filtered = [
        user
        for user in users
        if matches_search(user, query.search) and (start is None or user.enrolled_at >= start)
    ]
    ordered = sort_users(filtered, query.sort)

    total_pages = math.ceil(len(ordered) / page_size)
    page = max(1, min(query.page, total_pages)) if total_pages else 1

    offset = (page - 1) * page_size
    items = ordered[offset:offset + page_size]

    return ListingPage(
        items=items,
        total=len(users),
        filtered_total=len(ordered),
        page=page,
        total_pages=total_pages,
        first_row=offset + 1 if items else 0,
        last_row=offset + len(items),
        page_numbers=page_window(page, total_pages),
    )
