"""
Client-side enrollment listing: search, time window, sort and pagination.
"""

from .query import (
    PAGE_SIZE,
    ListingPage,
    ListingQuery,
    SortOrder,
    TimeWindow,
    build_listing_page,
    page_window,
)

__all__ = [
    "PAGE_SIZE",
    "ListingPage",
    "ListingQuery",
    "SortOrder",
    "TimeWindow",
    "build_listing_page",
    "page_window",
]
