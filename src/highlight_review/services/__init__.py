"""Internal service layer: provider client, feed paging and lifecycle persistence."""

from highlight_review.services.feed_service import select_review_page, sort_by_recency
from highlight_review.services.lifecycle_service import (
    fetch_snooze_counts,
    persist_snooze,
    persist_status,
    sync_visible_ids,
)
from highlight_review.services.readwise_service import (
    fetch_book_highlights,
    fetch_export,
    fetch_highlight_book_id,
    search_highlights,
)

__all__ = [
    "fetch_book_highlights",
    "fetch_export",
    "fetch_highlight_book_id",
    "fetch_snooze_counts",
    "persist_snooze",
    "persist_status",
    "search_highlights",
    "select_review_page",
    "sort_by_recency",
    "sync_visible_ids",
]
