"""Review feed paging: which cached highlights to show next."""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence

from highlight_review.models import HighlightItem


def sort_by_recency(items: Iterable[HighlightItem]) -> list[HighlightItem]:
    """Newest ``highlighted_at`` first; undated items keep their order at the end."""
    pool = list(items)
    dated = [item for item in pool if item.highlighted_at]
    undated = [item for item in pool if not item.highlighted_at]
    dated.sort(key=lambda item: item.highlighted_at or "", reverse=True)
    return [*dated, *undated]


def select_review_page(
    all_items: Sequence[HighlightItem],
    visible_ids: Collection[str],
    exclude_ids: Collection[str],
    limit: int,
) -> list[HighlightItem]:
    """Return up to ``limit`` visible items not already displayed.

    ``all_items`` is expected in display order (see ``sort_by_recency``).
    """
    if limit <= 0:
        return []
    page: list[HighlightItem] = []
    seen: set[str] = set(exclude_ids)
    for item in all_items:
        if item.id in seen or item.id not in visible_ids:
            continue
        seen.add(item.id)
        page.append(item)
        if len(page) >= limit:
            break
    return page


__all__ = ["select_review_page", "sort_by_recency"]
