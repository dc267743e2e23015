"""Merge engine: combine the displayed list with incoming highlight batches.

Four merge shapes exist because each batch comes from a different source with
its own ordering rule:

- ``load``: a full reload replaces the list.
- ``append``: an infinite-scroll page is concatenated, dropping ids already shown.
- ``replace_with_search``: search results replace the list, checked items first.
- ``insert_adjacent``: a book expansion is spliced after the anchor's book run.

Every function is pure: inputs are never mutated and ids stay unique in the
returned list.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace

from highlight_review.models import HighlightItem

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class MergeResult:
    """Outcome of a merge: the new list plus the flags it implies."""

    items: list[HighlightItem]
    focused_id: str | None
    has_reached_end: bool = False
    has_requested_more: bool = False
    changed: bool = True


def unique_by_id(
    items: Iterable[HighlightItem], exclude: set[str] | None = None
) -> list[HighlightItem]:
    """Return items in order, keeping the first occurrence of each id."""
    seen: set[str] = set(exclude or ())
    result: list[HighlightItem] = []
    for item in items:
        if item.id in seen:
            continue
        seen.add(item.id)
        result.append(item)
    return result


def load(
    batch: Sequence[HighlightItem],
    focused_id: str | None = None,
) -> MergeResult:
    """Replace the list outright with a freshly fetched batch."""
    items = unique_by_id(batch)
    if focused_id is not None and any(item.id == focused_id for item in items):
        focus = focused_id
    else:
        focus = items[0].id if items else None
    return MergeResult(items=items, focused_id=focus)


def append(
    current: Sequence[HighlightItem],
    batch: Sequence[HighlightItem],
    focused_id: str | None = None,
) -> MergeResult:
    """Append a scroll page; an empty batch marks the end of the data."""
    if not batch:
        return MergeResult(
            items=list(current),
            focused_id=focused_id,
            has_reached_end=True,
            changed=False,
        )
    existing = {item.id for item in current}
    fresh = unique_by_id(batch, exclude=existing)
    dropped = len(batch) - len(fresh)
    if dropped:
        logger.debug("Append dropped %d duplicate highlight(s)", dropped)
    items = [*current, *fresh]
    focus = focused_id
    if focus is None and items:
        focus = items[0].id
    return MergeResult(items=items, focused_id=focus, changed=bool(fresh))


def replace_with_search(
    displayed: Sequence[HighlightItem],
    checked_ids: set[str],
    batch: Sequence[HighlightItem],
) -> MergeResult:
    """Replace the displayed list with search results, keeping checked items first.

    Checked items already on screen keep their on-screen order; checked items
    that only appear in the batch follow them in batch order. The unchecked
    batch items come after, deduplicated.
    """
    preserved = unique_by_id(item for item in displayed if item.id in checked_ids)
    preserved = [
        *preserved,
        *unique_by_id(
            (item for item in batch if item.id in checked_ids),
            exclude={item.id for item in preserved},
        ),
    ]
    tail = unique_by_id(
        (item for item in batch if item.id not in checked_ids),
        exclude={item.id for item in preserved},
    )
    items = [*preserved, *tail]
    if tail:
        focus: str | None = tail[0].id
    elif items:
        focus = items[0].id
    else:
        focus = None
    return MergeResult(items=items, focused_id=focus)


def insert_adjacent(
    displayed: Sequence[HighlightItem],
    batch: Sequence[HighlightItem],
    anchor_id: str | None,
    focused_id: str | None = None,
) -> MergeResult:
    """Splice a book expansion right after the anchor's run of the same book.

    A sentinel ``book_id`` on the anchor is resolved from the first batch item
    before deduplication, so the anchor itself is treated as part of the run.
    """
    anchor_index = next(
        (i for i, item in enumerate(displayed) if item.id == anchor_id),
        None,
    )
    if anchor_index is None:
        logger.debug("Expansion anchor %r is no longer displayed", anchor_id)
        return MergeResult(items=list(displayed), focused_id=focused_id, changed=False)

    items = list(displayed)
    anchor = items[anchor_index]
    if anchor.has_unknown_book and batch:
        anchor = replace(anchor, book_id=batch[0].book_id)
        items[anchor_index] = anchor

    existing = {item.id for item in items}
    fresh = unique_by_id(batch, exclude=existing)

    insert_after = anchor_index
    while insert_after + 1 < len(items) and items[insert_after + 1].book_id == anchor.book_id:
        insert_after += 1

    merged = [*items[: insert_after + 1], *fresh, *items[insert_after + 1 :]]
    return MergeResult(items=merged, focused_id=focused_id, changed=True)


__all__ = [
    "MergeResult",
    "append",
    "insert_adjacent",
    "load",
    "replace_with_search",
    "unique_by_id",
]
