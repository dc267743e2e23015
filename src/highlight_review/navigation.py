"""Focus movement and adjacent-source grouping over the displayed list.

Groups are positional: two highlights from the same book separated by a
highlight from another book belong to different groups.

Lookups never fail on stale input. An id that is missing resolves to index 0
and indexes are clamped, so a keypress that arrives right after the list
changed still lands somewhere sensible.
"""

from __future__ import annotations

from collections.abc import Sequence

from highlight_review.models import SCROLL_LOOKAHEAD, Group, HighlightItem, source_key


def _clamp(items: Sequence[HighlightItem], index: int) -> int:
    if not items:
        return 0
    return max(0, min(index, len(items) - 1))


def index_of(items: Sequence[HighlightItem], item_id: str | None) -> int:
    """Return the position of ``item_id``, or 0 when it is absent or ``None``."""
    if item_id is None:
        return 0
    for i, item in enumerate(items):
        if item.id == item_id:
            return i
    return 0


def id_at(items: Sequence[HighlightItem], index: int) -> str | None:
    if not items:
        return None
    return items[_clamp(items, index)].id


def group_at(items: Sequence[HighlightItem], index: int) -> tuple[int, int]:
    """Return inclusive ``(start, end)`` bounds of the group containing ``index``.

    An empty list yields ``(0, -1)``.
    """
    if not items:
        return 0, -1
    index = _clamp(items, index)
    key = source_key(items[index])
    start = index
    while start > 0 and source_key(items[start - 1]) == key:
        start -= 1
    end = index
    while end < len(items) - 1 and source_key(items[end + 1]) == key:
        end += 1
    return start, end


def adjacent_groups(items: Sequence[HighlightItem]) -> list[Group]:
    """Split the list into maximal runs of adjacent same-source items."""
    groups: list[Group] = []
    start = 0
    for i in range(1, len(items) + 1):
        if i == len(items) or source_key(items[i]) != source_key(items[start]):
            groups.append(Group(source=source_key(items[start]), start=start, end=i - 1))
            start = i
    return groups


def next_group_start(items: Sequence[HighlightItem], index: int) -> int:
    """Index of the first item after the current group; saturates at the end."""
    if not items:
        return 0
    _, end = group_at(items, index)
    if end >= len(items) - 1:
        return len(items) - 1
    return end + 1


def prev_group_start(items: Sequence[HighlightItem], index: int) -> int:
    """Start of the current group, or of the previous one when already at a start.

    Repeated presses therefore first snap to the top of the current group and
    then walk back one group at a time.
    """
    if not items:
        return 0
    index = _clamp(items, index)
    start, _ = group_at(items, index)
    if start < index:
        return start
    if start == 0:
        return 0
    prev_start, _ = group_at(items, start - 1)
    return prev_start


def step_up(items: Sequence[HighlightItem], index: int) -> int:
    return _clamp(items, index - 1)


def step_down(items: Sequence[HighlightItem], index: int) -> int:
    return _clamp(items, index + 1)


def first_index(items: Sequence[HighlightItem]) -> int:
    return 0


def last_index(items: Sequence[HighlightItem]) -> int:
    return max(0, len(items) - 1)


def within_scroll_threshold(
    items: Sequence[HighlightItem],
    index: int,
    lookahead: int = SCROLL_LOOKAHEAD,
) -> bool:
    """Return whether ``index`` is close enough to the end to fetch the next page."""
    if not items:
        return False
    return index >= max(0, len(items) - lookahead)


def recover_focus(
    remaining: Sequence[HighlightItem],
    original: Sequence[HighlightItem],
    anchor_index: int,
) -> str | None:
    """Pick a focus after items were removed from ``original``.

    Prefers the nearest survivor at or before ``anchor_index`` in the original
    list, then the first survivor after it.
    """
    if not remaining:
        return None
    surviving = {item.id for item in remaining}
    anchor_index = _clamp(original, anchor_index)
    for i in range(anchor_index, -1, -1):
        if original[i].id in surviving:
            return original[i].id
    for i in range(anchor_index + 1, len(original)):
        if original[i].id in surviving:
            return original[i].id
    return remaining[0].id


def next_focus_skipping(
    items: Sequence[HighlightItem],
    index: int,
    targets: set[str],
) -> str | None:
    """Find the focus that survives removing ``targets``.

    Scans forward from ``index`` past targets; when that runs off the end,
    scans backward from ``index - 1``. Returns ``None`` when nothing survives.
    """
    if not items:
        return None
    position = _clamp(items, index)
    while position < len(items) and items[position].id in targets:
        position += 1
    if position >= len(items):
        position = _clamp(items, index) - 1
        while position >= 0 and items[position].id in targets:
            position -= 1
    if 0 <= position < len(items):
        return items[position].id
    return None


__all__ = [
    "adjacent_groups",
    "first_index",
    "group_at",
    "id_at",
    "index_of",
    "last_index",
    "next_focus_skipping",
    "next_group_start",
    "prev_group_start",
    "recover_focus",
    "step_down",
    "step_up",
    "within_scroll_threshold",
]
