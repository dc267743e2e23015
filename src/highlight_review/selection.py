"""Multi-select bookkeeping and the removal plans behind lifecycle actions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from highlight_review.models import HighlightItem
from highlight_review.navigation import group_at, next_focus_skipping, recover_focus


def toggle_one(checked_ids: set[str], item_id: str | None) -> set[str]:
    """Return a copy of ``checked_ids`` with ``item_id`` flipped."""
    result = set(checked_ids)
    if item_id is None:
        return result
    if item_id in result:
        result.discard(item_id)
    else:
        result.add(item_id)
    return result


def toggle_group(
    items: Sequence[HighlightItem],
    checked_ids: set[str],
    focus_index: int,
) -> set[str]:
    """Check every member of the focused group, or uncheck all if all are checked."""
    start, end = group_at(items, focus_index)
    members = {items[i].id for i in range(start, end + 1)}
    if not members:
        return set(checked_ids)
    if members <= checked_ids:
        return set(checked_ids) - members
    return set(checked_ids) | members


def resolve_targets(
    items: Sequence[HighlightItem],
    checked_ids: set[str],
    focused_id: str | None,
) -> list[str]:
    """Ids an action applies to: the checked set, else the focused id.

    Checked ids are returned in displayed order, followed by any checked ids
    no longer on screen (sorted, so intents stay deterministic).
    """
    if checked_ids:
        ordered = [item.id for item in items if item.id in checked_ids]
        missing = sorted(checked_ids - set(ordered))
        return [*ordered, *missing]
    if focused_id is not None and any(item.id == focused_id for item in items):
        return [focused_id]
    return []


@dataclass(slots=True, frozen=True)
class RemovalPlan:
    """The list and focus that result from removing a set of targets."""

    items: list[HighlightItem]
    focused_id: str | None
    removed: list[HighlightItem]


def _split(
    items: Sequence[HighlightItem], targets: set[str]
) -> tuple[list[HighlightItem], list[HighlightItem]]:
    kept = [item for item in items if item.id not in targets]
    removed = [item for item in items if item.id in targets]
    return kept, removed


def plan_removal_keep_focus(
    items: Sequence[HighlightItem],
    targets: set[str],
    focused_id: str | None,
) -> RemovalPlan:
    """Remove targets; keep focus when it survives, else recover near the first removal."""
    kept, removed = _split(items, targets)
    if focused_id is not None and focused_id not in targets and any(
        item.id == focused_id for item in kept
    ):
        return RemovalPlan(items=kept, focused_id=focused_id, removed=removed)
    first_removed = next((i for i, item in enumerate(items) if item.id in targets), 0)
    return RemovalPlan(
        items=kept,
        focused_id=recover_focus(kept, items, first_removed),
        removed=removed,
    )


def plan_removal_skip_forward(
    items: Sequence[HighlightItem],
    targets: set[str],
    focus_index: int,
) -> RemovalPlan:
    """Remove targets, moving focus to the next survivor (forward, then backward).

    The next focus is computed on the original list, before anything is removed.
    """
    focus = next_focus_skipping(items, focus_index, targets)
    kept, removed = _split(items, targets)
    return RemovalPlan(items=kept, focused_id=focus, removed=removed)


__all__ = [
    "RemovalPlan",
    "plan_removal_keep_focus",
    "plan_removal_skip_forward",
    "resolve_targets",
    "toggle_group",
    "toggle_one",
]
