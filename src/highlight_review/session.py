"""Session controller: the state machine behind the review list.

``SessionController`` owns one ``SessionState``. Every key, click and inbound
data message is a method call that mutates that state and returns the
intents the host should carry out (fetch, persist, search, expand, open,
export). The controller never performs I/O and never raises on stale input.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from highlight_review.io_actions import build_integration_export, build_similar_query
from highlight_review.merge import MergeResult, append, insert_adjacent, load, replace_with_search
from highlight_review.messages import (
    AppendBatch,
    ExpandBatch,
    InboundMessage,
    Intent,
    LoadBatch,
    LoadingStarted,
    LoadingStopped,
    RequestExpand,
    RequestIntegrationExport,
    RequestLoad,
    RequestMore,
    RequestOpenUrl,
    RequestSearch,
    RequestSnooze,
    RequestStatusChange,
    SearchBatch,
)
from highlight_review.models import (
    DEFAULT_SNOOZE_WEEKS,
    MAX_SNOOZE_WEEKS,
    MODE_NORMAL,
    MODE_SEARCH,
    SCROLL_LOOKAHEAD,
    SLOT_EXPAND,
    SLOT_LOAD,
    SLOT_SEARCH,
    STATUS_ARCHIVED,
    STATUS_INTEGRATED,
    HighlightItem,
    SessionSnapshot,
    SessionState,
)
from highlight_review.navigation import (
    adjacent_groups,
    first_index,
    id_at,
    index_of,
    last_index,
    next_group_start,
    prev_group_start,
    step_down,
    step_up,
    within_scroll_threshold,
)
from highlight_review.selection import (
    RemovalPlan,
    plan_removal_keep_focus,
    plan_removal_skip_forward,
    resolve_targets,
    toggle_group,
    toggle_one,
)

logger = logging.getLogger(__name__)


def _clamp_weeks(weeks: int) -> int:
    return max(1, min(weeks, MAX_SNOOZE_WEEKS))


class SessionController:
    """Drive one review session.

    Args:
        snooze_weeks: Default snooze duration used when ``snooze`` gets none.
        lookahead: Distance from the end of the Normal list at which the next
            page is requested.
    """

    def __init__(
        self,
        *,
        snooze_weeks: int = DEFAULT_SNOOZE_WEEKS,
        lookahead: int = SCROLL_LOOKAHEAD,
    ) -> None:
        self.state = SessionState()
        self.snooze_weeks = _clamp_weeks(snooze_weeks)
        self.lookahead = max(1, lookahead)

    # ========================================================================
    # Request tokens
    # ========================================================================

    def _issue_token(self, slot: str) -> int:
        token = self.state.request_tokens.get(slot, 0) + 1
        self.state.request_tokens[slot] = token
        return token

    def _is_current(self, slot: str, token: int | None) -> bool:
        if token is None:
            return True
        current = self.state.request_tokens.get(slot, 0)
        if token != current:
            logger.debug("Dropping stale %s response (token %s, current %s)", slot, token, current)
            return False
        return True

    def current_token(self, slot: str) -> int:
        return self.state.request_tokens.get(slot, 0)

    def _stop_slot(self, slot: str | None) -> None:
        """Forget the outstanding request in ``slot`` (every slot for ``None``)."""
        state = self.state
        if slot is None:
            state.pending_slots.clear()
        else:
            state.pending_slots.discard(slot)
        if slot in (None, SLOT_LOAD):
            state.has_requested_more = False

    # ========================================================================
    # Helpers
    # ========================================================================

    @property
    def displayed(self) -> list[HighlightItem]:
        return self.state.displayed

    def _set_displayed(self, items: list[HighlightItem]) -> None:
        if self.state.in_search:
            self.state.search_results = items
        else:
            self.state.items = items

    def _focus_index(self) -> int:
        return index_of(self.displayed, self.state.focused_id)

    def _focus_at(self, index: int) -> list[Intent]:
        """Move focus to ``index``; downward moves may request the next page."""
        previous = self._focus_index()
        self.state.focused_id = id_at(self.displayed, index)
        if index >= previous:
            return self._maybe_request_more()
        return []

    def _maybe_request_more(self) -> list[Intent]:
        state = self.state
        if state.in_search or SLOT_LOAD in state.pending_slots or state.has_requested_more:
            return []
        if state.has_reached_end:
            return []
        if not within_scroll_threshold(state.items, self._focus_index(), self.lookahead):
            return []
        state.has_requested_more = True
        state.pending_slots.add(SLOT_LOAD)
        return [RequestMore(token=self._issue_token(SLOT_LOAD))]

    # ========================================================================
    # Inbound messages
    # ========================================================================

    def dispatch(self, message: InboundMessage) -> list[Intent]:
        """Apply an inbound message and return any follow-up intents."""
        if isinstance(message, LoadBatch):
            self.apply_load(message.items, message.token)
        elif isinstance(message, AppendBatch):
            self.apply_append(message.items, message.token)
        elif isinstance(message, SearchBatch):
            self.apply_search_results(message.items, message.token)
        elif isinstance(message, ExpandBatch):
            self.apply_expansion(message.items, message.anchor_id, message.token)
        elif isinstance(message, LoadingStarted):
            self.state.pending_slots.add(message.slot or SLOT_LOAD)
        elif isinstance(message, LoadingStopped):
            self._stop_slot(message.slot)
        else:
            logger.warning("Ignoring unsupported session message %r", message)
        return []

    def apply_load(self, batch: Iterable[HighlightItem], token: int | None = None) -> bool:
        """Replace the Normal list; returns False when the response was stale."""
        if not self._is_current(SLOT_LOAD, token):
            return False
        state = self.state
        focus = state.normal_focus_id if state.in_search else state.focused_id
        result = load(list(batch), focus)
        state.items = result.items
        if state.in_search:
            state.normal_focus_id = result.focused_id
        else:
            state.focused_id = result.focused_id
        state.checked_ids &= {item.id for item in state.displayed}
        state.has_reached_end = False
        state.has_requested_more = False
        state.pending_slots.discard(SLOT_LOAD)
        logger.debug("Loaded %d highlight(s)", len(result.items))
        return True

    def apply_append(self, batch: Iterable[HighlightItem], token: int | None = None) -> bool:
        """Append a scroll page to the Normal list."""
        if not self._is_current(SLOT_LOAD, token):
            return False
        state = self.state
        focus = state.normal_focus_id if state.in_search else state.focused_id
        result = append(state.items, list(batch), focus)
        state.items = result.items
        if state.in_search:
            state.normal_focus_id = result.focused_id
        else:
            state.focused_id = result.focused_id
        if result.has_reached_end:
            state.has_reached_end = True
            logger.debug("Reached end of highlight feed at %d item(s)", len(state.items))
        state.has_requested_more = False
        state.pending_slots.discard(SLOT_LOAD)
        return True

    def apply_search_results(
        self, batch: Iterable[HighlightItem], token: int | None = None
    ) -> bool:
        """Show search results, checked items first."""
        if not self._is_current(SLOT_SEARCH, token):
            return False
        state = self.state
        if not state.in_search:
            state.normal_focus_id = state.focused_id
        result = replace_with_search(state.displayed, state.checked_ids, list(batch))
        state.mode = MODE_SEARCH
        state.search_results = result.items
        state.focused_id = result.focused_id
        state.pending_slots.discard(SLOT_SEARCH)
        return True

    def apply_expansion(
        self,
        batch: Iterable[HighlightItem],
        anchor_id: str,
        token: int | None = None,
    ) -> bool:
        """Splice a book's highlights after the anchor; mode is preserved."""
        if not self._is_current(SLOT_EXPAND, token):
            return False
        state = self.state
        result: MergeResult = insert_adjacent(
            state.displayed, list(batch), anchor_id, state.focused_id
        )
        state.pending_slots.discard(SLOT_EXPAND)
        if not result.changed:
            return False
        self._set_displayed(result.items)
        return True

    # ========================================================================
    # Loading
    # ========================================================================

    def request_load(self) -> list[Intent]:
        """Request a full reload of the Normal list."""
        self.state.pending_slots.add(SLOT_LOAD)
        self.state.has_requested_more = False
        return [RequestLoad(token=self._issue_token(SLOT_LOAD))]

    # ========================================================================
    # Navigation
    # ========================================================================

    def move_up(self) -> list[Intent]:
        return self._focus_at(step_up(self.displayed, self._focus_index()))

    def move_down(self) -> list[Intent]:
        return self._focus_at(step_down(self.displayed, self._focus_index()))

    def next_group(self) -> list[Intent]:
        return self._focus_at(next_group_start(self.displayed, self._focus_index()))

    def prev_group(self) -> list[Intent]:
        return self._focus_at(prev_group_start(self.displayed, self._focus_index()))

    def move_first(self) -> list[Intent]:
        return self._focus_at(first_index(self.displayed))

    def move_last(self) -> list[Intent]:
        return self._focus_at(last_index(self.displayed))

    def focus(self, item_id: str) -> list[Intent]:
        """Focus ``item_id`` if displayed; stale ids are ignored."""
        for i, item in enumerate(self.displayed):
            if item.id == item_id:
                return self._focus_at(i)
        return []

    # ========================================================================
    # Selection
    # ========================================================================

    def toggle_focused(self) -> list[Intent]:
        if self.state.focused_id is not None:
            self.state.checked_ids = toggle_one(self.state.checked_ids, self.state.focused_id)
        return []

    def toggle_focused_group(self) -> list[Intent]:
        if self.displayed:
            self.state.checked_ids = toggle_group(
                self.displayed, self.state.checked_ids, self._focus_index()
            )
        return []

    def click(self, item_id: str) -> list[Intent]:
        """Focus an item and flip its check mark."""
        if not any(item.id == item_id for item in self.displayed):
            return []
        intents = self.focus(item_id)
        self.state.checked_ids = toggle_one(self.state.checked_ids, item_id)
        return intents

    def targets(self) -> list[str]:
        return resolve_targets(self.displayed, self.state.checked_ids, self.state.focused_id)

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def _apply_removal(self, plan: RemovalPlan, targets: set[str]) -> None:
        state = self.state
        self._set_displayed(plan.items)
        state.focused_id = plan.focused_id
        state.checked_ids = set()
        if state.in_search:
            # Keep the Normal list consistent for when search is dismissed
            normal = plan_removal_keep_focus(state.items, targets, state.normal_focus_id)
            state.items = normal.items
            state.normal_focus_id = normal.focused_id

    def _items_for(self, ids: Iterable[str]) -> list[HighlightItem]:
        wanted = set(ids)
        return [item for item in self.displayed if item.id in wanted]

    def integrate(self) -> list[Intent]:
        """Mark targets integrated and hand their text to the host for export."""
        ids = self.targets()
        if not ids:
            return []
        exported = self._items_for(ids)
        targets = set(ids)
        plan = plan_removal_keep_focus(self.displayed, targets, self.state.focused_id)
        self._apply_removal(plan, targets)
        intents: list[Intent] = [RequestStatusChange(ids=tuple(ids), status=STATUS_INTEGRATED)]
        if exported:
            intents.append(
                RequestIntegrationExport(
                    text=build_integration_export(exported),
                    count=len(exported),
                    ids=tuple(item.id for item in exported),
                )
            )
        return [*intents, *self._maybe_request_more()]

    def _remove_skipping_forward(self, ids: list[str]) -> None:
        targets = set(ids)
        plan = plan_removal_skip_forward(self.displayed, targets, self._focus_index())
        self._apply_removal(plan, targets)

    def snooze(self, duration_weeks: int | None = None) -> list[Intent]:
        """Hide targets for a number of weeks."""
        ids = self.targets()
        if not ids:
            return []
        weeks = _clamp_weeks(duration_weeks if duration_weeks is not None else self.snooze_weeks)
        self._remove_skipping_forward(ids)
        return [RequestSnooze(ids=tuple(ids), duration_weeks=weeks), *self._maybe_request_more()]

    def archive(self) -> list[Intent]:
        ids = self.targets()
        if not ids:
            return []
        self._remove_skipping_forward(ids)
        return [
            RequestStatusChange(ids=tuple(ids), status=STATUS_ARCHIVED),
            *self._maybe_request_more(),
        ]

    def snooze_all(self, duration_weeks: int | None = None) -> list[Intent]:
        """Snooze every displayed highlight."""
        if not self.displayed:
            return []
        self.state.checked_ids = {item.id for item in self.displayed}
        return self.snooze(duration_weeks)

    def archive_all(self) -> list[Intent]:
        """Archive every displayed highlight."""
        if not self.displayed:
            return []
        self.state.checked_ids = {item.id for item in self.displayed}
        return self.archive()

    # ========================================================================
    # Search, expansion and links
    # ========================================================================

    def show_query(self) -> list[Intent]:
        self.state.query_input_visible = True
        return []

    def _enter_search(self, seed: list[HighlightItem]) -> None:
        state = self.state
        if not state.in_search:
            state.normal_focus_id = state.focused_id
        state.mode = MODE_SEARCH
        state.search_results = seed
        state.focused_id = seed[0].id if seed else None
        state.pending_slots.add(SLOT_SEARCH)

    def submit_search(self, query: str) -> list[Intent]:
        """Run a text search; checked items stay on screen while it loads."""
        query = query.strip()
        self.state.query_input_visible = False
        if not query:
            return []
        if not self.state.in_search:
            checked = self.state.checked_ids
            self._enter_search([item for item in self.displayed if item.id in checked])
        else:
            self.state.pending_slots.add(SLOT_SEARCH)
        return [RequestSearch(query=query, token=self._issue_token(SLOT_SEARCH))]

    def search_similar(self) -> list[Intent]:
        """Search for highlights similar to the targets, showing them meanwhile."""
        seed = self._items_for(self.targets())
        query = build_similar_query(seed)
        if not query:
            return []
        self.state.query_input_visible = False
        self._enter_search(seed)
        return [RequestSearch(query=query, token=self._issue_token(SLOT_SEARCH))]

    def expand(self) -> list[Intent]:
        """Request every highlight of the focused item's book."""
        anchor = next(
            (item for item in self.displayed if item.id == self.state.focused_id), None
        )
        if anchor is None:
            return []
        self.state.pending_slots.add(SLOT_EXPAND)
        token = self._issue_token(SLOT_EXPAND)
        if anchor.has_unknown_book:
            return [RequestExpand(anchor_id=anchor.id, token=token, highlight_id=anchor.id)]
        return [RequestExpand(anchor_id=anchor.id, token=token, book_id=anchor.book_id)]

    def open_url(self) -> list[Intent]:
        anchor = next(
            (item for item in self.displayed if item.id == self.state.focused_id), None
        )
        if anchor is None or not anchor.unique_url:
            return []
        return [RequestOpenUrl(url=anchor.unique_url)]

    def escape(self) -> list[Intent]:
        """Clear checks and hide the query field; leave Search mode if active."""
        state = self.state
        state.checked_ids = set()
        state.query_input_visible = False
        if state.in_search:
            self._issue_token(SLOT_SEARCH)
            state.mode = MODE_NORMAL
            state.search_results = []
            focus = state.normal_focus_id
            if focus is None or not any(item.id == focus for item in state.items):
                focus = state.items[0].id if state.items else None
            state.focused_id = focus
            state.normal_focus_id = None
            state.pending_slots.discard(SLOT_SEARCH)
        return []

    # ========================================================================
    # Rendering
    # ========================================================================

    def snapshot(self) -> SessionSnapshot:
        state = self.state
        items = tuple(state.displayed)
        return SessionSnapshot(
            mode=state.mode,
            items=items,
            focused_id=state.focused_id,
            checked_ids=frozenset(state.checked_ids),
            is_loading=state.is_loading,
            has_reached_end=state.has_reached_end,
            query_input_visible=state.query_input_visible,
            groups=tuple(adjacent_groups(items)),
        )


__all__ = ["SessionController"]
