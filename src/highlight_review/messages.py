"""Messages crossing the session boundary.

Inbound messages carry data from the provider, search backend or host into
the session. Outbound intents are requests the session hands back to the host
to perform. Both are closed sets of small frozen dataclasses. Free-form
payloads (for example JSON posted by a web host) go through
``parse_inbound``, which validates them once so the merge code never has to
guard against missing fields.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from highlight_review.models import REQUEST_SLOTS, HighlightItem

logger = logging.getLogger(__name__)

# ============================================================================
# Inbound
# ============================================================================


@dataclass(slots=True, frozen=True)
class LoadBatch:
    """A fresh page that replaces the Normal-mode list."""

    items: tuple[HighlightItem, ...]
    token: int | None = None


@dataclass(slots=True, frozen=True)
class AppendBatch:
    """An infinite-scroll page; empty means no more data."""

    items: tuple[HighlightItem, ...]
    token: int | None = None


@dataclass(slots=True, frozen=True)
class SearchBatch:
    """Search backend results."""

    items: tuple[HighlightItem, ...]
    token: int | None = None


@dataclass(slots=True, frozen=True)
class ExpandBatch:
    """All highlights of the anchor's book."""

    items: tuple[HighlightItem, ...]
    anchor_id: str
    token: int | None = None


@dataclass(slots=True, frozen=True)
class LoadingStarted:
    """The host began a request; ``slot=None`` means the load slot."""

    slot: str | None = None


@dataclass(slots=True, frozen=True)
class LoadingStopped:
    """The host gave up on a request; ``slot=None`` clears every slot."""

    slot: str | None = None


InboundMessage = (
    LoadBatch | AppendBatch | SearchBatch | ExpandBatch | LoadingStarted | LoadingStopped
)

# ============================================================================
# Outbound
# ============================================================================


@dataclass(slots=True, frozen=True)
class RequestLoad:
    token: int


@dataclass(slots=True, frozen=True)
class RequestMore:
    token: int


@dataclass(slots=True, frozen=True)
class RequestSearch:
    query: str
    token: int


@dataclass(slots=True, frozen=True)
class RequestExpand:
    """Fetch the anchor's whole book; ``book_id`` is ``None`` until resolved."""

    anchor_id: str
    token: int
    book_id: int | None = None
    highlight_id: str | None = None


@dataclass(slots=True, frozen=True)
class RequestStatusChange:
    ids: tuple[str, ...]
    status: str


@dataclass(slots=True, frozen=True)
class RequestSnooze:
    ids: tuple[str, ...]
    duration_weeks: int


@dataclass(slots=True, frozen=True)
class RequestOpenUrl:
    url: str


@dataclass(slots=True, frozen=True)
class RequestIntegrationExport:
    """Formatted text of integrated highlights for the clipboard."""

    text: str
    count: int = 0
    ids: tuple[str, ...] = field(default=())


Intent = (
    RequestLoad
    | RequestMore
    | RequestSearch
    | RequestExpand
    | RequestStatusChange
    | RequestSnooze
    | RequestOpenUrl
    | RequestIntegrationExport
)

# ============================================================================
# Boundary parsing
# ============================================================================

_BATCH_TYPES: dict[str, type] = {
    "loadBatch": LoadBatch,
    "updateHighlights": LoadBatch,
    "appendBatch": AppendBatch,
    "appendHighlights": AppendBatch,
    "searchBatch": SearchBatch,
    "searchResults": SearchBatch,
}

_EXPAND_TYPES = frozenset({"expandBatch", "bookHighlights"})
_LOADING_TYPES: dict[str, type[LoadingStarted] | type[LoadingStopped]] = {
    "loadingStarted": LoadingStarted,
    "startLoading": LoadingStarted,
    "loadingStopped": LoadingStopped,
    "stopLoading": LoadingStopped,
}


def parse_items(raw: Any) -> tuple[HighlightItem, ...]:
    """Parse a list of item payloads, skipping entries without an id."""
    if not isinstance(raw, list):
        return ()
    items: list[HighlightItem] = []
    for entry in raw:
        item = HighlightItem.from_payload(entry)
        if item is None:
            logger.debug("Skipping highlight payload without id: %r", entry)
            continue
        items.append(item)
    return tuple(items)


def _parse_token(raw: Any) -> int | None:
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    return None


def parse_inbound(payload: Any) -> InboundMessage | None:
    """Convert a tagged mapping into an inbound message.

    Accepts ``{"type": ..., "highlights": [...], "token": n}``; expansion
    payloads also need ``anchorId``. Returns ``None`` for anything unknown or
    malformed.
    """
    if not isinstance(payload, Mapping):
        logger.warning("Ignoring non-mapping session message: %r", type(payload).__name__)
        return None
    kind = payload.get("type")
    if not isinstance(kind, str):
        logger.warning("Ignoring session message without a type")
        return None
    if kind in _LOADING_TYPES:
        slot = payload.get("slot")
        return _LOADING_TYPES[kind](slot=slot if slot in REQUEST_SLOTS else None)
    if "highlights" in payload and not isinstance(payload["highlights"], list):
        logger.warning("Ignoring %s message with non-list highlights", kind)
        return None
    items = parse_items(payload.get("highlights", []))
    token = _parse_token(payload.get("token"))
    message_type = _BATCH_TYPES.get(kind)
    if message_type is not None:
        return message_type(items=items, token=token)
    if kind in _EXPAND_TYPES:
        anchor_id = payload.get("anchorId")
        if isinstance(anchor_id, int) and not isinstance(anchor_id, bool):
            anchor_id = str(anchor_id)
        if not isinstance(anchor_id, str) or not anchor_id:
            logger.warning("Ignoring %s message without anchorId", kind)
            return None
        return ExpandBatch(items=items, anchor_id=anchor_id, token=token)
    logger.warning("Ignoring unknown session message type %r", kind)
    return None


__all__ = [
    "AppendBatch",
    "ExpandBatch",
    "InboundMessage",
    "Intent",
    "LoadBatch",
    "LoadingStarted",
    "LoadingStopped",
    "RequestExpand",
    "RequestIntegrationExport",
    "RequestLoad",
    "RequestMore",
    "RequestOpenUrl",
    "RequestSearch",
    "RequestSnooze",
    "RequestStatusChange",
    "SearchBatch",
    "parse_inbound",
    "parse_items",
]
