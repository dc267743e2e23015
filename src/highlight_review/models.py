"""Data models and constants for the highlight review session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Application identity used for platformdirs config paths
CONFIG_APP_NAME = "highlight-review"

# Book id carried by search results whose parent book is not resolved yet
UNKNOWN_BOOK_ID = 0

UNKNOWN_SOURCE = "Unknown"

# Session modes
MODE_NORMAL = "normal"
MODE_SEARCH = "search"

# Lifecycle statuses persisted by the store
STATUS_NEW = "NEW"
STATUS_INTEGRATED = "INTEGRATED"
STATUS_ARCHIVED = "ARCHIVED"
HIGHLIGHT_STATUSES = (STATUS_NEW, STATUS_INTEGRATED, STATUS_ARCHIVED)

# Request slots tracked by the session controller
SLOT_LOAD = "load"
SLOT_SEARCH = "search"
SLOT_EXPAND = "expand"
REQUEST_SLOTS = (SLOT_LOAD, SLOT_SEARCH, SLOT_EXPAND)

# Paging / scrolling
DEFAULT_PAGE_SIZE = 30
MAX_PAGE_SIZE = 200
SCROLL_LOOKAHEAD = 5

# Snoozing
DEFAULT_SNOOZE_WEEKS = 4
MAX_SNOOZE_WEEKS = 52


def _coerce_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return default


def _coerce_optional_str(value: Any) -> str | None:
    text = _coerce_str(value)
    return text or None


def _coerce_int(value: Any, default: int = 0) -> int:
    """Coerce untrusted values to int, excluding bool."""
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return default


@dataclass(slots=True, frozen=True, eq=False)
class HighlightItem:
    """A displayable reading highlight.

    Identity is the ``id`` alone: two items with the same id compare equal even
    when another field (for example a freshly resolved ``book_id``) differs.
    """

    id: str
    text: str = ""
    source_title: str = UNKNOWN_SOURCE
    source_author: str | None = None
    highlighted_at: str | None = None
    snooze_count: int = 0
    book_id: int = UNKNOWN_BOOK_ID
    unique_url: str | None = None

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HighlightItem):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def has_unknown_book(self) -> bool:
        return self.book_id == UNKNOWN_BOOK_ID

    @classmethod
    def from_payload(cls, payload: Any) -> HighlightItem | None:
        """Build an item from an untrusted mapping; ``None`` when it has no id."""
        if not isinstance(payload, dict):
            return None
        item_id = _coerce_str(payload.get("id"))
        if not item_id:
            return None
        return cls(
            id=item_id,
            text=_coerce_str(payload.get("text")),
            source_title=_coerce_str(payload.get("source_title")) or UNKNOWN_SOURCE,
            source_author=_coerce_optional_str(payload.get("source_author")),
            highlighted_at=_coerce_optional_str(payload.get("highlighted_at")),
            snooze_count=max(0, _coerce_int(payload.get("snooze_count"))),
            book_id=_coerce_int(payload.get("book_id"), UNKNOWN_BOOK_ID),
            unique_url=_coerce_optional_str(payload.get("unique_url")),
        )


def source_key(item: HighlightItem) -> str:
    """Return the grouping key for an item: ``"title by author"`` or the title."""
    title = getattr(item, "source_title", None) or UNKNOWN_SOURCE
    author = getattr(item, "source_author", None)
    if author:
        return f"{title} by {author}"
    return title


def same_source(a: HighlightItem, b: HighlightItem) -> bool:
    return source_key(a) == source_key(b)


@dataclass(slots=True)
class SessionState:
    """Mutable state owned by the session controller."""

    mode: str = MODE_NORMAL
    items: list[HighlightItem] = field(default_factory=list)
    search_results: list[HighlightItem] = field(default_factory=list)
    focused_id: str | None = None
    checked_ids: set[str] = field(default_factory=set)
    # Request slots with an outstanding response
    pending_slots: set[str] = field(default_factory=set)
    has_requested_more: bool = False
    has_reached_end: bool = False
    # Normal-mode focus, kept untouched while search results are displayed
    normal_focus_id: str | None = None
    query_input_visible: bool = False
    request_tokens: dict[str, int] = field(
        default_factory=lambda: {slot: 0 for slot in REQUEST_SLOTS}
    )

    @property
    def is_loading(self) -> bool:
        return bool(self.pending_slots)

    @property
    def in_search(self) -> bool:
        return self.mode == MODE_SEARCH

    @property
    def displayed(self) -> list[HighlightItem]:
        return self.search_results if self.in_search else self.items


@dataclass(slots=True, frozen=True)
class Group:
    """A run of adjacent items sharing one source key (inclusive bounds)."""

    source: str
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


@dataclass(slots=True, frozen=True)
class SessionSnapshot:
    """Render-ready view of the session for the host UI."""

    mode: str
    items: tuple[HighlightItem, ...]
    focused_id: str | None
    checked_ids: frozenset[str]
    is_loading: bool
    has_reached_end: bool
    query_input_visible: bool
    groups: tuple[Group, ...] = ()

    @property
    def focused_item(self) -> HighlightItem | None:
        for item in self.items:
            if item.id == self.focused_id:
                return item
        return None

    @property
    def checked_items(self) -> list[HighlightItem]:
        return [item for item in self.items if item.id in self.checked_ids]


@dataclass(slots=True)
class UserConfig:
    """User configuration persisted as JSON."""

    readwise_token: str = ""
    search_url: str = ""  # Empty = semantic search disabled
    snooze_duration_weeks: int = DEFAULT_SNOOZE_WEEKS
    page_size: int = DEFAULT_PAGE_SIZE
    snooze_key: str = "s"
    archive_key: str = "backspace"
    open_url_key: str = "o"
    last_fetch: str = ""  # ISO 8601 timestamp of the last export fetch
    ascii_icons: bool = False
    version: int = 1


__all__ = [
    "CONFIG_APP_NAME",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_SNOOZE_WEEKS",
    "HIGHLIGHT_STATUSES",
    "MAX_PAGE_SIZE",
    "MAX_SNOOZE_WEEKS",
    "MODE_NORMAL",
    "MODE_SEARCH",
    "REQUEST_SLOTS",
    "SCROLL_LOOKAHEAD",
    "SLOT_EXPAND",
    "SLOT_LOAD",
    "SLOT_SEARCH",
    "STATUS_ARCHIVED",
    "STATUS_INTEGRATED",
    "STATUS_NEW",
    "UNKNOWN_BOOK_ID",
    "UNKNOWN_SOURCE",
    "Group",
    "HighlightItem",
    "SessionSnapshot",
    "SessionState",
    "UserConfig",
    "same_source",
    "source_key",
]
