"""Shared test fixtures for highlight review tests."""

from __future__ import annotations

from typing import Any

import pytest

from highlight_review.models import UNKNOWN_BOOK_ID, HighlightItem, UserConfig
from highlight_review.session import SessionController
from highlight_review.widgets.listing import set_ascii_icons

# ── Module-level state isolation ─────────────────────────────────────────────


@pytest.fixture(autouse=True)
def _reset_icon_set():
    """Restore Unicode list icons after each test.

    HighlightReviewApp.__init__ switches the module-level icon set when
    ascii_icons is configured.
    """
    yield
    set_ascii_icons(False)


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_item():
    """Factory fixture for creating HighlightItem instances with sensible defaults.

    ``book`` is a shorthand that sets the source title and derives a stable
    book id from it, so items of one book group together.
    """

    def _make(
        item_id: str = "h1",
        text: str | None = None,
        book: str = "Book A",
        author: str | None = None,
        book_id: int | None = None,
        highlighted_at: str | None = None,
        snooze_count: int = 0,
        unique_url: str | None = None,
    ) -> HighlightItem:
        if text is None:
            text = f"Highlight {item_id}"
        if book_id is None:
            book_id = sum(ord(ch) for ch in book) or UNKNOWN_BOOK_ID
        return HighlightItem(
            id=item_id,
            text=text,
            source_title=book,
            source_author=author,
            highlighted_at=highlighted_at,
            snooze_count=snooze_count,
            book_id=book_id,
            unique_url=unique_url,
        )

    return _make


@pytest.fixture
def make_items(make_item):
    """Build a list of items from ``"id:book"`` specs (book defaults to Book A)."""

    def _make(*specs: str, **kwargs: Any) -> list[HighlightItem]:
        items = []
        for spec in specs:
            item_id, _, book = spec.partition(":")
            items.append(make_item(item_id, book=book or "Book A", **kwargs))
        return items

    return _make


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make


@pytest.fixture
def loaded_session(make_items):
    """Factory returning a controller with a Normal list already loaded."""

    def _make(*specs: str, **kwargs: Any) -> SessionController:
        session = SessionController(**kwargs)
        session.apply_load(make_items(*specs))
        return session

    return _make
