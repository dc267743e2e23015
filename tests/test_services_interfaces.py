"""Tests for service interface adapters and defaults."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from highlight_review.services.interfaces import (
    AppServices,
    LifecycleService,
    ReadwiseService,
    SearchService,
    build_default_app_services,
)


def test_build_default_app_services_protocol_compatible() -> None:
    services = build_default_app_services()

    assert isinstance(services, AppServices)
    assert isinstance(services.readwise, ReadwiseService)
    assert isinstance(services.search, SearchService)
    assert isinstance(services.lifecycle, LifecycleService)


@pytest.mark.asyncio
async def test_default_readwise_adapter_delegates(make_item) -> None:
    services = build_default_app_services()
    item = make_item("h1")

    with (
        patch(
            "highlight_review.services.interfaces._readwise.fetch_export",
            new=AsyncMock(return_value=[item]),
        ) as export,
        patch(
            "highlight_review.services.interfaces._readwise.fetch_book_highlights",
            new=AsyncMock(return_value=[item]),
        ) as book,
        patch(
            "highlight_review.services.interfaces._readwise.fetch_highlight_book_id",
            new=AsyncMock(return_value=77),
        ) as resolve,
    ):
        assert await services.readwise.fetch_export(client=None, token="t") == [item]
        assert await services.readwise.fetch_book_highlights(client=None, token="t", book_id=77)
        assert (
            await services.readwise.fetch_highlight_book_id(
                client=None, token="t", highlight_id="h1"
            )
            == 77
        )

    export.assert_awaited_once_with(client=None, token="t", updated_after=None)
    book.assert_awaited_once_with(client=None, token="t", book_id=77)
    resolve.assert_awaited_once_with(client=None, token="t", highlight_id="h1")


@pytest.mark.asyncio
async def test_default_search_adapter_delegates(make_item) -> None:
    services = build_default_app_services()
    with patch(
        "highlight_review.services.interfaces._readwise.search_highlights",
        new=AsyncMock(return_value=[make_item("s1")]),
    ) as search:
        results = await services.search.search_highlights(
            client=None, search_url="https://s.test", token="t", query="q", limit=4
        )

    assert [item.id for item in results] == ["s1"]
    search.assert_awaited_once_with(
        client=None, search_url="https://s.test", token="t", query="q", limit=4
    )


@pytest.mark.asyncio
async def test_default_lifecycle_adapter_hits_store(tmp_path) -> None:
    services = build_default_app_services()
    db_path = tmp_path / "highlights.db"

    visible = await services.lifecycle.sync_visible_ids(db_path=db_path, ids=["a", "b"])
    assert visible == {"a", "b"}

    assert await services.lifecycle.persist_status(db_path=db_path, ids=["a"], status="ARCHIVED")
    assert await services.lifecycle.persist_snooze(db_path=db_path, ids=["b"], weeks=2)
    assert await services.lifecycle.fetch_snooze_counts(db_path=db_path, ids=["a", "b"]) == {
        "b": 1
    }
    assert await services.lifecycle.sync_visible_ids(db_path=db_path, ids=["c"]) == {"c"}
