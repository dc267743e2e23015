"""Tests for the Readwise and search client helpers."""

from __future__ import annotations

import json

import httpx
import pytest

from highlight_review.models import UNKNOWN_BOOK_ID, UNKNOWN_SOURCE
from highlight_review.services.readwise_service import (
    READWISE_EXPORT_URL,
    fetch_book_highlights,
    fetch_export,
    fetch_highlight_book_id,
    parse_export_page,
    parse_search_results,
    search_highlights,
)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _book(book_id: int, *highlights: dict, **extra) -> dict:
    return {
        "user_book_id": book_id,
        "title": f"Book {book_id}",
        "author": "Author",
        "highlights": list(highlights),
        **extra,
    }


class TestParseExportPage:
    def test_flattens_books(self):
        data = {
            "results": [
                _book(1, {"id": 10, "text": "a", "highlighted_at": "2024-01-01T00:00:00Z"}),
                _book(2, {"id": 20, "text": "b", "url": "https://x.test/20"}, unique_url="u"),
            ]
        }
        items = parse_export_page(data)
        assert [item.id for item in items] == ["10", "20"]
        assert items[0].book_id == 1
        assert items[0].source_title == "Book 1"
        assert items[0].source_author == "Author"
        assert items[1].unique_url == "https://x.test/20"

    def test_skips_deleted_and_malformed(self):
        data = {
            "results": [
                _book(1, {"id": 1, "is_deleted": True}, {"text": "no id"}, "junk"),
                "not a book",
                {"title": "No highlights"},
            ]
        }
        assert parse_export_page(data) == []

    def test_book_url_fallback_and_unknown_title(self):
        data = {"results": [{"user_book_id": 3, "source_url": "s", "highlights": [{"id": 1}]}]}
        (item,) = parse_export_page(data)
        assert item.unique_url == "s"
        assert item.source_title == UNKNOWN_SOURCE

    def test_missing_results(self):
        assert parse_export_page({}) == []


class TestFetchExport:
    @pytest.mark.asyncio
    async def test_follows_cursor_and_sends_token(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if "pageCursor" not in request.url.params:
                return httpx.Response(
                    200, json={"results": [_book(1, {"id": 1})], "nextPageCursor": 42}
                )
            return httpx.Response(200, json={"results": [_book(2, {"id": 2})]})

        async with _client(handler) as client:
            items = await fetch_export(client=client, token="secret", updated_after="2024-01-01")

        assert [item.id for item in items] == ["1", "2"]
        assert len(seen) == 2
        assert seen[0].headers["Authorization"] == "Token secret"
        assert seen[0].url.params["updatedAfter"] == "2024-01-01"
        assert seen[1].url.params["pageCursor"] == "42"
        assert str(seen[0].url).startswith(READWISE_EXPORT_URL)

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"detail": "slow down"})

        async with _client(handler) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await fetch_export(client=client, token="t")

    @pytest.mark.asyncio
    async def test_non_json_page_ends_export(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>")

        async with _client(handler) as client:
            assert await fetch_export(client=client, token="t") == []


class TestBookHighlights:
    @pytest.mark.asyncio
    async def test_fetches_book_then_pages(self):
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path == "/api/v2/books/77/":
                return httpx.Response(200, json={"id": 77, "title": "Dune", "author": "Herbert"})
            if request.url.params.get("page") == "2":
                return httpx.Response(200, json={"results": [{"id": 3}], "next": None})
            assert request.url.params["book_id"] == "77"
            return httpx.Response(
                200,
                json={
                    "results": [{"id": 1}, {"id": 2, "is_deleted": True}],
                    "next": "https://readwise.io/api/v2/highlights/?book_id=77&page=2",
                },
            )

        async with _client(handler) as client:
            items = await fetch_book_highlights(client=client, token="t", book_id=77)

        assert [item.id for item in items] == ["1", "3"]
        assert {item.book_id for item in items} == {77}
        assert items[0].source_title == "Dune"
        assert paths[0] == "/api/v2/books/77/"

    @pytest.mark.asyncio
    async def test_resolve_book_id(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/h1/"):
                return httpx.Response(200, json={"id": "h1", "book_id": 77})
            return httpx.Response(200, json={"id": "h2"})

        async with _client(handler) as client:
            assert await fetch_highlight_book_id(client=client, token="t", highlight_id="h1") == 77
            assert (
                await fetch_highlight_book_id(client=client, token="t", highlight_id="h2") is None
            )


class TestSearch:
    def test_parse_flat_and_nested_hits(self):
        data = {
            "results": [
                {"id": "a", "text": "flat", "source_title": "T", "book_id": 5},
                {
                    "id": "b",
                    "attributes": {
                        "highlight_plaintext": "nested",
                        "document_title": "Doc",
                        "document_author": "Me",
                        "document_url": "https://doc.test",
                    },
                },
                "junk",
                {"text": "no id"},
            ]
        }
        items = parse_search_results(data)
        assert [item.id for item in items] == ["a", "b"]
        assert all(item.book_id == UNKNOWN_BOOK_ID for item in items)
        assert items[1].text == "nested"
        assert items[1].source_author == "Me"
        assert items[1].unique_url == "https://doc.test"

    def test_parse_bare_list_and_garbage(self):
        assert [item.id for item in parse_search_results([{"id": 1}])] == ["1"]
        assert parse_search_results("nope") == []

    @pytest.mark.asyncio
    async def test_posts_query_and_truncates(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json=[{"id": str(n)} for n in range(5)])

        async with _client(handler) as client:
            items = await search_highlights(
                client=client,
                search_url="https://search.test/query",
                token="t",
                query="stoicism",
                limit=3,
            )

        assert bodies == [{"query": "stoicism", "limit": 3}]
        assert [item.id for item in items] == ["0", "1", "2"]

    @pytest.mark.asyncio
    async def test_requires_search_url(self):
        with pytest.raises(ValueError, match="No search backend"):
            await search_highlights(client=None, search_url="", token="t", query="q", limit=5)

    @pytest.mark.asyncio
    async def test_non_json_search_response(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="oops")

        async with _client(handler) as client:
            items = await search_highlights(
                client=client, search_url="https://search.test", token="", query="q", limit=5
            )
        assert items == []
