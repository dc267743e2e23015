"""Readwise API and semantic search client helpers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from highlight_review.models import UNKNOWN_BOOK_ID, UNKNOWN_SOURCE, HighlightItem, _coerce_int

logger = logging.getLogger(__name__)

READWISE_API_BASE = "https://readwise.io/api/v2"
READWISE_EXPORT_URL = f"{READWISE_API_BASE}/export/"
READWISE_HIGHLIGHTS_URL = f"{READWISE_API_BASE}/highlights/"
READWISE_BOOKS_URL = f"{READWISE_API_BASE}/books/"

DEFAULT_TIMEOUT_SECONDS = 30
HIGHLIGHTS_PAGE_SIZE = 1000
# Guard against a cursor that never terminates
MAX_EXPORT_PAGES = 500


def _auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Token {token}"} if token else {}


async def _send(
    client: httpx.AsyncClient | None,
    method: str,
    url: str,
    **kwargs: Any,
) -> httpx.Response:
    """Send one request on ``client``, or on a temporary client when ``None``."""
    if client is not None:
        response = await client.request(method, url, **kwargs)
    else:
        async with httpx.AsyncClient() as tmp_client:
            response = await tmp_client.request(method, url, **kwargs)
    response.raise_for_status()
    return response


def _json_object(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        logger.warning("Non-JSON response (HTTP %s)", response.status_code)
        return {}
    return data if isinstance(data, dict) else {}


def _make_item(highlight: Mapping[str, Any], book: Mapping[str, Any]) -> HighlightItem | None:
    highlight_id = highlight.get("id")
    if highlight_id is None or highlight.get("is_deleted"):
        return None
    book_id = _coerce_int(book.get("user_book_id", book.get("id")), UNKNOWN_BOOK_ID)
    if book_id == UNKNOWN_BOOK_ID:
        book_id = _coerce_int(highlight.get("book_id"), UNKNOWN_BOOK_ID)
    return HighlightItem.from_payload(
        {
            "id": highlight_id,
            "text": highlight.get("text"),
            "source_title": book.get("title") or UNKNOWN_SOURCE,
            "source_author": book.get("author"),
            "highlighted_at": highlight.get("highlighted_at"),
            "book_id": book_id,
            "unique_url": highlight.get("url") or book.get("unique_url") or book.get("source_url"),
        }
    )


def parse_export_page(data: Mapping[str, Any]) -> list[HighlightItem]:
    """Flatten one export page (books with nested highlights) into items."""
    items: list[HighlightItem] = []
    results = data.get("results")
    if not isinstance(results, list):
        return items
    for book in results:
        if not isinstance(book, dict):
            continue
        highlights = book.get("highlights")
        if not isinstance(highlights, list):
            continue
        for highlight in highlights:
            if not isinstance(highlight, dict):
                continue
            item = _make_item(highlight, book)
            if item is not None:
                items.append(item)
    return items


async def fetch_export(
    *,
    client: httpx.AsyncClient | None,
    token: str,
    updated_after: str | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> list[HighlightItem]:
    """Fetch every highlight via the export endpoint, following cursors."""
    items: list[HighlightItem] = []
    cursor: str | None = None
    for _ in range(MAX_EXPORT_PAGES):
        params: dict[str, str] = {}
        if updated_after:
            params["updatedAfter"] = updated_after
        if cursor:
            params["pageCursor"] = cursor
        response = await _send(
            client,
            "GET",
            READWISE_EXPORT_URL,
            params=params,
            headers=_auth_headers(token),
            timeout=timeout_seconds,
        )
        data = _json_object(response)
        items.extend(parse_export_page(data))
        next_cursor = data.get("nextPageCursor")
        if next_cursor in (None, ""):
            break
        cursor = str(next_cursor)
    else:
        logger.warning("Export pagination stopped after %d pages", MAX_EXPORT_PAGES)
    logger.debug("Fetched %d highlight(s) from export", len(items))
    return items


async def fetch_book_highlights(
    *,
    client: httpx.AsyncClient | None,
    token: str,
    book_id: int,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> list[HighlightItem]:
    """Fetch all highlights of one book."""
    headers = _auth_headers(token)
    book_response = await _send(
        client,
        "GET",
        f"{READWISE_BOOKS_URL}{book_id}/",
        headers=headers,
        timeout=timeout_seconds,
    )
    book = {**_json_object(book_response), "user_book_id": book_id}

    items: list[HighlightItem] = []
    url: str | None = READWISE_HIGHLIGHTS_URL
    params: dict[str, Any] | None = {"book_id": book_id, "page_size": HIGHLIGHTS_PAGE_SIZE}
    while url:
        response = await _send(
            client, "GET", url, params=params, headers=headers, timeout=timeout_seconds
        )
        data = _json_object(response)
        for highlight in data.get("results") or []:
            if isinstance(highlight, dict):
                item = _make_item(highlight, book)
                if item is not None:
                    items.append(item)
        next_url = data.get("next")
        url = next_url if isinstance(next_url, str) and next_url else None
        # The "next" link already carries the query string
        params = None
    return items


async def fetch_highlight_book_id(
    *,
    client: httpx.AsyncClient | None,
    token: str,
    highlight_id: str,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> int | None:
    """Look up the parent book of a highlight; ``None`` when unknown."""
    response = await _send(
        client,
        "GET",
        f"{READWISE_HIGHLIGHTS_URL}{highlight_id}/",
        headers=_auth_headers(token),
        timeout=timeout_seconds,
    )
    book_id = _coerce_int(_json_object(response).get("book_id"), UNKNOWN_BOOK_ID)
    return None if book_id == UNKNOWN_BOOK_ID else book_id


def parse_search_results(data: Any) -> list[HighlightItem]:
    """Parse a search backend response.

    Accepts a bare list or ``{"results": [...]}``. Each hit is either flat
    (``id``, ``text``, ``source_title``...) or nested under ``attributes``
    (``highlight_plaintext``, ``document_title``, ``document_author``).
    Results always carry the unknown book id; expansion resolves it later.
    """
    if isinstance(data, dict):
        data = data.get("results")
    if not isinstance(data, list):
        return []
    items: list[HighlightItem] = []
    for hit in data:
        if not isinstance(hit, dict):
            continue
        attributes = hit.get("attributes")
        if isinstance(attributes, dict):
            payload = {
                "id": hit.get("id"),
                "text": attributes.get("highlight_plaintext"),
                "source_title": attributes.get("document_title"),
                "source_author": attributes.get("document_author"),
                "unique_url": attributes.get("highlight_url") or attributes.get("document_url"),
            }
        else:
            payload = dict(hit)
        payload["book_id"] = UNKNOWN_BOOK_ID
        item = HighlightItem.from_payload(payload)
        if item is not None:
            items.append(item)
    return items


async def search_highlights(
    *,
    client: httpx.AsyncClient | None,
    search_url: str,
    token: str,
    query: str,
    limit: int,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> list[HighlightItem]:
    """Run a semantic search against the configured backend."""
    if not search_url:
        raise ValueError("No search backend configured")
    response = await _send(
        client,
        "POST",
        search_url,
        json={"query": query, "limit": limit},
        headers=_auth_headers(token),
        timeout=timeout_seconds,
    )
    try:
        data = response.json()
    except ValueError:
        logger.warning("Search backend returned non-JSON response")
        return []
    return parse_search_results(data)[:limit]


__all__ = [
    "READWISE_API_BASE",
    "fetch_book_highlights",
    "fetch_export",
    "fetch_highlight_book_id",
    "parse_export_page",
    "parse_search_results",
    "search_highlights",
]
