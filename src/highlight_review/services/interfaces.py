"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Protocol, runtime_checkable

import httpx

from highlight_review.models import HighlightItem
from highlight_review.services import lifecycle_service as _lifecycle
from highlight_review.services import readwise_service as _readwise


@runtime_checkable
class ReadwiseService(Protocol):
    """Interface for highlight provider operations."""

    async def fetch_export(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        updated_after: str | None = None,
    ) -> list[HighlightItem]:
        """Fetch every highlight the user has."""
        ...

    async def fetch_book_highlights(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        book_id: int,
    ) -> list[HighlightItem]:
        """Fetch all highlights of one book."""
        ...

    async def fetch_highlight_book_id(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        highlight_id: str,
    ) -> int | None:
        """Resolve the book a highlight belongs to."""
        ...


@runtime_checkable
class SearchService(Protocol):
    """Interface for the semantic search backend."""

    async def search_highlights(
        self,
        *,
        client: httpx.AsyncClient | None,
        search_url: str,
        token: str,
        query: str,
        limit: int,
    ) -> list[HighlightItem]:
        """Return highlights matching ``query``."""
        ...


@runtime_checkable
class LifecycleService(Protocol):
    """Interface for persisted review status."""

    async def sync_visible_ids(
        self, *, db_path: Path, ids: Sequence[str], now: datetime | None = None
    ) -> set[str]:
        """Track ids and return the visible subset of the store."""
        ...

    async def persist_status(self, *, db_path: Path, ids: Sequence[str], status: str) -> bool:
        """Persist a status change and return success."""
        ...

    async def persist_snooze(self, *, db_path: Path, ids: Sequence[str], weeks: int) -> bool:
        """Persist a snooze and return success."""
        ...

    async def fetch_snooze_counts(self, *, db_path: Path, ids: Sequence[str]) -> dict[str, int]:
        """Return snooze counts keyed by id."""
        ...


class DefaultReadwiseService:
    """Default adapter that delegates to function-based Readwise helpers."""

    async def fetch_export(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        updated_after: str | None = None,
    ) -> list[HighlightItem]:
        return await _readwise.fetch_export(
            client=client, token=token, updated_after=updated_after
        )

    async def fetch_book_highlights(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        book_id: int,
    ) -> list[HighlightItem]:
        return await _readwise.fetch_book_highlights(client=client, token=token, book_id=book_id)

    async def fetch_highlight_book_id(
        self,
        *,
        client: httpx.AsyncClient | None,
        token: str,
        highlight_id: str,
    ) -> int | None:
        return await _readwise.fetch_highlight_book_id(
            client=client, token=token, highlight_id=highlight_id
        )


class DefaultSearchService:
    """Default adapter for the HTTP search backend."""

    async def search_highlights(
        self,
        *,
        client: httpx.AsyncClient | None,
        search_url: str,
        token: str,
        query: str,
        limit: int,
    ) -> list[HighlightItem]:
        return await _readwise.search_highlights(
            client=client,
            search_url=search_url,
            token=token,
            query=query,
            limit=limit,
        )


class DefaultLifecycleService:
    """Default adapter backed by the SQLite store."""

    async def sync_visible_ids(
        self, *, db_path: Path, ids: Sequence[str], now: datetime | None = None
    ) -> set[str]:
        return await _lifecycle.sync_visible_ids(db_path=db_path, ids=ids, now=now)

    async def persist_status(self, *, db_path: Path, ids: Sequence[str], status: str) -> bool:
        return await _lifecycle.persist_status(db_path=db_path, ids=ids, status=status)

    async def persist_snooze(self, *, db_path: Path, ids: Sequence[str], weeks: int) -> bool:
        return await _lifecycle.persist_snooze(db_path=db_path, ids=ids, weeks=weeks)

    async def fetch_snooze_counts(self, *, db_path: Path, ids: Sequence[str]) -> dict[str, int]:
        return await _lifecycle.fetch_snooze_counts(db_path=db_path, ids=ids)


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    readwise: ReadwiseService
    search: SearchService
    lifecycle: LifecycleService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the function-based modules."""
    return AppServices(
        readwise=DefaultReadwiseService(),
        search=DefaultSearchService(),
        lifecycle=DefaultLifecycleService(),
    )


__all__ = [
    "AppServices",
    "LifecycleService",
    "ReadwiseService",
    "SearchService",
    "build_default_app_services",
]
