"""Async wrappers that run lifecycle store calls off the event loop."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from highlight_review.store import (
    load_snooze_counts,
    load_visible_ids,
    snooze_highlights,
    track_highlights,
    update_status,
)


async def sync_visible_ids(
    *,
    db_path: Path,
    ids: Sequence[str],
    now: datetime | None = None,
) -> set[str]:
    """Track newly fetched ids, then return the ids currently visible."""
    await asyncio.to_thread(track_highlights, db_path, ids, now)
    return await asyncio.to_thread(load_visible_ids, db_path, now)


async def persist_status(*, db_path: Path, ids: Sequence[str], status: str) -> bool:
    return await asyncio.to_thread(update_status, db_path, ids, status)


async def persist_snooze(*, db_path: Path, ids: Sequence[str], weeks: int) -> bool:
    return await asyncio.to_thread(snooze_highlights, db_path, ids, weeks)


async def fetch_snooze_counts(*, db_path: Path, ids: Sequence[str]) -> dict[str, int]:
    return await asyncio.to_thread(load_snooze_counts, db_path, ids)


__all__ = [
    "fetch_snooze_counts",
    "persist_snooze",
    "persist_status",
    "sync_visible_ids",
]
