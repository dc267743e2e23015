"""Lifecycle store: per-highlight review status in SQLite.

Each highlight the reviewer has seen gets one ``highlight_state`` row. A row
is visible when its status is ``NEW`` and its ``next_show_date`` is unset or
already past. Snoozing keeps the status ``NEW`` and pushes the next-show date
forward; the snooze history is a JSON list of ISO timestamps.

All public functions swallow ``sqlite3.Error`` and ``OSError`` (an
unusable database directory) after logging them and report failure through
their return value, so a broken database never takes the UI down.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from pathlib import Path

from highlight_review.models import (
    HIGHLIGHT_STATUSES,
    MAX_SNOOZE_WEEKS,
    STATUS_INTEGRATED,
    STATUS_NEW,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class HighlightState:
    """One persisted lifecycle row."""

    id: str
    status: str
    snooze_history: tuple[str, ...]
    next_show_date: str | None
    first_seen: str
    last_updated: str

    @property
    def snooze_count(self) -> int:
        return len(self.snooze_history)

    def is_visible(self, now: datetime | None = None) -> bool:
        if self.status != STATUS_NEW:
            return False
        return self.next_show_date is None or self.next_show_date <= _iso(now)


def _iso(moment: datetime | None = None) -> str:
    """Normalize a timestamp to a sortable UTC ISO string."""
    moment = moment or datetime.now(UTC)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC).isoformat(timespec="seconds")


def _parse_history(raw: str | None) -> list[str]:
    if not raw:
        return []
    try:
        history = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning("Discarding malformed snooze history %r", raw)
        return []
    if not isinstance(history, list):
        return []
    return [entry for entry in history if isinstance(entry, str)]


def _unique(ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(ids))


def init_store_db(db_path: Path) -> None:
    """Create the highlight_state table if it doesn't exist."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(str(db_path)) as conn:
        conn.execute(
            "CREATE TABLE IF NOT EXISTS highlight_state ("
            "  id TEXT PRIMARY KEY,"
            "  status TEXT NOT NULL DEFAULT 'NEW',"
            "  snooze_history TEXT,"
            "  next_show_date TEXT,"
            "  first_seen TEXT NOT NULL,"
            "  last_updated TEXT NOT NULL"
            ")"
        )
        conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_highlight_state_visible "
            "ON highlight_state (status, next_show_date)"
        )


def track_highlights(db_path: Path, ids: Iterable[str], now: datetime | None = None) -> int:
    """Register highlights as ``NEW`` if unseen; returns how many were added."""
    unique_ids = _unique(ids)
    if not unique_ids:
        return 0
    stamp = _iso(now)
    try:
        init_store_db(db_path)
        with sqlite3.connect(str(db_path)) as conn:
            before = conn.total_changes
            conn.executemany(
                "INSERT OR IGNORE INTO highlight_state "
                "(id, status, snooze_history, next_show_date, first_seen, last_updated) "
                "VALUES (?, ?, NULL, NULL, ?, ?)",
                [(highlight_id, STATUS_NEW, stamp, stamp) for highlight_id in unique_ids],
            )
            return conn.total_changes - before
    except (OSError, sqlite3.Error):
        logger.warning("Failed to track %d highlight(s)", len(unique_ids), exc_info=True)
        return 0


def load_visible_ids(db_path: Path, now: datetime | None = None) -> set[str]:
    """Ids that are ``NEW`` and not snoozed past ``now``."""
    if not db_path.exists():
        return set()
    try:
        with sqlite3.connect(str(db_path)) as conn:
            rows = conn.execute(
                "SELECT id FROM highlight_state "
                "WHERE status = ? AND (next_show_date IS NULL OR next_show_date <= ?)",
                (STATUS_NEW, _iso(now)),
            ).fetchall()
            return {row[0] for row in rows}
    except (OSError, sqlite3.Error):
        logger.warning("Failed to load visible highlights", exc_info=True)
        return set()


def load_highlight_state(db_path: Path, highlight_id: str) -> HighlightState | None:
    if not db_path.exists():
        return None
    try:
        with sqlite3.connect(str(db_path)) as conn:
            row = conn.execute(
                "SELECT id, status, snooze_history, next_show_date, first_seen, last_updated "
                "FROM highlight_state WHERE id = ?",
                (highlight_id,),
            ).fetchone()
    except (OSError, sqlite3.Error):
        logger.warning("Failed to load state for %s", highlight_id, exc_info=True)
        return None
    if row is None:
        return None
    return HighlightState(
        id=row[0],
        status=row[1],
        snooze_history=tuple(_parse_history(row[2])),
        next_show_date=row[3],
        first_seen=row[4],
        last_updated=row[5],
    )


def update_status(
    db_path: Path,
    ids: Iterable[str],
    status: str,
    now: datetime | None = None,
) -> bool:
    """Set the status of each id, creating rows for unseen ids.

    Raises:
        ValueError: If ``status`` is not a known lifecycle status.
    """
    if status not in HIGHLIGHT_STATUSES:
        raise ValueError(f"Unknown highlight status: {status!r}")
    unique_ids = _unique(ids)
    if not unique_ids:
        return True
    stamp = _iso(now)
    try:
        init_store_db(db_path)
        with sqlite3.connect(str(db_path)) as conn:
            conn.executemany(
                "INSERT INTO highlight_state "
                "(id, status, snooze_history, next_show_date, first_seen, last_updated) "
                "VALUES (?, ?, NULL, NULL, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET "
                "status = excluded.status, last_updated = excluded.last_updated",
                [(highlight_id, status, stamp, stamp) for highlight_id in unique_ids],
            )
        logger.debug("Set %d highlight(s) to %s", len(unique_ids), status)
        return True
    except (OSError, sqlite3.Error):
        logger.warning(
            "Failed to set status %s for %d highlight(s)", status, len(unique_ids), exc_info=True
        )
        return False


def snooze_highlights(
    db_path: Path,
    ids: Iterable[str],
    weeks: int,
    now: datetime | None = None,
) -> bool:
    """Hide highlights for ``weeks`` weeks and record the snooze."""
    unique_ids = _unique(ids)
    if not unique_ids:
        return True
    weeks = max(1, min(weeks, MAX_SNOOZE_WEEKS))
    moment = now or datetime.now(UTC)
    stamp = _iso(moment)
    next_show = _iso(moment + timedelta(days=weeks * 7))
    try:
        init_store_db(db_path)
        with sqlite3.connect(str(db_path)) as conn:
            for highlight_id in unique_ids:
                row = conn.execute(
                    "SELECT snooze_history FROM highlight_state WHERE id = ?",
                    (highlight_id,),
                ).fetchone()
                history = _parse_history(row[0]) if row else []
                history.append(stamp)
                conn.execute(
                    "INSERT INTO highlight_state "
                    "(id, status, snooze_history, next_show_date, first_seen, last_updated) "
                    "VALUES (?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET "
                    "snooze_history = excluded.snooze_history, "
                    "next_show_date = excluded.next_show_date, "
                    "last_updated = excluded.last_updated",
                    (highlight_id, STATUS_NEW, json.dumps(history), next_show, stamp, stamp),
                )
        logger.debug("Snoozed %d highlight(s) until %s", len(unique_ids), next_show)
        return True
    except (OSError, sqlite3.Error):
        logger.warning("Failed to snooze %d highlight(s)", len(unique_ids), exc_info=True)
        return False


def load_snooze_counts(db_path: Path, ids: Iterable[str]) -> dict[str, int]:
    """Bulk-load snooze counts; ids without history are omitted."""
    unique_ids = _unique(ids)
    if not unique_ids or not db_path.exists():
        return {}
    counts: dict[str, int] = {}
    try:
        with sqlite3.connect(str(db_path)) as conn:
            for start in range(0, len(unique_ids), 500):
                chunk = unique_ids[start : start + 500]
                placeholders = ",".join("?" for _ in chunk)
                rows = conn.execute(
                    "SELECT id, snooze_history FROM highlight_state "  # nosec B608
                    f"WHERE id IN ({placeholders}) AND snooze_history IS NOT NULL",
                    chunk,
                ).fetchall()
                for highlight_id, raw in rows:
                    count = len(_parse_history(raw))
                    if count:
                        counts[highlight_id] = count
    except (OSError, sqlite3.Error):
        logger.warning("Failed to load snooze counts", exc_info=True)
        return {}
    return counts


def reset_integrated(db_path: Path, now: datetime | None = None) -> int | None:
    """Move every ``INTEGRATED`` highlight back to ``NEW``.

    Returns the number of rows reset, or ``None`` when the store failed.
    """
    if not db_path.exists():
        return 0
    try:
        with sqlite3.connect(str(db_path)) as conn:
            cursor = conn.execute(
                "UPDATE highlight_state SET status = ?, last_updated = ? WHERE status = ?",
                (STATUS_NEW, _iso(now), STATUS_INTEGRATED),
            )
            return cursor.rowcount
    except (OSError, sqlite3.Error):
        logger.warning("Failed to reset integrated highlights", exc_info=True)
        return None


__all__ = [
    "HighlightState",
    "init_store_db",
    "load_highlight_state",
    "load_snooze_counts",
    "load_visible_ids",
    "reset_integrated",
    "snooze_highlights",
    "track_highlights",
    "update_status",
]
