"""CLI/bootstrap helpers for the highlight review application."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

from highlight_review.action_messages import build_actionable_error
from highlight_review.config import get_config_dir, get_db_path, load_config, save_config
from highlight_review.models import MAX_SNOOZE_WEEKS, UserConfig
from highlight_review.store import reset_integrated

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = get_config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _run_reset_integrated(
    db_path: Path,
    reset_integrated_fn: Callable[[Path], int | None],
) -> int:
    count = reset_integrated_fn(db_path)
    if count is None:
        print(
            build_actionable_error(
                "reset integrated highlights",
                why=f"the review database at {db_path} could not be updated",
                next_step="rerun with --debug and check debug.log in the config directory",
            ),
            file=sys.stderr,
        )
        return 1
    print(f"Reset {count} integrated highlight{'s' if count != 1 else ''} to NEW.")
    return 0


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], UserConfig] = load_config,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    reset_integrated_fn: Callable[[Path], int | None] = reset_integrated,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(description="Review reading highlights in a TUI")
    parser.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Review database path (default: highlights.db in the config directory)",
    )
    parser.add_argument(
        "--snooze-weeks",
        type=int,
        default=None,
        help=f"Snooze duration in weeks (1-{MAX_SNOOZE_WEEKS}; default: config value)",
    )
    parser.add_argument(
        "--reset-integrated",
        action="store_true",
        help="Move every integrated highlight back to the review queue and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/highlight-review/debug.log)",
    )
    parser.add_argument(
        "--ascii",
        action="store_true",
        help="Use ASCII-only status icons for compatibility with limited terminals",
    )
    args = parser.parse_args(argv)

    if args.snooze_weeks is not None and not 1 <= args.snooze_weeks <= MAX_SNOOZE_WEEKS:
        print(
            f"Error: --snooze-weeks must be between 1 and {MAX_SNOOZE_WEEKS}",
            file=sys.stderr,
        )
        return 1

    configure_logging_fn(args.debug)
    logger.debug("highlight-review starting, cwd=%s", Path.cwd())

    db_path = args.db or get_db_path()
    if args.reset_integrated:
        return _run_reset_integrated(db_path, reset_integrated_fn)

    config = load_config_fn()

    if not validate_interactive_tty_fn():
        print(
            "Error: highlight-review requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run highlight-review directly in a terminal session", file=sys.stderr)
        print("  - Use --reset-integrated for non-interactive maintenance", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from highlight_review.app import HighlightReviewApp as _HighlightReviewApp

        app_factory = _HighlightReviewApp

    app = app_factory(
        config,
        db_path=db_path,
        save_config_fn=save_config,
        snooze_weeks=args.snooze_weeks,
        ascii_icons=args.ascii or None,
    )
    app.run()
    return 0


__all__ = [
    "_configure_logging",
    "_run_reset_integrated",
    "_validate_interactive_tty",
    "main",
]
