"""Helpers for integration export, clipboard and browser actions."""

from __future__ import annotations

import logging
import platform
import subprocess
import webbrowser
from collections.abc import Sequence

from highlight_review.models import HighlightItem, source_key

logger = logging.getLogger(__name__)

# Timeout for clipboard helper processes (seconds)
SUBPROCESS_TIMEOUT = 5

# Reader deep-link prefix used in exported blocks
READER_URL_PREFIX = "wiseread:///read/"


def format_integration_block(item: HighlightItem) -> str:
    """Format one highlight as a tagged block for pasting into notes."""
    return (
        "<highlight>\n"
        f"{item.text}\n"
        f"— {source_key(item)}\n"
        f"— {READER_URL_PREFIX}{item.book_id}\n"
        "</highlight>"
    )


def build_integration_export(items: Sequence[HighlightItem]) -> str:
    """Join integration blocks with a blank line between them."""
    return "\n\n".join(format_integration_block(item) for item in items)


def build_similar_query(items: Sequence[HighlightItem]) -> str:
    """Build a semantic search query from the text of the given highlights."""
    return "\n\n".join(item.text.strip() for item in items if item.text.strip())


def get_clipboard_command_plan(system: str) -> tuple[list[list[str]], str] | None:
    """Return clipboard command candidates and input encoding for a platform."""
    if system == "Darwin":
        return ([["pbcopy"]], "utf-8")
    if system == "Linux":
        return ([["xclip", "-selection", "clipboard"], ["xsel", "--clipboard", "--input"]], "utf-8")
    if system == "Windows":
        return ([["clip"]], "utf-16")
    return None


def copy_to_clipboard(text: str, *, system: str | None = None) -> bool:
    """Copy text to the system clipboard. Returns True on success.

    Tries each platform command in turn; failures are logged at warning
    level and reported as ``False``.
    """
    system = system or platform.system()
    plan = get_clipboard_command_plan(system)
    if plan is None:
        logger.warning("Clipboard copy failed: unsupported platform %s", system)
        return False
    commands, encoding = plan
    payload = text.encode(encoding)
    try:
        for index, command in enumerate(commands):
            try:
                subprocess.run(  # nosec B603
                    command,
                    input=payload,
                    check=True,
                    shell=False,
                    timeout=SUBPROCESS_TIMEOUT,
                )
                break
            except (FileNotFoundError, subprocess.CalledProcessError):
                if index == len(commands) - 1:
                    raise
        return True
    except (subprocess.SubprocessError, OSError) as e:
        logger.warning("Clipboard copy failed: %s", e)
        return False


def open_url(url: str) -> bool:
    """Open ``url`` in the default browser. Returns True on success."""
    try:
        webbrowser.open(url)
        return True
    except (webbrowser.Error, OSError) as e:
        logger.warning("Failed to open URL %s: %s", url, e)
        return False


__all__ = [
    "READER_URL_PREFIX",
    "SUBPROCESS_TIMEOUT",
    "build_integration_export",
    "build_similar_query",
    "copy_to_clipboard",
    "format_integration_block",
    "get_clipboard_command_plan",
    "open_url",
]
