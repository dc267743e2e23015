"""UI-facing copy builders for confirmations and notifications."""

from __future__ import annotations

import httpx


def _ensure_sentence(text: str) -> str:
    """Return text with terminal sentence punctuation."""
    cleaned = text.strip()
    if not cleaned:
        return ""
    if cleaned.endswith((".", "!", "?")):
        return cleaned
    return f"{cleaned}."


def _plural(count: int, noun: str = "highlight") -> str:
    return f"{count} {noun}{'s' if count != 1 else ''}"


def build_actionable_error(
    action: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable error message."""
    lines = [f"Could not {action.strip()}."]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_next_step_hint(next_step: str) -> str:
    """Build a canonical next-step guidance line."""
    return f"Next step: {_ensure_sentence(next_step)}"


def build_actionable_warning(
    message: str,
    *,
    next_step: str,
    why: str | None = None,
) -> str:
    """Build a 2-3 line actionable warning message."""
    lines = [_ensure_sentence(message)]
    if why:
        lines.append(f"Why: {_ensure_sentence(why)}")
    lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_http_error(action: str, exc: Exception, *, retry_step: str) -> str:
    """Map an HTTP failure to an actionable error message.

    Rate limits, server errors and rejected requests get their own wording;
    anything else is reported as a network or I/O problem.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        if status_code == 429:
            return build_actionable_error(
                action,
                why="Readwise rate limit reached (HTTP 429)",
                next_step=f"wait a minute and {retry_step}",
            )
        if status_code in (401, 403):
            return build_actionable_error(
                action,
                why=f"the access token was rejected (HTTP {status_code})",
                next_step="set readwise_token in the config file or READWISE_TOKEN",
            )
        if status_code >= 500:
            return build_actionable_error(
                action,
                why=f"the service is unavailable right now (HTTP {status_code})",
                next_step=f"{retry_step} in a minute",
            )
        return build_actionable_error(
            action,
            why=f"the request was rejected (HTTP {status_code})",
            next_step=retry_step,
        )
    return build_actionable_error(
        action,
        why="a network or I/O error occurred",
        next_step=f"check connectivity and {retry_step}",
    )


def build_store_error(action: str) -> str:
    """Error shown when the lifecycle store could not persist a change."""
    return build_actionable_error(
        action,
        why="the local review database could not be updated",
        next_step="press r to reload the list from the database",
    )


def build_actionable_success(
    message: str,
    *,
    detail: str | None = None,
    next_step: str | None = None,
) -> str:
    """Build a concise success message with optional detail and next step."""
    lines = [_ensure_sentence(message)]
    if detail:
        lines.append(_ensure_sentence(detail))
    if next_step:
        lines.append(build_next_step_hint(next_step))
    return "\n".join(lines)


def build_snooze_all_confirmation_prompt(item_count: int, weeks: int) -> str:
    return (
        f"Snooze all {_plural(item_count)} for {weeks} week{'s' if weeks != 1 else ''}?\n"
        "They will come back after the snooze ends."
    )


def build_archive_all_confirmation_prompt(item_count: int) -> str:
    return f"Archive all {_plural(item_count)}?\nArchived highlights are not shown again."


def build_integration_notification(item_count: int, copied: bool) -> str:
    """Notification after integrating highlights."""
    if copied:
        return build_actionable_success(
            f"Integrated {_plural(item_count)}",
            detail="Formatted text copied to the clipboard",
        )
    return build_actionable_warning(
        f"Integrated {_plural(item_count)} but the clipboard copy failed",
        why="no clipboard tool (pbcopy, xclip, xsel or clip) succeeded",
        next_step="install xclip or xsel and integrate again after reset",
    )


def build_lifecycle_notification(verb: str, item_count: int) -> str:
    """Short notification for snooze / archive results."""
    return f"{verb} {_plural(item_count)}"


def build_end_of_feed_notification() -> str:
    return build_actionable_success(
        "You're all caught up",
        next_step="press r to reload once snoozed highlights come back",
    )


__all__ = [
    "build_actionable_error",
    "build_actionable_success",
    "build_actionable_warning",
    "build_archive_all_confirmation_prompt",
    "build_end_of_feed_notification",
    "build_http_error",
    "build_integration_notification",
    "build_lifecycle_notification",
    "build_next_step_hint",
    "build_snooze_all_confirmation_prompt",
    "build_store_error",
]
