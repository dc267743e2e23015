"""Tests for user-facing notification and prompt copy."""

from __future__ import annotations

import httpx
import pytest

from highlight_review.action_messages import (
    build_actionable_error,
    build_actionable_success,
    build_actionable_warning,
    build_archive_all_confirmation_prompt,
    build_end_of_feed_notification,
    build_http_error,
    build_integration_notification,
    build_lifecycle_notification,
    build_snooze_all_confirmation_prompt,
    build_store_error,
)


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://readwise.io/api/v2/export/")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("boom", request=request, response=response)


def test_actionable_error_shape():
    message = build_actionable_error("load highlights", why="it broke", next_step="retry")
    assert message.splitlines() == [
        "Could not load highlights.",
        "Why: it broke.",
        "Next step: retry.",
    ]


def test_actionable_warning_and_success():
    assert build_actionable_warning("Careful", next_step="look").splitlines() == [
        "Careful.",
        "Next step: look.",
    ]
    assert build_actionable_success("Done!", detail="all good") == "Done!\nall good."


@pytest.mark.parametrize(
    ("status_code", "fragment"),
    [
        (429, "rate limit"),
        (401, "token was rejected"),
        (403, "token was rejected"),
        (503, "unavailable"),
        (404, "rejected (HTTP 404)"),
    ],
)
def test_http_error_by_status(status_code, fragment):
    message = build_http_error("load highlights", _status_error(status_code), retry_step="retry")
    assert message.startswith("Could not load highlights.")
    assert fragment in message


def test_http_error_network():
    message = build_http_error("search", httpx.ConnectError("down"), retry_step="try again")
    assert "network or I/O error" in message
    assert "check connectivity and try again" in message


def test_store_error_mentions_reload():
    assert "press r to reload" in build_store_error("snooze highlights")


def test_confirmation_prompts():
    prompt = build_snooze_all_confirmation_prompt(1, 1)
    assert prompt.startswith("Snooze all 1 highlight for 1 week?")
    assert build_snooze_all_confirmation_prompt(3, 4).startswith(
        "Snooze all 3 highlights for 4 weeks?"
    )
    assert build_archive_all_confirmation_prompt(2).startswith("Archive all 2 highlights?")


def test_integration_notification():
    assert build_integration_notification(2, copied=True).startswith("Integrated 2 highlights.")
    warning = build_integration_notification(1, copied=False)
    assert "clipboard copy failed" in warning
    assert "Next step:" in warning


def test_lifecycle_and_end_notifications():
    assert build_lifecycle_notification("Snoozed", 1) == "Snoozed 1 highlight"
    assert "caught up" in build_end_of_feed_notification()
