"""Highlight Review: keyboard-driven triage of reading highlights."""

from highlight_review.models import HighlightItem, SessionSnapshot, SessionState, UserConfig
from highlight_review.session import SessionController

__version__ = "0.1.0"

__all__ = [
    "HighlightItem",
    "SessionController",
    "SessionSnapshot",
    "SessionState",
    "UserConfig",
    "__version__",
]
