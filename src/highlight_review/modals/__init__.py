"""Modal dialogs for the review TUI."""

from highlight_review.modals.common import ConfirmModal

__all__ = ["ConfirmModal"]
