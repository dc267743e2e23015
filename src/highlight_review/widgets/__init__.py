"""Widget classes for the review screen."""

from highlight_review.widgets.details import HighlightDetails, render_details
from highlight_review.widgets.listing import (
    PREVIEW_TEXT_MAX_LEN,
    HighlightList,
    build_list_options,
    render_status_line,
    set_ascii_icons,
)

__all__ = [
    "PREVIEW_TEXT_MAX_LEN",
    "HighlightDetails",
    "HighlightList",
    "build_list_options",
    "render_details",
    "render_status_line",
    "set_ascii_icons",
]
