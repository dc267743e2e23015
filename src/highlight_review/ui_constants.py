"""Internal UI constants for the HighlightReviewApp."""

from __future__ import annotations

from textual.binding import Binding, BindingType

APP_CSS = """
Screen {
    background: $th-background;
}

Header {
    background: $th-panel-alt;
    color: $th-text;
}

#main-container {
    height: 1fr;
}

#left-pane {
    width: 2fr;
    min-width: 40;
    height: 100%;
    border: tall $th-highlight;
    background: $th-panel;
}

#right-pane {
    width: 3fr;
    height: 100%;
    border: tall $th-highlight;
    background: $th-panel;
}

#list-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent;
    text-style: bold;
}

#details-header {
    padding: 0 1;
    background: $th-panel;
    color: $th-accent-alt;
    text-style: bold;
}

#highlight-list {
    height: 1fr;
    scrollbar-gutter: stable;
}

#highlight-list > .option-list--option-highlighted {
    background: $th-highlight-focus;
}

#highlight-list > .option-list--option-disabled {
    color: $th-accent-alt;
    text-style: bold;
}

#details-scroll {
    height: 1fr;
    padding: 0 1;
}

#query-container {
    height: auto;
    padding: 0 1;
    background: $th-panel;
    display: none;
}

#query-container.visible {
    display: block;
}

#query-input {
    width: 100%;
    border: tall $th-accent;
    background: $th-background;
}

#query-input:focus {
    border: tall $th-accent-alt;
}

VerticalScroll {
    scrollbar-background: $th-scrollbar-bg;
    scrollbar-color: $th-scrollbar-thumb;
    scrollbar-color-hover: $th-scrollbar-hover;
    scrollbar-color-active: $th-scrollbar-active;
}

#status-bar {
    padding: 0 1;
    color: $th-muted;
}
"""

# Snooze, archive and open-URL keys are user-configurable and handled in on_key.
APP_BINDINGS: list[BindingType] = [
    Binding("q", "quit", "Quit", show=False),
    Binding("up", "cursor_up", "Up", show=False),
    Binding("down", "cursor_down", "Down", show=False),
    Binding("alt+up", "prev_group", "Previous group", show=False),
    Binding("alt+down", "next_group", "Next group", show=False),
    Binding("ctrl+up", "cursor_first", "First", show=False),
    Binding("home", "cursor_first", "First", show=False),
    Binding("ctrl+down", "cursor_last", "Last", show=False),
    Binding("end", "cursor_last", "Last", show=False),
    Binding("space", "toggle_check", "Check", show=False),
    Binding("shift+space", "toggle_group", "Check group", show=False),
    Binding("enter", "integrate", "Integrate", show=False),
    Binding("slash", "show_query", "Search", show=False),
    Binding("escape", "escape", "Cancel", show=False),
    Binding("e", "search_similar", "Similar", show=False),
    Binding("E", "expand_source", "Expand source", show=False),
    Binding("S", "snooze_all", "Snooze all", show=False),
    Binding("X", "archive_all", "Archive all", show=False),
    Binding("r", "reload", "Reload", show=False),
]

__all__ = [
    "APP_BINDINGS",
    "APP_CSS",
]
