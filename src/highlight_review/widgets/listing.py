"""List rendering helpers and the highlight list widget."""

from __future__ import annotations

from rich.markup import escape as escape_markup
from textual.widgets import OptionList
from textual.widgets.option_list import Option, OptionDoesNotExist

from highlight_review.models import MODE_SEARCH, HighlightItem, SessionSnapshot
from highlight_review.themes import THEME_COLORS

PREVIEW_TEXT_MAX_LEN = 120  # Max highlight text length in list rows

_ICON_SETS: dict[str, dict[str, str]] = {
    "unicode": {
        "checked": "\u25cf",
        "unchecked": "\u25cb",
        "group": "\u25b8",
    },
    "ascii": {
        "checked": "[x]",
        "unchecked": "[ ]",
        "group": ">",
    },
}
_ACTIVE_ICON_SET = _ICON_SETS["unicode"]


def set_ascii_icons(enabled: bool) -> None:
    """Switch list indicators between Unicode and ASCII modes."""
    global _ACTIVE_ICON_SET
    _ACTIVE_ICON_SET = _ICON_SETS["ascii"] if enabled else _ICON_SETS["unicode"]


def truncate_preview(text: str, limit: int = PREVIEW_TEXT_MAX_LEN) -> str:
    """Collapse whitespace and cut at a word boundary."""
    flat = " ".join(text.split())
    if len(flat) <= limit:
        return flat
    return flat[:limit].rsplit(" ", 1)[0] + "..."


def render_group_header(source: str, size: int) -> str:
    return f"{_ACTIVE_ICON_SET['group']} {escape_markup(source)} [dim]({size})[/]"


def render_highlight_option(item: HighlightItem, *, checked: bool = False) -> str:
    """Render one highlight as Rich markup for OptionList display."""
    if checked:
        marker = f"[{THEME_COLORS['green']}]{_ACTIVE_ICON_SET['checked']}[/]"
    else:
        marker = f"[{THEME_COLORS['muted']}]{_ACTIVE_ICON_SET['unchecked']}[/]"
    preview = escape_markup(truncate_preview(item.text)) or "[dim italic]No text[/]"
    line = f"{marker} {preview}"
    if item.snooze_count > 0:
        line += f" [{THEME_COLORS['orange']}]z{item.snooze_count}[/]"
    return line


def build_list_options(snapshot: SessionSnapshot) -> list[Option]:
    """Build OptionList rows: a disabled header per group, then its items."""
    options: list[Option] = []
    for group in snapshot.groups:
        options.append(Option(render_group_header(group.source, group.size), disabled=True))
        for item in snapshot.items[group.start : group.end + 1]:
            options.append(
                Option(
                    render_highlight_option(item, checked=item.id in snapshot.checked_ids),
                    id=item.id,
                )
            )
    return options


def render_status_line(snapshot: SessionSnapshot) -> str:
    """Build the status bar text for the current snapshot."""
    parts = ["[b]SEARCH[/]" if snapshot.mode == MODE_SEARCH else "Review"]
    parts.append(f"{len(snapshot.items)} shown")
    if snapshot.checked_ids:
        parts.append(f"[{THEME_COLORS['green']}]{len(snapshot.checked_ids)} checked[/]")
    if snapshot.is_loading:
        parts.append(f"[{THEME_COLORS['accent']}]loading...[/]")
    elif snapshot.has_reached_end and snapshot.items:
        parts.append("[dim]end of list[/]")
    return " · ".join(parts)


class HighlightList(OptionList, can_focus=False):
    """Non-focusable option list; the app's bindings drive the cursor."""

    def show_snapshot(self, snapshot: SessionSnapshot) -> None:
        """Replace all rows and move the cursor to the focused highlight."""
        self.clear_options()
        self.add_options(build_list_options(snapshot))
        if snapshot.focused_id is None:
            self.highlighted = None
            return
        try:
            self.highlighted = self.get_option_index(snapshot.focused_id)
        except OptionDoesNotExist:
            self.highlighted = None


__all__ = [
    "PREVIEW_TEXT_MAX_LEN",
    "HighlightList",
    "build_list_options",
    "render_group_header",
    "render_highlight_option",
    "render_status_line",
    "set_ascii_icons",
    "truncate_preview",
]
