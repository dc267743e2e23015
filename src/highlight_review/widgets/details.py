"""Detail pane: full text of the checked highlights, then the focused one."""

from __future__ import annotations

from datetime import datetime

from rich.markup import escape as escape_markup
from textual.widgets import Static

from highlight_review.models import HighlightItem, SessionSnapshot, source_key
from highlight_review.themes import THEME_COLORS


def format_highlight_date(value: str | None) -> str:
    """Render an ISO timestamp as a date; unparseable values pass through."""
    if not value:
        return ""
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        return value


def render_detail_block(item: HighlightItem, *, checked: bool) -> str:
    """Render one highlight with its source header."""
    header = f"[b {THEME_COLORS['accent']}]{escape_markup(source_key(item))}[/]"
    if item.snooze_count > 0:
        header += f" [{THEME_COLORS['orange']}](Snoozed {item.snooze_count}x)[/]"
    date = format_highlight_date(item.highlighted_at)
    if date:
        header += f"  [dim]{date}[/]"
    marker = f"[{THEME_COLORS['green']}]checked[/]\n" if checked else ""
    return f"{marker}{header}\n\n{escape_markup(item.text)}"


def render_details(snapshot: SessionSnapshot) -> str:
    """Checked highlights first, then the focused one if it isn't checked."""
    blocks = [render_detail_block(item, checked=True) for item in snapshot.checked_items]
    focused = snapshot.focused_item
    if focused is not None and focused.id not in snapshot.checked_ids:
        blocks.append(render_detail_block(focused, checked=False))
    if not blocks:
        return "[dim italic]No highlight selected[/]"
    rule = f"\n\n[{THEME_COLORS['muted']}]{'─' * 40}[/]\n\n"
    return rule.join(blocks)


class HighlightDetails(Static):
    """Static widget showing the detail blocks for a snapshot."""

    def show_snapshot(self, snapshot: SessionSnapshot) -> None:
        self.update(render_details(snapshot))


__all__ = ["HighlightDetails", "format_highlight_date", "render_detail_block", "render_details"]
