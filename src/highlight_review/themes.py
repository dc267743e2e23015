"""Color palette and the Textual theme that exposes it as ``$th-*`` CSS variables."""

from __future__ import annotations

from textual.theme import Theme as TextualTheme

THEME_NAME = "highlight-review"

# Nord-inspired palette
THEME_COLORS: dict[str, str] = {
    "background": "#2e3440",
    "panel": "#272c36",
    "panel_alt": "#3b4252",
    "text": "#eceff4",
    "muted": "#7b8394",
    "accent": "#88c0d0",
    "accent_alt": "#ebcb8b",
    "green": "#a3be8c",
    "orange": "#d08770",
    "red": "#bf616a",
    "highlight": "#434c5e",
    "highlight_focus": "#4c566a",
    "scrollbar_background": "#3b4252",
    "scrollbar": "#616e88",
    "scrollbar_active": "#88c0d0",
    "scrollbar_hover": "#81a1c1",
}


def build_textual_theme(colors: dict[str, str], name: str = THEME_NAME) -> TextualTheme:
    """Convert the palette to a Textual Theme with ``$th-*`` variables."""
    variables = {
        "th-background": colors["background"],
        "th-panel": colors["panel"],
        "th-panel-alt": colors["panel_alt"],
        "th-highlight": colors["highlight"],
        "th-highlight-focus": colors["highlight_focus"],
        "th-accent": colors["accent"],
        "th-accent-alt": colors["accent_alt"],
        "th-muted": colors["muted"],
        "th-text": colors["text"],
        "th-green": colors["green"],
        "th-orange": colors["orange"],
        "th-red": colors["red"],
        "th-scrollbar-bg": colors["scrollbar_background"],
        "th-scrollbar-thumb": colors["scrollbar"],
        "th-scrollbar-active": colors["scrollbar_active"],
        "th-scrollbar-hover": colors["scrollbar_hover"],
    }
    return TextualTheme(
        name=name,
        primary=colors["accent"],
        secondary=colors["accent_alt"],
        accent=colors["green"],
        foreground=colors["text"],
        background=colors["background"],
        surface=colors["panel"],
        panel=colors["panel_alt"],
        warning=colors["orange"],
        error=colors["red"],
        success=colors["green"],
        dark=True,
        variables=variables,
    )


TEXTUAL_THEME = build_textual_theme(THEME_COLORS)

__all__ = ["TEXTUAL_THEME", "THEME_COLORS", "THEME_NAME", "build_textual_theme"]
