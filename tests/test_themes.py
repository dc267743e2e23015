"""Tests for the palette-to-theme mapping."""

from __future__ import annotations

from highlight_review.themes import TEXTUAL_THEME, THEME_COLORS, THEME_NAME


def test_theme_name():
    assert TEXTUAL_THEME.name == THEME_NAME


def test_every_palette_color_reaches_the_theme():
    theme = TEXTUAL_THEME
    used = set(theme.variables.values()) | {
        theme.primary,
        theme.secondary,
        theme.accent,
        theme.foreground,
        theme.background,
        theme.surface,
        theme.panel,
        theme.warning,
        theme.error,
        theme.success,
    }
    assert set(THEME_COLORS.values()) <= used


def test_css_variables_use_th_prefix():
    assert all(name.startswith("th-") for name in TEXTUAL_THEME.variables)
    assert TEXTUAL_THEME.variables["th-red"] == THEME_COLORS["red"]
