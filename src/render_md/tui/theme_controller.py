"""Theme management for the viewer app.

// [LAW:locality-or-seam] All theme logic here; app.py just delegates.
"""

from __future__ import annotations

import logging

from render_md.core.theme import MarkdownTheme, build_ansi_theme
from render_md.palette import BackgroundPalette, ThemeColors, build_theme_colors

logger = logging.getLogger(__name__)


def cycle_theme(app, direction: int) -> None:
    """Cycle to the next (+1) or previous (-1) theme.

    // [LAW:dataflow-not-control-flow] Always sets app.theme; watch_theme()
    // handles all downstream effects.
    """
    names = sorted(app.available_themes.keys())
    current_index = names.index(app.theme) if app.theme in names else 0
    new_name = names[(current_index + direction) % len(names)]
    app.theme = new_name
    app.notify(f"Theme: {new_name}")


def theme_colors(app) -> ThemeColors:
    return build_theme_colors(app.available_themes[app.theme])


def apply_theme(app) -> tuple[BackgroundPalette, MarkdownTheme]:
    """Re-derive the background palette and markdown theme for app.theme.

    The config service gets the new palette (which bumps its revision) and
    the view gets the new base theme.
    """
    colors = theme_colors(app)
    palette = BackgroundPalette(colors)
    markdown_theme = build_ansi_theme(colors)
    app.view.set_theme(markdown_theme)
    app.service.set_palette(palette)
    logger.debug("theme applied: %s", colors.name)
    return palette, markdown_theme
