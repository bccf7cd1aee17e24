"""Theme-derived colors and the code-block background palette.

A Textual theme is the single input: foreground/heading colors for the ANSI
markdown theme, and the named backgrounds a user can pick for code blocks
("toolPendingBg", "selectedBg", ...).

// [LAW:single-enforcer] All color normalization goes through _normalize_color().
// [LAW:one-source-of-truth] BG_KEYS lists every selectable background key.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from textual.color import Color, ColorParseError
from textual.theme import BUILTIN_THEMES, Theme

from render_md.colors import bg_truecolor

DEFAULT_THEME_NAME = "textual-dark"

# Order matters: it is the order the settings panel cycles through.
BG_KEYS: tuple[str, ...] = ("toolPendingBg", "selectedBg", "customMessageBg", "userMessageBg")


def _normalize_color(color: str | None, fallback: str) -> str:
    """Normalize a theme color to #RRGGBB hex.

    Textual's ANSI themes use names like "ansi_green"; "ansi_default" means
    the terminal's own color and is unknowable, so it takes the fallback.
    """
    if color is None or color == "ansi_default":
        return fallback
    if color.startswith("#") and len(color) == 7:
        return color.upper()
    try:
        r, g, b = Color.parse(color).rgb
    except ColorParseError:
        return fallback
    return "#{:02X}{:02X}{:02X}".format(r, g, b)


def _blend(base: str, toward: str, factor: float) -> str:
    return Color.parse(base).blend(Color.parse(toward), factor).hex.upper()[:7]


@dataclass(frozen=True)
class ThemeColors:
    """Colors the markdown renderer needs, derived from a Textual Theme."""

    name: str
    primary: str
    secondary: str
    accent: str
    foreground: str
    background: str
    surface: str
    panel: str
    dark: bool
    # Pygments style for fenced code.
    code_theme: str
    backgrounds: dict[str, str] = field(default_factory=dict)


def build_theme_colors(textual_theme: Theme) -> ThemeColors:
    """Map a Textual Theme to ThemeColors.

    When background/foreground/surface are all unknowable (ANSI themes), dark
    mode is assumed for the fallbacks.
    """
    dark = textual_theme.dark
    assume_dark = dark or all(
        getattr(textual_theme, attr) in (None, "ansi_default")
        for attr in ("background", "foreground", "surface")
    )

    primary = _normalize_color(textual_theme.primary, "#0178D4")
    secondary = _normalize_color(textual_theme.secondary, primary)
    accent = _normalize_color(textual_theme.accent, primary)
    foreground = _normalize_color(textual_theme.foreground, "#E0E0E0" if assume_dark else "#1E1E1E")
    background = _normalize_color(textual_theme.background, "#1E1E1E" if assume_dark else "#E0E0E0")
    surface = _normalize_color(textual_theme.surface, "#2B2B2B" if assume_dark else "#D0D0D0")
    panel = _normalize_color(textual_theme.panel, _blend(surface, foreground, 0.08))

    backgrounds = {
        "toolPendingBg": surface,
        "selectedBg": panel,
        "customMessageBg": _blend(background, secondary, 0.18),
        "userMessageBg": _blend(background, primary, 0.18),
    }

    return ThemeColors(
        name=textual_theme.name,
        primary=primary,
        secondary=secondary,
        accent=accent,
        foreground=foreground,
        background=background,
        surface=surface,
        panel=panel,
        dark=dark,
        code_theme="github-dark" if dark else "friendly",
        backgrounds=backgrounds,
    )


class BackgroundPalette:
    """Resolves background keys to raw SGR background introducers."""

    def __init__(self, colors: ThemeColors):
        self.colors = colors

    @property
    def theme_name(self) -> str:
        return self.colors.name

    def keys(self) -> tuple[str, ...]:
        return tuple(k for k in BG_KEYS if k in self.colors.backgrounds)

    def get_bg_ansi(self, key: str) -> str:
        """Raw ``ESC[48;2;R;G;Bm`` for *key*. Raises KeyError for unknown keys."""
        hex_color = self.colors.backgrounds[key]
        r, g, b = Color.parse(hex_color).rgb
        return bg_truecolor(r, g, b)


def theme_by_name(name: str | None) -> Theme:
    """Built-in Textual theme by name, falling back to the default theme."""
    return BUILTIN_THEMES.get(name or DEFAULT_THEME_NAME, BUILTIN_THEMES[DEFAULT_THEME_NAME])


def palette_for_theme(name: str | None) -> BackgroundPalette:
    return BackgroundPalette(build_theme_colors(theme_by_name(name)))
