"""Markdown theme: the text -> text style functions the renderer calls.

A theme is a plain value. The pipeline never mutates one in place; wrapped
variants are new instances built with dataclasses.replace().
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable

from rich.color import ColorSystem
from rich.style import Style
from rich.syntax import Syntax

from render_md.core.ansi_text import text_to_ansi
from render_md.palette import ThemeColors

StyleFn = Callable[[str], str]
HighlightFn = Callable[[str, str | None], list[str]]

FENCE_MARKER = "```"


def _identity(text: str) -> str:
    return text


@dataclass(frozen=True)
class MarkdownTheme:
    heading: StyleFn = _identity
    link: StyleFn = _identity
    link_url: StyleFn = _identity
    code: StyleFn = _identity
    code_block: StyleFn = _identity
    code_block_border: StyleFn = _identity
    quote: StyleFn = _identity
    quote_border: StyleFn = _identity
    hr: StyleFn = _identity
    list_bullet: StyleFn = _identity
    bold: StyleFn = _identity
    italic: StyleFn = _identity
    strikethrough: StyleFn = _identity
    underline: StyleFn = _identity
    # Optional capability: None means "no syntax highlighting".
    highlight_code: HighlightFn | None = None
    # None means the renderer's default two-space indent.
    code_block_indent: str | None = None


def _styler(spec: str) -> StyleFn:
    style = Style.parse(spec)

    def apply(text: str) -> str:
        return style.render(text, color_system=ColorSystem.TRUECOLOR)

    return apply


def make_highlighter(code_theme: str) -> HighlightFn:
    """Syntax highlighter returning one SGR-styled string per source line.

    Token backgrounds are dropped so a code-block background can show through.
    """

    def highlight(code: str, lang: str | None = None) -> list[str]:
        source_lines = code.split("\n")
        syntax = Syntax(code, lang or "text", theme=code_theme)
        text = syntax.highlight(code)
        lines = [text_to_ansi(line, drop_background=True) for line in text.split("\n", allow_blank=True)]
        # highlight() may keep a trailing newline; the line count follows the source.
        lines = lines[: len(source_lines)]
        while len(lines) < len(source_lines):
            lines.append("")
        return lines

    return highlight


def build_ansi_theme(colors: ThemeColors) -> MarkdownTheme:
    """ANSI theme from theme colors (same roles as a Rich markdown theme)."""
    fg = colors.foreground
    return MarkdownTheme(
        heading=_styler(colors.primary),
        link=_styler(f"underline {colors.primary}"),
        link_url=_styler(f"dim underline {colors.primary}"),
        code=_styler(f"{colors.accent} on {colors.surface}"),
        code_block=_styler(fg),
        code_block_border=_styler(f"dim {fg}"),
        quote=_styler(f"italic {fg}"),
        quote_border=_styler(f"dim {fg}"),
        hr=_styler(f"dim {fg}"),
        list_bullet=_styler(colors.secondary),
        bold=_styler("bold"),
        italic=_styler("italic"),
        strikethrough=_styler("strike"),
        underline=_styler("underline"),
        highlight_code=make_highlighter(colors.code_theme),
    )


def _plain_highlight(code: str, lang: str | None = None) -> list[str]:
    return code.split("\n")


def build_plain_theme(*, hide_code_fences: bool = True) -> MarkdownTheme:
    """Theme with no escape sequences at all (pipes, files, dumb terminals)."""

    def border(text: str) -> str:
        return "" if hide_code_fences and text.startswith(FENCE_MARKER) else text

    return MarkdownTheme(code_block_border=border, highlight_code=_plain_highlight)


def hide_fences(theme: MarkdownTheme) -> MarkdownTheme:
    """Variant of *theme* whose fence borders render as empty strings."""
    base_border = theme.code_block_border

    def border(text: str) -> str:
        return "" if text.startswith(FENCE_MARKER) else base_border(text)

    return replace(theme, code_block_border=border)
