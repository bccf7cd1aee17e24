"""Code-block presentation on top of a base theme.

Wraps four theme slots (``code_block``, ``code_block_border``,
``highlight_code``, ``code_block_indent``) to add:

- background injection that survives a highlighter's own ANSI resets,
- fence hiding (the ```lang and ``` rows collapse to nothing, or to a
  background-colored spacer row),
- an optional ``‹lang›`` label in place of the opening fence.

Wrappers are always built from a captured ThemeOriginals snapshot, never
from a theme that may already be wrapped, so re-wrapping once per
configuration revision cannot stack wrappers.

// [LAW:single-enforcer] apply_background() is the only place backgrounds are injected.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from render_md.colors import BG_RESET, FULL_RESET
from render_md.core.options import Options
from render_md.core.theme import FENCE_MARKER, HighlightFn, MarkdownTheme, StyleFn


@dataclass(frozen=True)
class ThemeOriginals:
    """The four base-theme slots, as they were before any wrapping."""

    code_block: StyleFn
    code_block_border: StyleFn
    highlight_code: HighlightFn | None
    code_block_indent: str | None

    @classmethod
    def capture(cls, theme: MarkdownTheme) -> ThemeOriginals:
        return cls(
            code_block=theme.code_block,
            code_block_border=theme.code_block_border,
            highlight_code=theme.highlight_code,
            code_block_indent=theme.code_block_indent,
        )


def apply_background(text: str, bg: str | None) -> str:
    """Prefix *text* with *bg* and re-apply it after every full or background reset."""
    if not bg:
        return text
    stable = text.replace(FULL_RESET, FULL_RESET + bg).replace(BG_RESET, bg)
    return bg + stable


def wrapped_indent(options: Options) -> str:
    """Configured code indent; carries the background when one is active."""
    indent = options.code_indent
    if options.code_background_ansi and indent:
        return options.code_background_ansi + indent
    return indent


def wrap_theme(base: MarkdownTheme, originals: ThemeOriginals, options: Options) -> MarkdownTheme:
    """New theme = *base* with the code-block slots rebuilt from *originals*."""
    bg = options.code_background_ansi
    indent = wrapped_indent(options)
    # Collapsed fence rows: a bare background spacer, or nothing.
    collapsed = bg or ""

    original_code_block = originals.code_block
    original_border = originals.code_block_border
    original_highlight = originals.highlight_code

    def code_block(text: str) -> str:
        return apply_background(original_code_block(text), bg)

    def highlighted(code: str, lang: str | None = None) -> list[str]:
        return [apply_background(line, bg) for line in original_highlight(code, lang)]

    highlight_code: HighlightFn | None = highlighted if original_highlight is not None else None

    def code_block_border(text: str) -> str:
        if not options.hide_code_fences or not text.startswith(FENCE_MARKER):
            return apply_background(original_border(text), bg)

        lang = text[len(FENCE_MARKER):].strip()
        if not lang or not options.show_language_label:
            return collapsed
        return apply_background(indent + original_border(f"‹{lang}›"), bg)

    return replace(
        base,
        code_block=code_block,
        code_block_border=code_block_border,
        highlight_code=highlight_code,
        code_block_indent=indent,
    )
