"""Heading rendering without literal ``#`` markers.

H1 is bold+underlined, H2 bold, and H3+ bold with two spaces of indent per
level past the third, so depth still reads without a hash prefix.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from render_md.core.tokens import Heading

if TYPE_CHECKING:
    from render_md.core.markdown import Markdown


def heading_indent(depth: int) -> str:
    return "  " * max(0, depth - 3)


def render_heading(renderer: Markdown, token: Heading, next_type: str | None) -> list[str]:
    theme = renderer.theme
    text = renderer.render_inline_tokens(token.children)

    if token.depth == 1:
        styled = theme.heading(theme.bold(theme.underline(text)))
    elif token.depth == 2:
        styled = theme.heading(theme.bold(text))
    else:
        styled = theme.heading(theme.bold(heading_indent(token.depth) + text))

    lines = [styled]
    # A following space token already supplies the blank line.
    if next_type != "space":
        lines.append("")
    return lines
