"""List items rendered with the full block renderer.

The base list-item renderer only understands text, paragraphs, nested lists
and code; a table or blockquote inside a list item comes out as raw
markdown. Here every other block kind goes through ``render_token`` at a
width narrowed by the list's continuation indent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from render_md.core.tokens import BlockToken

if TYPE_CHECKING:
    from render_md.core.markdown import Markdown

MIN_BLOCK_WIDTH = 20


def list_block_width(content_width: int, parent_depth: int) -> int:
    """Width left for nested blocks after render_list()'s continuation indent."""
    continuation = 2 * parent_depth + 2
    return max(MIN_BLOCK_WIDTH, content_width - continuation)


def render_list_item_blocks(
    renderer: Markdown,
    tokens: list[BlockToken],
    parent_depth: int,
    content_width: int,
) -> list[str]:
    block_width = list_block_width(content_width, parent_depth)
    lines: list[str] = []

    for i, token in enumerate(tokens):
        next_type = tokens[i + 1].type if i + 1 < len(tokens) else None
        kind = token.type

        if kind == "list":
            lines.extend(renderer.render_list(token, parent_depth + 1))
        elif kind == "text":
            lines.append(renderer.render_inline_tokens(token.children) if token.children else token.text)
        elif kind == "paragraph":
            lines.append(renderer.render_inline_tokens(token.children))
        else:
            lines.extend(renderer.render_token(token, block_width, next_type))

    return lines
