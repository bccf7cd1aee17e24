"""Block token tree built from markdown-it-py's flat token stream.

markdown-it-py emits open/close pairs (``bullet_list_open`` ...
``bullet_list_close``); the renderers want nested blocks with a ``type``
tag, plus explicit ``space`` tokens wherever blank source lines separate two
blocks, so a renderer can tell "heading followed by a blank line" apart from
"heading immediately followed by text".

Inline content stays as markdown-it ``Token`` children and is read-only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from markdown_it import MarkdownIt
from markdown_it.token import Token

# commonmark + GFM tables and strikethrough (no linkify dependency).
_PARSER = MarkdownIt("commonmark").enable(["table", "strikethrough"])


class BlockToken:
    """Marker base for block tokens. ``type`` mirrors the tag names renderers switch on."""

    type: ClassVar[str] = ""
    raw: str


@dataclass(frozen=True)
class Heading(BlockToken):
    type: ClassVar[str] = "heading"
    depth: int
    children: tuple[Token, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class Paragraph(BlockToken):
    type: ClassVar[str] = "paragraph"
    children: tuple[Token, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class Text(BlockToken):
    """Bare text inside a tight list item. ``children`` may be empty."""

    type: ClassVar[str] = "text"
    text: str = ""
    children: tuple[Token, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class ListItem(BlockToken):
    type: ClassVar[str] = "list_item"
    tokens: tuple[BlockToken, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class ListBlock(BlockToken):
    type: ClassVar[str] = "list"
    items: tuple[ListItem, ...] = ()
    ordered: bool = False
    start: int = 1
    raw: str = ""


@dataclass(frozen=True)
class CodeBlock(BlockToken):
    type: ClassVar[str] = "code"
    lang: str = ""
    body: str = ""
    raw: str = ""


@dataclass(frozen=True)
class TableCell:
    children: tuple[Token, ...] = ()
    text: str = ""


@dataclass(frozen=True)
class Table(BlockToken):
    type: ClassVar[str] = "table"
    header: tuple[TableCell, ...] = ()
    rows: tuple[tuple[TableCell, ...], ...] = ()
    aligns: tuple[str | None, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class Blockquote(BlockToken):
    type: ClassVar[str] = "blockquote"
    tokens: tuple[BlockToken, ...] = ()
    raw: str = ""


@dataclass(frozen=True)
class ThematicBreak(BlockToken):
    type: ClassVar[str] = "hr"
    raw: str = ""


@dataclass(frozen=True)
class Space(BlockToken):
    type: ClassVar[str] = "space"
    raw: str = ""


@dataclass(frozen=True)
class Html(BlockToken):
    type: ClassVar[str] = "html"
    raw: str = ""


# ─── Lexing ──────────────────────────────────────────────────────────────────


def lex(text: str) -> list[BlockToken]:
    """Tokenize *text* into a list of top-level block tokens."""
    source_lines = text.split("\n")
    flat = _PARSER.parse(text)
    return _build_blocks(flat, 0, len(flat), source_lines, with_spaces=True)


def _raw_of(tok: Token, source_lines: list[str]) -> str:
    if not tok.map:
        return tok.content
    start, end = tok.map
    return "\n".join(source_lines[start:end])


def _find_close(flat: list[Token], open_idx: int) -> int:
    """Index of the close token paired with ``flat[open_idx]`` (same level)."""
    opener = flat[open_idx]
    close_type = opener.type[: -len("_open")] + "_close"
    for j in range(open_idx + 1, len(flat)):
        tok = flat[j]
        if tok.type == close_type and tok.level == opener.level:
            return j
    return len(flat) - 1


def _inline_children(tok: Token | None) -> tuple[Token, ...]:
    if tok is None or tok.type != "inline" or not tok.children:
        return ()
    return tuple(tok.children)


def _build_blocks(
    flat: list[Token],
    start: int,
    end: int,
    source_lines: list[str],
    *,
    with_spaces: bool,
) -> list[BlockToken]:
    blocks: list[BlockToken] = []
    prev_end: int | None = None
    i = start

    while i < end:
        tok = flat[i]
        block, next_i = _build_one(flat, i, source_lines)
        i = next_i
        if block is None:
            continue

        # [LAW:dataflow-not-control-flow] Blank source gaps become Space tokens.
        if with_spaces and tok.map and prev_end is not None and tok.map[0] > prev_end:
            gap = tok.map[0] - prev_end
            blocks.append(Space(raw="\n" * gap))
        if tok.map:
            prev_end = tok.map[1]
        blocks.append(block)

    return blocks


def _build_one(flat: list[Token], i: int, source_lines: list[str]) -> tuple[BlockToken | None, int]:
    tok = flat[i]
    t = tok.type
    raw = _raw_of(tok, source_lines)

    if t == "heading_open":
        close = _find_close(flat, i)
        inline = flat[i + 1] if i + 1 < close else None
        depth = int(tok.tag[1]) if tok.tag.startswith("h") and tok.tag[1:].isdigit() else 1
        return Heading(depth=depth, children=_inline_children(inline), raw=raw), close + 1

    if t == "paragraph_open":
        close = _find_close(flat, i)
        inline = flat[i + 1] if i + 1 < close else None
        children = _inline_children(inline)
        if tok.hidden:
            # Tight list item content.
            content = inline.content if inline is not None else ""
            return Text(text=content, children=children, raw=raw), close + 1
        return Paragraph(children=children, raw=raw), close + 1

    if t in ("fence", "code_block"):
        body = tok.content[:-1] if tok.content.endswith("\n") else tok.content
        lang = tok.info.strip().split()[0] if t == "fence" and tok.info.strip() else ""
        return CodeBlock(lang=lang, body=body, raw=raw), i + 1

    if t in ("bullet_list_open", "ordered_list_open"):
        close = _find_close(flat, i)
        items = _build_list_items(flat, i + 1, close, source_lines)
        ordered = t == "ordered_list_open"
        start_attr = tok.attrGet("start")
        try:
            start = int(start_attr) if start_attr is not None else 1
        except (TypeError, ValueError):
            start = 1
        return ListBlock(items=tuple(items), ordered=ordered, start=start, raw=raw), close + 1

    if t == "blockquote_open":
        close = _find_close(flat, i)
        inner = _build_blocks(flat, i + 1, close, source_lines, with_spaces=True)
        return Blockquote(tokens=tuple(inner), raw=raw), close + 1

    if t == "hr":
        return ThematicBreak(raw=raw), i + 1

    if t == "table_open":
        close = _find_close(flat, i)
        return _build_table(flat, i + 1, close, raw), close + 1

    if t == "html_block":
        return Html(raw=tok.content.rstrip("\n")), i + 1

    # Closing tokens and anything unrecognized.
    return None, i + 1


def _build_list_items(flat: list[Token], start: int, end: int, source_lines: list[str]) -> list[ListItem]:
    items: list[ListItem] = []
    i = start
    while i < end:
        tok = flat[i]
        if tok.type != "list_item_open":
            i += 1
            continue
        close = _find_close(flat, i)
        inner = _build_blocks(flat, i + 1, close, source_lines, with_spaces=True)
        items.append(ListItem(tokens=tuple(inner), raw=_raw_of(tok, source_lines)))
        i = close + 1
    return items


def _cell_align(tok: Token) -> str | None:
    style = tok.attrGet("style")
    if isinstance(style, str) and style.startswith("text-align:"):
        return style.split(":", 1)[1].strip()
    return None


def _build_table(flat: list[Token], start: int, end: int, raw: str) -> Table:
    header: list[TableCell] = []
    rows: list[tuple[TableCell, ...]] = []
    aligns: list[str | None] = []
    current: list[TableCell] | None = None
    in_head = False

    for i in range(start, end):
        tok = flat[i]
        t = tok.type
        if t == "thead_open":
            in_head = True
        elif t == "thead_close":
            in_head = False
        elif t == "tr_open":
            current = []
        elif t == "tr_close" and current is not None:
            if in_head:
                header.extend(current)
            else:
                rows.append(tuple(current))
            current = None
        elif t in ("th_open", "td_open") and current is not None:
            inline = flat[i + 1] if i + 1 < end else None
            text = inline.content if inline is not None and inline.type == "inline" else ""
            current.append(TableCell(children=_inline_children(inline), text=text))
            if in_head:
                aligns.append(_cell_align(tok))

    return Table(header=tuple(header), rows=tuple(rows), aligns=tuple(aligns), raw=raw)
