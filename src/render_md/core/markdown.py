"""Markdown component: renders markdown text to styled terminal lines.

This is the plain renderer, before any of the render-md transforms:

- H3+ headings keep a literal ``###`` prefix,
- code fences are drawn through ``theme.code_block_border``,
- list items only understand nested lists, text, paragraphs, and code;
  any other block inside a list item falls back to its raw source.

Subclasses change behavior by overriding ``render_token`` and
``render_list_item``; every block goes through those two seams.

Output lines are wrapped to the content width and padded to the full
width, so a renderer's lines always have identical visible width.
"""

from __future__ import annotations

import logging
import re

from markdown_it.token import Token

from render_md.core import tokens as md_tokens
from render_md.core.ansi_text import pad_line, visible_width, wrap_ansi
from render_md.core.theme import FENCE_MARKER, MarkdownTheme

logger = logging.getLogger(__name__)

_DEFAULT_CODE_INDENT = "  "
_HTML_TAG_RE = re.compile(r"<[^>]+>")
_MIN_COL_WIDTH = 3


class ListLine(str):
    """A line already indented by render_list(); parent lists pass it through as-is."""


class Markdown:
    """Renders a markdown string to a list of terminal lines."""

    def __init__(
        self,
        text: str = "",
        padding_x: int = 1,
        padding_y: int = 0,
        theme: MarkdownTheme | None = None,
    ):
        self.text = text
        self.padding_x = padding_x
        self.padding_y = padding_y
        self.theme = theme or MarkdownTheme()

        self._cached_text: str | None = None
        self._cached_width: int | None = None
        self._cached_lines: list[str] | None = None

    # ── public API ───────────────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        self.text = text
        self.invalidate()

    def invalidate(self) -> None:
        self._cached_text = None
        self._cached_width = None
        self._cached_lines = None

    def render(self, width: int) -> list[str]:
        if (
            self._cached_lines is not None
            and self._cached_text == self.text
            and self._cached_width == width
        ):
            return self._cached_lines

        lines = self._render_markdown(width)
        self._cached_text = self.text
        self._cached_width = width
        self._cached_lines = lines
        return lines

    def content_width(self, width: int) -> int:
        return max(1, width - self.padding_x * 2)

    # ── whole-document rendering ─────────────────────────────────────────────

    def _render_markdown(self, width: int) -> list[str]:
        if not self.text or not self.text.strip():
            return []

        content_width = self.content_width(width)
        blocks = md_tokens.lex(self.text)
        raw_lines = self.render_blocks(blocks, content_width)

        left = " " * self.padding_x
        blank = " " * width
        result = [blank] * self.padding_y
        for raw_line in raw_lines:
            for part in raw_line.split("\n"):
                for wrapped in wrap_ansi(part, content_width):
                    result.append(pad_line(wrapped, width, left))
        result.extend([blank] * self.padding_y)
        return result

    def render_blocks(self, blocks: list[md_tokens.BlockToken], width: int) -> list[str]:
        lines: list[str] = []
        for i, block in enumerate(blocks):
            next_type = blocks[i + 1].type if i + 1 < len(blocks) else None
            lines.extend(self.render_token(block, width, next_type))
        return lines

    # ── block tokens ─────────────────────────────────────────────────────────

    def render_token(self, token: md_tokens.BlockToken, width: int, next_type: str | None = None) -> list[str]:
        theme = self.theme
        lines: list[str] = []
        kind = token.type

        if kind == "heading":
            text = self.render_inline_tokens(token.children)
            if token.depth == 1:
                lines.append(theme.heading(theme.bold(theme.underline(text))))
            elif token.depth == 2:
                lines.append(theme.heading(theme.bold(text)))
            else:
                prefix = "#" * token.depth + " "
                lines.append(theme.heading(theme.bold(prefix + text)))
            if next_type != "space":
                lines.append("")
            return lines

        if kind == "paragraph":
            lines.append(self.render_inline_tokens(token.children))
            if next_type and next_type not in ("list", "space"):
                lines.append("")
            return lines

        if kind == "code":
            lines.extend(self.render_code_block(token))
            if next_type != "space":
                lines.append("")
            return lines

        if kind == "list":
            return self.render_list(token, 0)

        if kind == "table":
            lines.extend(self.render_table(token, width))
            if next_type != "space":
                lines.append("")
            return lines

        if kind == "blockquote":
            inner = self.render_blocks(list(token.tokens), max(1, width - 2))
            while inner and inner[-1] == "":
                inner.pop()
            border = theme.quote_border("│ ")
            lines.extend(border + theme.quote(theme.italic(line)) for line in inner)
            if next_type != "space":
                lines.append("")
            return lines

        if kind == "hr":
            lines.append(theme.hr("─" * min(width, 80)))
            if next_type != "space":
                lines.append("")
            return lines

        if kind == "space":
            return [""]

        if kind == "text":
            return [self._text_token(token)]

        # html and anything unknown
        return token.raw.split("\n") if token.raw else []

    def render_code_block(self, token: md_tokens.CodeBlock) -> list[str]:
        """Border line, code lines, border line (no trailing blank)."""
        theme = self.theme
        indent = theme.code_block_indent if theme.code_block_indent is not None else _DEFAULT_CODE_INDENT
        lines = [theme.code_block_border(FENCE_MARKER + token.lang)]

        highlighted: list[str] | None = None
        if theme.highlight_code is not None:
            try:
                highlighted = theme.highlight_code(token.body, token.lang or None)
            except Exception:
                logger.debug("highlighter failed for lang=%r; using plain code", token.lang, exc_info=True)
                highlighted = None

        if highlighted is not None:
            lines.extend(indent + line for line in highlighted)
        else:
            lines.extend(indent + theme.code_block(line) for line in token.body.split("\n"))

        lines.append(theme.code_block_border(FENCE_MARKER))
        return lines

    def _text_token(self, token: md_tokens.Text) -> str:
        if token.children:
            return self.render_inline_tokens(token.children)
        return token.text

    # ── lists ────────────────────────────────────────────────────────────────

    def render_list(self, token: md_tokens.ListBlock, depth: int) -> list[str]:
        theme = self.theme
        indent = "  " * depth
        continuation = indent + "  "
        lines: list[str] = []

        for idx, item in enumerate(token.items):
            bullet = f"{token.start + idx}. " if token.ordered else "- "
            item_lines = self.render_list_item(list(item.tokens), depth)

            if not item_lines or isinstance(item_lines[0], ListLine):
                lines.append(ListLine(indent + theme.list_bullet(bullet)))
                rest = item_lines
            else:
                lines.append(ListLine(indent + theme.list_bullet(bullet) + item_lines[0]))
                rest = item_lines[1:]

            for line in rest:
                if isinstance(line, ListLine):
                    lines.append(line)
                elif line == "":
                    lines.append(ListLine(""))
                else:
                    lines.append(ListLine(continuation + line))

        return lines

    def render_list_item(self, tokens: list[md_tokens.BlockToken], parent_depth: int) -> list[str]:
        """Inline-only list item body; unsupported blocks fall back to raw source."""
        lines: list[str] = []
        for token in tokens:
            kind = token.type
            if kind == "list":
                lines.extend(self.render_list(token, parent_depth + 1))
            elif kind == "text":
                lines.append(self._text_token(token))
            elif kind == "paragraph":
                lines.append(self.render_inline_tokens(token.children))
            elif kind == "code":
                lines.extend(self.render_code_block(token))
            elif kind == "space":
                continue
            elif token.raw:
                lines.extend(token.raw.split("\n"))
        return lines

    # ── tables ───────────────────────────────────────────────────────────────

    def render_table(self, token: md_tokens.Table, width: int) -> list[str]:
        """GFM table with box-drawing borders, wrapped to *width*."""
        if not token.header:
            return []

        theme = self.theme
        header = [self._cell_text(cell) for cell in token.header]
        rows = [[self._cell_text(cell) for cell in row] for row in token.rows]
        col_widths = _column_widths(header, rows, width)

        lines = [_border_line("┌", "┬", "┐", col_widths)]
        lines.extend(_table_row([theme.bold(h) for h in header], col_widths, token.aligns))
        lines.append(_border_line("├", "┼", "┤", col_widths))
        for row in rows:
            lines.extend(_table_row(row, col_widths, token.aligns))
        lines.append(_border_line("└", "┴", "┘", col_widths))
        return lines

    def _cell_text(self, cell: md_tokens.TableCell) -> str:
        if cell.children:
            return self.render_inline_tokens(cell.children)
        return cell.text

    # ── inline tokens ────────────────────────────────────────────────────────

    def render_inline_tokens(self, children: tuple[Token, ...] | list[Token]) -> str:
        theme = self.theme
        parts: list[str] = []
        bold = italic = strike = False
        link_href: str | None = None
        link_text: list[str] = []

        def styled(text: str) -> str:
            if strike:
                text = theme.strikethrough(text)
            if italic:
                text = theme.italic(text)
            if bold:
                text = theme.bold(text)
            if link_href is not None:
                link_text.append(text)
                text = theme.link(text)
            return text

        for child in children:
            ct = child.type
            if ct == "text":
                if child.content:
                    parts.append(styled(child.content))
            elif ct == "softbreak":
                parts.append(" ")
            elif ct == "hardbreak":
                parts.append("\n")
            elif ct == "strong_open":
                bold = True
            elif ct == "strong_close":
                bold = False
            elif ct == "em_open":
                italic = True
            elif ct == "em_close":
                italic = False
            elif ct == "s_open":
                strike = True
            elif ct == "s_close":
                strike = False
            elif ct == "code_inline":
                parts.append(theme.code(child.content))
            elif ct == "link_open":
                href = child.attrGet("href")
                link_href = str(href) if href else ""
                link_text = []
            elif ct == "link_close":
                shown = "".join(link_text)
                if link_href and link_href not in shown:
                    parts.append(theme.link_url(f" ({link_href})"))
                link_href = None
            elif ct == "image":
                alt = child.content or "image"
                parts.append(styled(f"[{alt}]"))
            elif ct == "html_inline":
                stripped = _HTML_TAG_RE.sub("", child.content)
                if stripped:
                    parts.append(styled(stripped))
            elif child.content:
                parts.append(styled(child.content))

        return "".join(parts)


# ── table helpers ────────────────────────────────────────────────────────────


def _column_widths(header: list[str], rows: list[list[str]], available: int) -> list[int]:
    num_cols = len(header)
    natural: list[int] = []
    for col in range(num_cols):
        widest = visible_width(header[col])
        for row in rows:
            if col < len(row):
                widest = max(widest, visible_width(row[col]))
        natural.append(max(widest, _MIN_COL_WIDTH))

    # "│ x │ y │": one border per column plus one, two padding cells per column.
    overhead = (num_cols + 1) + num_cols * 2
    budget = max(num_cols * _MIN_COL_WIDTH, available - overhead)
    total = sum(natural)
    if total <= budget:
        return natural

    widths = [max(_MIN_COL_WIDTH, w * budget // total) for w in natural]
    remaining = budget - sum(widths)
    for col in range(min(max(0, remaining), num_cols)):
        widths[col] += 1
    return widths


def _border_line(left: str, mid: str, right: str, col_widths: list[int]) -> str:
    return left + mid.join("─" * (w + 2) for w in col_widths) + right


def _align_cell(text: str, width: int, align: str | None) -> str:
    gap = max(0, width - visible_width(text))
    if align == "right":
        return " " * gap + text
    if align == "center":
        left = gap // 2
        return " " * left + text + " " * (gap - left)
    return text + " " * gap


def _table_row(cells: list[str], col_widths: list[int], aligns: tuple[str | None, ...]) -> list[str]:
    wrapped: list[list[str]] = []
    for col, width in enumerate(col_widths):
        text = cells[col] if col < len(cells) else ""
        wrapped.append(wrap_ansi(text, width) or [""])

    height = max(len(cell_lines) for cell_lines in wrapped)
    out: list[str] = []
    for line_idx in range(height):
        parts = []
        for col, width in enumerate(col_widths):
            cell_lines = wrapped[col]
            text = cell_lines[line_idx] if line_idx < len(cell_lines) else ""
            align = aligns[col] if col < len(aligns) else None
            parts.append(" " + _align_cell(text, width, align) + " ")
        out.append("│" + "│".join(parts) + "│")
    return out
