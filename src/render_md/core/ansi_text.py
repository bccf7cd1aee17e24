"""ANSI-aware text measuring, wrapping, and segment encoding.

Measuring uses Rich's cell widths so wide glyphs (‹ › │ ─) count correctly.
Lines that already fit are returned untouched: re-encoding through Rich
normalizes escape sequences, and callers rely on byte-exact output for
short lines such as code and fence rows.
"""

from __future__ import annotations

import io
import re

from rich.cells import cell_len
from rich.color import ColorSystem
from rich.console import Console
from rich.style import Style
from rich.text import Text

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*m")

# Shared offscreen console used only for wrapping and segment rendering.
_CONSOLE = Console(
    file=io.StringIO(),
    width=512,
    color_system="truecolor",
    force_terminal=True,
    legacy_windows=False,
)


def strip_ansi(text: str) -> str:
    return _ANSI_RE.sub("", text)


def visible_width(text: str) -> int:
    """Terminal cell width of *text*, ignoring SGR escape sequences."""
    return cell_len(strip_ansi(text))


def text_to_ansi(text: Text, *, drop_background: bool = False) -> str:
    """Encode a Rich Text (single line) as an SGR-styled string.

    drop_background strips every segment's bgcolor so an outer background
    (code blocks) shows through.
    """
    parts: list[str] = []
    for segment in text.render(_CONSOLE):
        style = segment.style
        if style and drop_background and style.bgcolor is not None:
            style = Style(
                color=style.color,
                bold=style.bold,
                dim=style.dim,
                italic=style.italic,
                underline=style.underline,
                strike=style.strike,
            )
        if style:
            parts.append(style.render(segment.text, color_system=ColorSystem.TRUECOLOR))
        else:
            parts.append(segment.text)
    return "".join(parts)


def wrap_ansi(line: str, width: int) -> list[str]:
    """Wrap one styled line to *width* cells.

    Styles are carried across the break points.
    """
    if width <= 0 or visible_width(line) <= width:
        return [line]
    wrapped = Text.from_ansi(line).wrap(_CONSOLE, width)
    return [text_to_ansi(part) for part in wrapped] or [""]


def pad_line(line: str, width: int, left: str = "") -> str:
    """Prefix *left* and right-pad with spaces to *width* visible cells."""
    padded = left + line
    gap = width - visible_width(padded)
    if gap > 0:
        padded += " " * gap
    return padded
