"""Render options and the lenient parsers that feed them.

// [LAW:one-source-of-truth] DEFAULT_OPTIONS holds every built-in default.
// [LAW:dataflow-not-control-flow] Parsers never raise; bad input yields the fallback value.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass

MAX_INDENT = 8

_LEADING_INT_RE = re.compile(r"^\s*[+-]?\d+")

_TRUE_WORDS = frozenset({"1", "true", "on", "yes", "y"})
_FALSE_WORDS = frozenset({"0", "false", "off", "no", "n"})
_BG_OFF_WORDS = frozenset({"off", "none", "0", "false"})


@dataclass(frozen=True)
class Options:
    """One revision of the rendering configuration."""

    enabled: bool = True
    unwrap_outer_fence: bool = True
    hide_code_fences: bool = True
    show_language_label: bool = False
    strip_heading_prefixes: bool = True
    # Theme background key, e.g. "toolPendingBg". None disables the background.
    code_background_key: str | None = "toolPendingBg"
    # Raw SGR introducer derived from code_background_key (no reset).
    code_background_ansi: str | None = None
    code_indent: str = "    "

    @property
    def indent_spaces(self) -> int:
        return len(self.code_indent)


DEFAULT_OPTIONS = Options()


def to_int(value: object) -> int | None:
    """Leading-integer parse: 3 -> 3, "5px" -> 5, "abc" -> None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if match:
            return int(match.group(0))
    return None


def parse_on_off(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if not isinstance(value, str):
        return default
    word = value.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    return default


def normalize_bg_key(value: object) -> str | None:
    """Background key, or None for empty/off-like values."""
    if not isinstance(value, str):
        return None
    key = value.strip()
    if not key or key.lower() in _BG_OFF_WORDS:
        return None
    return key


def clamp_indent(spaces: int) -> str:
    return " " * max(0, min(MAX_INDENT, spaces))


def parse_indent(value: object, default_spaces: int) -> str:
    n = to_int(value)
    return clamp_indent(default_spaces if n is None else n)


def on_off(value: bool) -> str:
    return "on" if value else "off"
