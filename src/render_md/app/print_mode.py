"""Non-interactive rendering of assistant markdown to terminal text.

In print mode (no UI, text output) the final assistant message is rendered
once to a string and swapped into the message for display. The original
markdown is remembered by message timestamp and put back before the next
context build, so rendered escape sequences never reach the model.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Iterable

from render_md.core.options import DEFAULT_OPTIONS, Options, to_int
from render_md.core.theme import MarkdownTheme, build_ansi_theme, build_plain_theme, hide_fences
from render_md.core.view import RenderMdMarkdown, StaticOptions
from render_md.palette import ThemeColors

logger = logging.getLogger(__name__)

MIN_PRINT_WIDTH = 20
DEFAULT_PRINT_WIDTH = 80
PRINT_STYLES = ("auto", "ansi", "plain")
SKIPPED_MODES = frozenset({"json", "rpc"})

_TRAILING_HSPACE_RE = re.compile(r"[ \t]+$")


def render_markdown_to_terminal(
    markdown: str,
    width: int,
    theme: MarkdownTheme,
    options: Options | None = None,
) -> str:
    """Render *markdown* through a transient pipeline renderer to one string.

    Fence hiding is forced on, in the theme as well as the options, so it
    holds even when the pipeline is disabled. The code background is cleared;
    trailing horizontal whitespace and trailing blank lines are removed.
    """
    base = options if options is not None else DEFAULT_OPTIONS
    effective = replace(base, hide_code_fences=True, code_background_key=None, code_background_ansi=None)
    view = RenderMdMarkdown(markdown, padding_x=0, padding_y=0, theme=hide_fences(theme), config=StaticOptions(effective))
    lines = [_TRAILING_HSPACE_RE.sub("", line) for line in view.render(width)]
    while lines and lines[-1] == "":
        lines.pop()
    return "\n".join(lines)


def resolve_print_width(flag: object, columns: int | None) -> int:
    """``auto`` or a number; never below MIN_PRINT_WIDTH."""
    override = None
    if flag is not None and str(flag).strip().lower() != "auto":
        override = to_int(flag)
    if override is None:
        override = columns or DEFAULT_PRINT_WIDTH
    return max(MIN_PRINT_WIDTH, override)


def resolve_print_style(flag: object, isatty: bool) -> bool:
    """True for ANSI output. ``auto`` follows whether stdout is a terminal."""
    style = str(flag if flag is not None else "auto").strip().lower()
    if style == "ansi":
        return True
    if style == "plain":
        return False
    return bool(isatty)


def build_print_theme(wants_ansi: bool, colors: ThemeColors) -> MarkdownTheme:
    if wants_ansi:
        return build_ansi_theme(colors)
    return build_plain_theme(hide_code_fences=True)


# ─── Message model ───────────────────────────────────────────────────────────


@dataclass
class ContentBlock:
    """One block of message content (``text`` or ``toolCall``)."""

    type: str
    text: str = ""
    name: str = ""


@dataclass
class Message:
    role: str
    content: list[ContentBlock] = field(default_factory=list)
    timestamp: float = 0.0


def find_last_assistant_message(messages: list[Message]) -> Message | None:
    for msg in reversed(messages):
        if msg.role == "assistant":
            return msg
    return None


def extract_text(msg: Message) -> str:
    return "\n".join(block.text for block in msg.content if block.type == "text")


def has_tool_calls(msg: Message) -> bool:
    return any(block.type == "toolCall" for block in msg.content)


def _set_first_text(msg: Message, text: str) -> bool:
    for block in msg.content:
        if block.type == "text":
            block.text = text
            return True
    return False


@dataclass(frozen=True)
class PrintSettings:
    """Resolved print-mode flags for one process."""

    enabled: bool = True
    mode: str = "text"
    width_flag: object = "auto"
    style_flag: object = "auto"


class PrintModeHook:
    """Swaps rendered text into the final assistant message and restores it later."""

    def __init__(self, settings: PrintSettings, colors: ThemeColors, options: Options | None = None):
        self.settings = settings
        self.colors = colors
        self.options = options
        self.originals: dict[float, str] = {}

    def on_agent_end(
        self,
        messages: list[Message],
        *,
        has_ui: bool,
        columns: int | None,
        isatty: bool,
    ) -> str | None:
        """Render in place. Returns the rendered text, or None when skipped."""
        settings = self.settings
        if has_ui or settings.mode in SKIPPED_MODES or not settings.enabled:
            return None

        assistant = find_last_assistant_message(messages)
        # Tool-call messages stay untouched to keep call/result linkage intact.
        if assistant is None or has_tool_calls(assistant):
            return None

        original = extract_text(assistant)
        if not original.strip():
            return None

        width = resolve_print_width(settings.width_flag, columns)
        theme = build_print_theme(resolve_print_style(settings.style_flag, isatty), self.colors)
        rendered = render_markdown_to_terminal(original, width, theme, self.options)

        self.originals[assistant.timestamp] = original
        if not _set_first_text(assistant, rendered):
            assistant.content.append(ContentBlock(type="text", text=rendered))
        logger.debug("print mode rendered message %s at width %d", assistant.timestamp, width)
        return rendered

    def on_context(self, messages: Iterable[Message]) -> None:
        """Put the original markdown back into every message rendered earlier."""
        if not self.originals:
            return
        for msg in messages:
            if msg.role != "assistant":
                continue
            original = self.originals.get(msg.timestamp)
            if original is None:
                continue
            _set_first_text(msg, original)
