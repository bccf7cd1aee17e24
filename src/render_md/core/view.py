"""Markdown component with the render-md transforms applied.

One RenderMdMarkdown per displayed message. On every render it compares its
last applied configuration revision with the config source's current one;
when stale it re-runs the outer-fence unwrap (once per content change) and
rebuilds the code-block theme wrappers (once per revision). Rendering the
same content at an unchanged revision does neither.

// [LAW:one-source-of-truth] Options are read from the config source at render time, by value.
// [LAW:locality-or-seam] Per-instance bookkeeping lives in RendererInstanceState only.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import render_md.core.fence
import render_md.core.theme_adapter
from render_md.core.headings import render_heading
from render_md.core.list_items import render_list_item_blocks
from render_md.core.markdown import Markdown
from render_md.core.options import DEFAULT_OPTIONS, Options
from render_md.core.theme import MarkdownTheme
from render_md.core.theme_adapter import ThemeOriginals
from render_md.core.tokens import BlockToken

# Width used by list-item block rendering before the first render() call.
_DEFAULT_CONTENT_WIDTH = 80


class OptionsSource(Protocol):
    @property
    def options(self) -> Options: ...

    @property
    def revision(self) -> int: ...


@dataclass
class StaticOptions:
    """Fixed options at a fixed revision (print mode, tests)."""

    options: Options = DEFAULT_OPTIONS
    revision: int = 0


@dataclass
class RendererInstanceState:
    last_applied_revision: int | None = None
    unwrapped: bool = False
    theme_originals: ThemeOriginals | None = None
    theme_patched: bool = False


class RenderMdMarkdown(Markdown):
    """Markdown component that applies unwrap, fence, heading, and list-item rules."""

    def __init__(
        self,
        text: str = "",
        padding_x: int = 1,
        padding_y: int = 0,
        theme: MarkdownTheme | None = None,
        config: OptionsSource | None = None,
    ):
        super().__init__(text, padding_x, padding_y, theme)
        self.config: OptionsSource = config if config is not None else StaticOptions()
        self.state = RendererInstanceState()
        self._base_theme = self.theme
        self._options = self.config.options
        self._content_width = _DEFAULT_CONTENT_WIDTH

    # ── lifecycle ────────────────────────────────────────────────────────────

    def set_text(self, text: str) -> None:
        options = self.config.options
        if options.enabled and options.unwrap_outer_fence:
            text = render_md.core.fence.unwrap_outer_fence(text)
        # New content: the next render re-evaluates the unwrap.
        self.state.unwrapped = False
        super().set_text(text)

    def set_theme(self, theme: MarkdownTheme) -> None:
        """Swap the base theme (host theme change); wrappers are rebuilt on next render."""
        self._base_theme = theme
        self.theme = theme
        self.state.theme_originals = ThemeOriginals.capture(theme)
        self.state.theme_patched = False
        self.invalidate()

    def render(self, width: int) -> list[str]:
        self._content_width = self.content_width(width)
        self._prepare()
        return super().render(width)

    def _prepare(self) -> None:
        state = self.state
        self._options = options = self.config.options

        revision = self.config.revision
        if state.last_applied_revision != revision:
            state.last_applied_revision = revision
            state.unwrapped = False
            state.theme_patched = False
            self.invalidate()

        if not options.enabled:
            if self.theme is not self._base_theme:
                self.theme = self._base_theme
                self.invalidate()
            return

        if options.unwrap_outer_fence and not state.unwrapped:
            state.unwrapped = True
            unwrapped = render_md.core.fence.unwrap_outer_fence(self.text)
            if unwrapped != self.text:
                self.text = unwrapped
                self.invalidate()

        if state.theme_originals is None:
            state.theme_originals = ThemeOriginals.capture(self._base_theme)

        if state.theme_patched:
            return
        state.theme_patched = True
        self.theme = render_md.core.theme_adapter.wrap_theme(self._base_theme, state.theme_originals, options)
        self.invalidate()

    # ── transformed seams ────────────────────────────────────────────────────

    def render_token(self, token: BlockToken, width: int, next_type: str | None = None) -> list[str]:
        options = self._options
        if token.type == "heading" and options.enabled and options.strip_heading_prefixes:
            return render_heading(self, token, next_type)
        return super().render_token(token, width, next_type)

    def render_list_item(self, tokens: list[BlockToken], parent_depth: int) -> list[str]:
        if not self._options.enabled:
            return super().render_list_item(tokens, parent_depth)
        return render_list_item_blocks(self, tokens, parent_depth, self._content_width)
