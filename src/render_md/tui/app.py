"""Interactive viewer: one markdown document through the render-md pipeline.

Keys: ``s`` settings panel, ``t``/``T`` cycle theme, ``q`` quit. Every
committed setting redraws the document; the panel commits as you change it.
"""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Footer, Static

import render_md.tui.settings_panel
import render_md.tui.theme_controller
from render_md.app.commands import handle_command
from render_md.app.config import ConfigService
from render_md.colors import RESET
from render_md.core.view import RenderMdMarkdown

logger = logging.getLogger(__name__)


def document_text(lines: list[str]) -> Text:
    """Rendered lines as Rich Text, each line closed with a reset.

    Rich carries an open style across newlines, and code rows leave the
    background introducer open.
    """
    return Text.from_ansi("\n".join(line + RESET for line in lines))


class RenderMdApp(App):
    """TUI viewer for render-md."""

    TITLE = "render-md"

    CSS = """
    #document-scroll {
        height: 1fr;
    }
    #document {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("s", "toggle_settings", "Settings"),
        Binding("t", "next_theme", "Theme"),
        Binding("T", "prev_theme", "Theme", show=False),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self, markdown: str, service: ConfigService, theme_name: str | None = None):
        super().__init__()
        self.service = service
        self.view = RenderMdMarkdown(markdown, config=service)
        self._initial_theme = theme_name
        self._disposers: list = []

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="document-scroll"):
            yield Static("", id="document")
        yield Footer()

    def on_mount(self) -> None:
        if self._initial_theme and self._initial_theme in self.available_themes:
            self.theme = self._initial_theme
        self.service.set_notifier(self._notify_from_service)
        self._disposers.append(self.service.add_redraw_listener(self.redraw))
        render_md.tui.theme_controller.apply_theme(self)
        self.redraw()

    def on_unmount(self) -> None:
        for dispose in self._disposers:
            dispose()
        self._disposers.clear()
        self.service.set_notifier(None)

    def watch_theme(self, theme_name: str) -> None:
        if not self.is_running:
            return
        render_md.tui.theme_controller.apply_theme(self)

    def on_resize(self, event) -> None:
        self.redraw()

    # ── rendering ────────────────────────────────────────────────────────────

    def render_width(self) -> int:
        scroll = self.query_one("#document-scroll", VerticalScroll)
        return max(1, scroll.scrollable_content_region.width or self.size.width)

    def redraw(self) -> None:
        documents = self.query("#document")
        if not documents:
            return
        lines = self.view.render(self.render_width())
        documents.first(Static).update(document_text(lines))
        self._sync_settings_panel()

    # ── notifications / commands ─────────────────────────────────────────────

    def _notify_from_service(self, message: str, severity: str) -> None:
        self.notify(message, severity="warning" if severity == "warning" else "information")

    def run_command(self, args: str) -> None:
        """Run a ``/render-md`` command against the live service."""
        handle_command(
            args,
            self.service,
            self._notify_from_service,
            has_ui=True,
            open_settings=self._open_settings,
        )

    # ── actions ──────────────────────────────────────────────────────────────

    def action_next_theme(self) -> None:
        render_md.tui.theme_controller.cycle_theme(self, 1)

    def action_prev_theme(self) -> None:
        render_md.tui.theme_controller.cycle_theme(self, -1)

    def action_toggle_settings(self) -> None:
        if self.screen.query(render_md.tui.settings_panel.SettingsPanel):
            self._close_settings()
        else:
            self._open_settings()

    # ── settings panel ───────────────────────────────────────────────────────

    def _open_settings(self) -> None:
        options = self.service.options
        panel = render_md.tui.settings_panel.create_settings_panel(
            render_md.tui.settings_panel.values_from_options(options),
            enabled=options.enabled,
        )
        self.screen.mount(panel)
        self.call_after_refresh(panel.focus)

    def _close_settings(self) -> None:
        for panel in self.screen.query(render_md.tui.settings_panel.SettingsPanel):
            panel.remove()
        self.query_one("#document-scroll", VerticalScroll).focus()

    def _sync_settings_panel(self) -> None:
        options = self.service.options
        values = render_md.tui.settings_panel.values_from_options(options)
        for panel in self.screen.query(render_md.tui.settings_panel.SettingsPanel):
            panel.sync(values, enabled=options.enabled)

    def on_settings_panel_changed(self, msg: render_md.tui.settings_panel.SettingsPanel.Changed) -> None:
        """Handle SettingsPanel.Changed: commit one field (listeners persist + redraw)."""
        self.service.edit(msg.key, msg.value)

    def on_settings_panel_closed(self, msg: render_md.tui.settings_panel.SettingsPanel.Closed) -> None:
        self._close_settings()
