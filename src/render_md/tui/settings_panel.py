"""Settings panel: docked side panel for live render-md edits.

Every change commits immediately: the panel posts ``Changed`` and the app
routes it through ConfigService.edit(). The panel only holds editing state.

// [LAW:one-source-of-truth] SETTINGS_FIELDS defines all editable settings.
// [LAW:one-type-per-behavior] FieldDef/FieldState unions, one type per behavior,
//   instances differ by config, not by duplicated types.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.text import Text
from textual.message import Message
from textual.widgets import Static

from render_md.app.config import indent_choices
from render_md.core.options import Options, on_off
from render_md.palette import BG_KEYS


# ─── Field definitions (frozen, describe what a field is) ─────────────────────


@dataclass(frozen=True)
class BoolFieldDef:
    key: str
    label: str
    description: str

    def make_state(self, value: object) -> BoolFieldState:
        return BoolFieldState(key=self.key, value=bool(value))


@dataclass(frozen=True)
class SelectFieldDef:
    key: str
    label: str
    description: str
    options: tuple[str, ...]  # ordered choices

    def make_state(self, value: object) -> SelectFieldState:
        s = str(value)
        idx = self.options.index(s) if s in self.options else 0
        return SelectFieldState(key=self.key, options=self.options, selected=idx)


# ─── Field editing state (mutable, handles input) ────────────────────────────


@dataclass
class BoolFieldState:
    key: str
    value: bool

    def handle_key(self, key: str) -> bool:
        """Space/left/right toggle. Returns True when the value changed."""
        if key in ("space", "left", "right", "enter"):
            self.value = not self.value
            return True
        return False

    @property
    def display(self) -> str:
        return on_off(self.value)

    @property
    def save_value(self) -> str:
        return on_off(self.value)


@dataclass
class SelectFieldState:
    key: str
    options: tuple[str, ...]
    selected: int

    def handle_key(self, key: str) -> bool:
        """Left/right or space cycles through options."""
        if key in ("space", "right", "enter"):
            self.selected = (self.selected + 1) % len(self.options)
            return True
        if key == "left":
            self.selected = (self.selected - 1) % len(self.options)
            return True
        return False

    @property
    def display(self) -> str:
        return self.options[self.selected]

    @property
    def save_value(self) -> str:
        return self.options[self.selected]


FieldDef = BoolFieldDef | SelectFieldDef
FieldState = BoolFieldState | SelectFieldState


# ─── Field registry ──────────────────────────────────────────────────────────
# [LAW:one-source-of-truth] Adding a new setting = adding an entry here.

SETTINGS_FIELDS: list[FieldDef] = [
    BoolFieldDef(
        key="unfence",
        label="Unwrap outer ```markdown fence",
        description="Render a whole message wrapped in ```markdown as markdown",
    ),
    BoolFieldDef(
        key="hide-fences",
        label="Hide code fences",
        description="Drop the ``` rows around code blocks",
    ),
    BoolFieldDef(
        key="label",
        label="Code label (‹lang›)",
        description="Show the language in place of a hidden opening fence",
    ),
    BoolFieldDef(
        key="headings",
        label="Hide heading prefixes",
        description="Indent H3+ headings instead of printing ###",
    ),
    SelectFieldDef(
        key="bg",
        label="Code background",
        description="Theme background used behind code blocks",
        options=BG_KEYS + ("off",),
    ),
    SelectFieldDef(
        key="indent",
        label="Code indent",
        description="Spaces before each code line",
        options=tuple(indent_choices()),
    ),
]


def values_from_options(options: Options) -> dict[str, object]:
    """Current panel values for *options*, keyed by field key."""
    return {
        "unfence": options.unwrap_outer_fence,
        "hide-fences": options.hide_code_fences,
        "label": options.show_language_label,
        "headings": options.strip_heading_prefixes,
        "bg": options.code_background_key or "off",
        "indent": str(options.indent_spaces),
    }


# ─── Panel widget ─────────────────────────────────────────────────────────────


class SettingsPanel(Static):
    """Side panel for editing render-md settings."""

    DEFAULT_CSS = """
    SettingsPanel {
        dock: right;
        width: 40%;
        min-width: 34;
        max-width: 56;
        border-left: solid $accent;
        padding: 1;
        height: 1fr;
        overflow-y: auto;
    }
    """

    can_focus = True

    class Changed(Message):
        """Posted when a field value changes."""

        def __init__(self, key: str, value: str) -> None:
            self.key = key
            self.value = value
            super().__init__()

    class Closed(Message):
        """Posted when the user closes the panel (Escape)."""

    def __init__(self, values: dict[str, object], *, enabled: bool = True):
        super().__init__("")
        self.enabled = enabled
        self.fields: list[FieldState] = [
            field_def.make_state(values.get(field_def.key)) for field_def in SETTINGS_FIELDS
        ]
        self.active_idx = 0

    def on_mount(self) -> None:
        self.update_display()

    def sync(self, values: dict[str, object], *, enabled: bool) -> None:
        """Reload values after a commit made elsewhere (command, clamping)."""
        self.enabled = enabled
        self.fields = [field_def.make_state(values.get(field_def.key)) for field_def in SETTINGS_FIELDS]
        self.update_display()

    def update_display(self) -> None:
        """Re-render with current editing state."""
        text = Text()
        text.append("render-md", style="bold")
        text.append("\n\n")

        text.append("  Enabled: ", style="dim bold")
        text.append(on_off(self.enabled), style="dim")
        text.append("  (startup flag)\n\n", style="dim italic")

        for i, (field_def, state) in enumerate(zip(SETTINGS_FIELDS, self.fields)):
            is_active = i == self.active_idx
            text.append("> " if is_active else "  ")
            text.append(field_def.label, style="bold" if is_active else "dim bold")
            text.append("  ")
            text.append(state.display, style="reverse bold" if is_active else "dim")
            text.append("\n  ")
            text.append(field_def.description, style="dim italic")
            text.append("\n\n")

        text.append("  ")
        text.append("↑↓", style="bold")
        text.append(" move  ", style="dim")
        text.append("Space/←→", style="bold")
        text.append(" change  ", style="dim")
        text.append("Esc", style="bold")
        text.append(" close", style="dim")

        self.update(text)

    def on_key(self, event) -> None:
        key = event.key

        if key == "escape":
            event.stop()
            event.prevent_default()
            self.post_message(self.Closed())
            return

        if key in ("up", "down"):
            event.stop()
            event.prevent_default()
            step = -1 if key == "up" else 1
            self.active_idx = (self.active_idx + step) % len(self.fields)
            self.update_display()
            return

        state = self.fields[self.active_idx]
        if state.handle_key(key):
            event.stop()
            event.prevent_default()
            self.update_display()
            self.post_message(self.Changed(state.key, state.save_value))


def create_settings_panel(values: dict[str, object], *, enabled: bool = True) -> SettingsPanel:
    """Create a new SettingsPanel instance."""
    return SettingsPanel(values, enabled=enabled)
