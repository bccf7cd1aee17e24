"""The ``/render-md`` command: status and one-field edits.

Usage: /render-md (opens settings UI) | status | label on|off |
hide-fences on|off | bg <key|off> | indent <0..8> | headings on|off |
unfence on|off
"""

from __future__ import annotations

from typing import Callable

from render_md.app.config import ConfigService, Notify
from render_md.core.options import MAX_INDENT, on_off, to_int

# subcommand -> usage hint shown when the value is missing
_USAGE = {
    "label": "Usage: /render-md label on|off",
    "hide-fences": "Usage: /render-md hide-fences on|off",
    "bg": "Usage: /render-md bg off|{keys}",
    "indent": f"Usage: /render-md indent <0..{MAX_INDENT}>",
    "headings": "Usage: /render-md headings on|off",
    "unfence": "Usage: /render-md unfence on|off",
}

_UNKNOWN = "Unknown subcommand. Try: /render-md | status | label | hide-fences | bg | indent | headings | unfence"


def status_line(service: ConfigService) -> str:
    o = service.options
    parts = [
        f"enabled={on_off(o.enabled)}",
        f"unfence={on_off(o.unwrap_outer_fence)}",
        f"hide-fences={on_off(o.hide_code_fences)}",
        f"code-label={on_off(o.show_language_label)}",
        f"heading-prefix={'hide' if o.strip_heading_prefixes else 'show'}",
        f"code-bg={o.code_background_key or 'off'}",
        f"code-indent={o.indent_spaces}",
    ]
    return "render-md: " + " • ".join(parts)


def _confirmation(field: str, service: ConfigService) -> str:
    o = service.options
    # [LAW:dataflow-not-control-flow] Message per field is a table lookup.
    messages = {
        "label": f"render-md: code label {on_off(o.show_language_label)}",
        "hide-fences": f"render-md: hide-fences {on_off(o.hide_code_fences)}",
        "bg": f"render-md: code background {o.code_background_key or 'off'}",
        "indent": f"render-md: code indent = {o.indent_spaces}",
        "headings": f"render-md: hide heading prefixes {on_off(o.strip_heading_prefixes)}",
        "unfence": f"render-md: unwrap outer markdown fence {on_off(o.unwrap_outer_fence)}",
    }
    return messages[field]


def handle_command(
    args: str,
    service: ConfigService,
    notify: Notify,
    *,
    has_ui: bool = True,
    open_settings: Callable[[], None] | None = None,
) -> None:
    """Run one ``/render-md`` invocation. Never raises for bad user input."""
    if not has_ui:
        notify("render-md: TUI settings only available in interactive mode", "info")
        return

    parts = args.split()
    cmd = parts[0] if parts else ""
    value = parts[1] if len(parts) > 1 else None

    if cmd in ("", "ui", "menu"):
        if open_settings is not None:
            open_settings()
        else:
            notify(status_line(service), "info")
        return

    if cmd == "status":
        notify(status_line(service), "info")
        return

    if cmd not in _USAGE:
        notify(_UNKNOWN, "info")
        return

    if value is None:
        keys = "|".join(service.palette.keys()) if service.palette is not None else "<key>"
        notify(_USAGE[cmd].format(keys=keys), "info")
        return

    if cmd == "indent" and to_int(value) is None:
        notify(f"render-md: indent must be a number 0..{MAX_INDENT}", "warning")
        return

    service.edit(cmd, value)
    notify(_confirmation(cmd, service), "info")
