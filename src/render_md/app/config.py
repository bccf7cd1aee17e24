"""Configuration layering, background derivation, and the commit path.

Layers, lowest to highest precedence:

1. built-in defaults (``DEFAULT_OPTIONS``),
2. startup flags (only when a flag layer is given),
3. the latest persisted snapshot (only well-typed fields it contains),
4. live edits, one field at a time.

ConfigService is the single owner of the active Options and the revision
counter. Renderers hold a reference to it and read both at render time.

// [LAW:single-enforcer] ConfigService.edit() is the only mutation path after startup.
// [LAW:one-source-of-truth] EDIT_FIELDS names every live-editable field.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, Mapping

from render_md.core.options import (
    DEFAULT_OPTIONS,
    MAX_INDENT,
    Options,
    clamp_indent,
    normalize_bg_key,
    parse_indent,
    parse_on_off,
    to_int,
)
from render_md.palette import BackgroundPalette

logger = logging.getLogger(__name__)

# Live-edit field ids (also the /render-md subcommand names and settings panel keys).
EDIT_FIELDS: tuple[str, ...] = ("unfence", "hide-fences", "label", "headings", "bg", "indent")

# Startup flag names.
FLAG_TUI = "commonmark-tui"
FLAG_NO_TUI = "no-commonmark-tui"
FLAG_UNFENCE = "commonmark-tui-unfence"
FLAG_HIDE_FENCES = "commonmark-tui-hide-fences"
FLAG_CODE_LABEL = "commonmark-tui-code-label"
FLAG_CODE_BG = "commonmark-tui-code-bg"
FLAG_CODE_INDENT = "commonmark-tui-code-indent"
FLAG_STRIP_HEADINGS = "commonmark-tui-strip-heading-prefix"

_BOOL_FIELDS = {
    "unfence": "unwrap_outer_fence",
    "hide-fences": "hide_code_fences",
    "label": "show_language_label",
    "headings": "strip_heading_prefixes",
}

_BOOL_FLAGS = {
    FLAG_UNFENCE: "unwrap_outer_fence",
    FLAG_HIDE_FENCES: "hide_code_fences",
    FLAG_CODE_LABEL: "show_language_label",
    FLAG_STRIP_HEADINGS: "strip_heading_prefixes",
}

# Persisted snapshot keys ("tui" section of a settings entry).
_PERSISTED_BOOLS = (
    "unwrap_outer_fence",
    "hide_code_fences",
    "show_language_label",
    "strip_heading_prefixes",
)

# Field names in entries written before the snake_case snapshot.
_LEGACY_PERSISTED_KEYS = {
    "unwrap_outer_fence": "unwrapOuterMarkdownFence",
    "hide_code_fences": "hideCodeFences",
    "show_language_label": "showCodeFenceLanguageLabel",
    "strip_heading_prefixes": "stripHeadingPrefixes",
    "code_background_key": "codeBlockBgKey",
    "code_indent_spaces": "codeIndentSpaces",
}


def _persisted_value(tui: Mapping[str, object], key: str) -> object:
    if key in tui:
        return tui[key]
    return tui.get(_LEGACY_PERSISTED_KEYS[key])


# ─── Layers ──────────────────────────────────────────────────────────────────


def apply_flags(base: Options, flags: Mapping[str, object]) -> Options:
    """Overlay startup flag values. Unparseable values keep *base*'s value."""
    changes: dict[str, object] = {
        "enabled": parse_on_off(flags.get(FLAG_TUI), base.enabled)
        and not parse_on_off(flags.get(FLAG_NO_TUI), False),
    }
    for flag, attr in _BOOL_FLAGS.items():
        changes[attr] = parse_on_off(flags.get(flag), getattr(base, attr))
    if flags.get(FLAG_CODE_INDENT) is not None:
        changes["code_indent"] = parse_indent(flags.get(FLAG_CODE_INDENT), base.indent_spaces)
    if FLAG_CODE_BG in flags:
        changes["code_background_key"] = normalize_bg_key(flags.get(FLAG_CODE_BG))
    return replace(base, **changes)


def apply_persisted(base: Options, persisted: Mapping[str, object] | None) -> Options:
    """Overlay a persisted snapshot; only fields present with the right type override.

    Legacy camelCase field names are read when the snake_case one is absent.
    """
    if not isinstance(persisted, Mapping):
        return base
    tui = persisted.get("tui")
    if not isinstance(tui, Mapping):
        return base

    changes: dict[str, object] = {}
    for attr in _PERSISTED_BOOLS:
        value = _persisted_value(tui, attr)
        if isinstance(value, bool):
            changes[attr] = value
    key = _persisted_value(tui, "code_background_key")
    if isinstance(key, str):
        changes["code_background_key"] = normalize_bg_key(key)
    spaces = _persisted_value(tui, "code_indent_spaces")
    if isinstance(spaces, (int, float)) and not isinstance(spaces, bool):
        n = to_int(spaces)
        if n is not None:
            changes["code_indent"] = clamp_indent(n)
    return replace(base, **changes)


def apply_edit(base: Options, field: str, raw_value: object) -> Options:
    """One live edit. Unrecognized values fall back to the current value."""
    if field in _BOOL_FIELDS:
        attr = _BOOL_FIELDS[field]
        return replace(base, **{attr: parse_on_off(raw_value, getattr(base, attr))})
    if field == "bg":
        return replace(base, code_background_key=normalize_bg_key(raw_value))
    if field == "indent":
        n = to_int(raw_value)
        if n is None:
            return base
        return replace(base, code_indent=clamp_indent(n))
    raise ValueError(f"unknown render-md setting: {field!r}")


def resolve(
    defaults: Options = DEFAULT_OPTIONS,
    flags: Mapping[str, object] | None = None,
    persisted: Mapping[str, object] | None = None,
    live_edits: Iterable[tuple[str, object]] = (),
) -> Options:
    """Merge the four layers. ``code_background_ansi`` is left for derive_background()."""
    options = defaults
    if flags is not None:
        options = apply_flags(options, flags)
    options = apply_persisted(options, persisted)
    for field, raw_value in live_edits:
        options = apply_edit(options, field, raw_value)
    return options


def derive_background(options: Options, palette: BackgroundPalette | None) -> tuple[Options, str | None]:
    """Recompute the background introducer from the key.

    Returns (options, warning). An unknown key clears both key and
    introducer and produces a warning message instead of an error.
    """
    key = options.code_background_key
    if key is None or palette is None:
        return replace(options, code_background_ansi=None), None
    try:
        ansi = palette.get_bg_ansi(key)
    except KeyError:
        known = ", ".join(palette.keys())
        warning = f'render-md: unknown background key "{key}" (try: {known}, or off)'
        return replace(options, code_background_key=None, code_background_ansi=None), warning
    return replace(options, code_background_ansi=ansi), None


def snapshot_from_options(options: Options) -> dict:
    """Full persisted snapshot of the user-editable fields."""
    return {
        "tui": {
            "unwrap_outer_fence": options.unwrap_outer_fence,
            "hide_code_fences": options.hide_code_fences,
            "show_language_label": options.show_language_label,
            "strip_heading_prefixes": options.strip_heading_prefixes,
            "code_background_key": options.code_background_key or "off",
            "code_indent_spaces": options.indent_spaces,
        }
    }


# ─── Service ─────────────────────────────────────────────────────────────────


class RevisionCounter:
    """Monotonic configuration revision. Starts at 0."""

    def __init__(self) -> None:
        self._value = 0

    @property
    def value(self) -> int:
        return self._value

    def bump(self) -> int:
        self._value += 1
        return self._value


Notify = Callable[[str, str], None]


class ConfigService:
    """Active Options + revision, with persistence and redraw listeners."""

    def __init__(
        self,
        palette: BackgroundPalette | None = None,
        defaults: Options = DEFAULT_OPTIONS,
        notify: Notify | None = None,
    ):
        self._palette = palette
        self._defaults = defaults
        self._notify = notify
        self._revision = RevisionCounter()
        self._persist_listeners: list[Callable[[dict], None]] = []
        self._redraw_listeners: list[Callable[[], None]] = []
        self._options, warning = derive_background(defaults, palette)
        if warning:
            self._warn(warning)

    @property
    def options(self) -> Options:
        return self._options

    @property
    def revision(self) -> int:
        return self._revision.value

    @property
    def palette(self) -> BackgroundPalette | None:
        return self._palette

    def set_notifier(self, notify: Notify | None) -> None:
        self._notify = notify

    # -- listeners (return disposers) --

    def add_persist_listener(self, fn: Callable[[dict], None]) -> Callable[[], None]:
        self._persist_listeners.append(fn)
        return lambda: self._persist_listeners.remove(fn)

    def add_redraw_listener(self, fn: Callable[[], None]) -> Callable[[], None]:
        self._redraw_listeners.append(fn)
        return lambda: self._redraw_listeners.remove(fn)

    # -- commits --

    def start_session(
        self,
        flags: Mapping[str, object] | None = None,
        persisted: Mapping[str, object] | None = None,
        *,
        has_ui: bool = True,
    ) -> Options:
        """Apply flags and the persisted snapshot on top of the defaults."""
        options = resolve(self._defaults, flags, persisted)
        if not has_ui:
            options = replace(options, enabled=False)
        options, warning = derive_background(options, self._palette)
        if warning and has_ui:
            self._warn(warning)
        self._options = options
        self._revision.bump()
        logger.debug("session options resolved: %s (revision %d)", options, self.revision)
        return options

    def set_palette(self, palette: BackgroundPalette) -> None:
        """Theme changed: re-derive the background introducer for the current key."""
        self._palette = palette
        options, warning = derive_background(self._options, palette)
        if warning:
            self._warn(warning)
        self._options = options
        self._revision.bump()
        self._request_redraw()

    def edit(self, field: str, raw_value: object) -> bool:
        """Commit one live edit. Returns False when nothing changed."""
        before = self._options
        after = apply_edit(before, field, raw_value)
        if field == "bg":
            after, warning = derive_background(after, self._palette)
            if warning:
                self._warn(warning)
        if after == before:
            return False

        self._options = after
        self._revision.bump()
        logger.debug("render-md %s=%r committed (revision %d)", field, raw_value, self.revision)
        self._persist(after)
        self._request_redraw()
        return True

    # -- side effects --

    def _warn(self, message: str) -> None:
        logger.warning(message)
        if self._notify is not None:
            self._notify(message, "warning")

    def _persist(self, options: Options) -> None:
        snapshot = snapshot_from_options(options)
        for fn in list(self._persist_listeners):
            try:
                fn(snapshot)
            except Exception:
                logger.exception("Failed to persist render-md settings")

    def _request_redraw(self) -> None:
        for fn in list(self._redraw_listeners):
            fn()


def indent_choices() -> list[str]:
    return [str(n) for n in range(MAX_INDENT + 1)]
