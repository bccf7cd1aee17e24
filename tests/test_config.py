"""Tests for configuration layering and the ConfigService commit path."""

import logging
from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from render_md.app.config import (
    FLAG_CODE_BG,
    FLAG_CODE_INDENT,
    FLAG_HIDE_FENCES,
    FLAG_NO_TUI,
    FLAG_TUI,
    ConfigService,
    apply_edit,
    apply_persisted,
    derive_background,
    resolve,
    snapshot_from_options,
)
from render_md.core.options import DEFAULT_OPTIONS


class TestResolve:
    def test_defaults_only(self):
        assert resolve() == DEFAULT_OPTIONS

    def test_empty_flag_layer_keeps_defaults(self):
        assert resolve(flags={}) == DEFAULT_OPTIONS

    def test_flags_override_defaults(self):
        options = resolve(flags={FLAG_CODE_INDENT: "2", FLAG_CODE_BG: "off", FLAG_HIDE_FENCES: "off"})
        assert options.code_indent == "  "
        assert options.code_background_key is None
        assert options.hide_code_fences is False

    def test_no_tui_flag_overrides_tui_flag(self):
        assert resolve(flags={FLAG_TUI: "on", FLAG_NO_TUI: "on"}).enabled is False
        assert resolve(flags={FLAG_TUI: "off"}).enabled is False

    def test_persisted_overrides_flags(self):
        persisted = {"tui": {"hide_code_fences": True}}
        options = resolve(flags={FLAG_HIDE_FENCES: "off"}, persisted=persisted)
        assert options.hide_code_fences is True

    def test_live_edits_override_persisted(self):
        persisted = {"tui": {"code_indent_spaces": 6}}
        options = resolve(persisted=persisted, live_edits=[("indent", "1")])
        assert options.code_indent == " "


class TestApplyPersisted:
    def test_wrong_types_are_ignored(self):
        persisted = {"tui": {"hide_code_fences": "yes", "code_indent_spaces": "2", "code_background_key": 5}}
        assert apply_persisted(DEFAULT_OPTIONS, persisted) == DEFAULT_OPTIONS

    def test_legacy_camel_case_keys(self):
        persisted = {
            "tui": {
                "unwrapOuterMarkdownFence": False,
                "showCodeFenceLanguageLabel": True,
                "stripHeadingPrefixes": False,
                "codeBlockBgKey": "off",
                "codeIndentSpaces": 2,
            }
        }
        options = apply_persisted(DEFAULT_OPTIONS, persisted)
        assert options.unwrap_outer_fence is False
        assert options.show_language_label is True
        assert options.strip_heading_prefixes is False
        assert options.code_background_key is None
        assert options.code_indent == "  "

    def test_snake_case_key_wins_over_legacy(self):
        persisted = {"tui": {"code_indent_spaces": 6, "codeIndentSpaces": 1}}
        assert apply_persisted(DEFAULT_OPTIONS, persisted).indent_spaces == 6

    def test_missing_or_malformed_snapshot(self):
        assert apply_persisted(DEFAULT_OPTIONS, None) == DEFAULT_OPTIONS
        assert apply_persisted(DEFAULT_OPTIONS, {"tui": []}) == DEFAULT_OPTIONS

    def test_indent_is_clamped(self):
        options = apply_persisted(DEFAULT_OPTIONS, {"tui": {"code_indent_spaces": 12}})
        assert options.indent_spaces == 8

    def test_snapshot_restores_options(self):
        edited = replace(
            DEFAULT_OPTIONS,
            unwrap_outer_fence=False,
            show_language_label=True,
            code_background_key=None,
            code_indent="  ",
        )
        assert apply_persisted(DEFAULT_OPTIONS, snapshot_from_options(edited)) == edited


class TestApplyEdit:
    def test_indent_non_numeric_keeps_previous(self):
        base = replace(DEFAULT_OPTIONS, code_indent="  ")
        assert apply_edit(base, "indent", "abc") == base

    def test_bool_field_unrecognized_value_keeps_previous(self):
        assert apply_edit(DEFAULT_OPTIONS, "label", "sometimes") == DEFAULT_OPTIONS

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError):
            apply_edit(DEFAULT_OPTIONS, "colour", "red")


class TestDeriveBackground:
    def test_known_key(self, palette):
        options, warning = derive_background(DEFAULT_OPTIONS, palette)
        assert warning is None
        assert options.code_background_ansi == palette.get_bg_ansi("toolPendingBg")

    def test_unknown_key_clears_and_warns(self, palette):
        options, warning = derive_background(replace(DEFAULT_OPTIONS, code_background_key="nope"), palette)
        assert options.code_background_key is None
        assert options.code_background_ansi is None
        assert 'unknown background key "nope"' in warning

    def test_no_key(self, palette):
        options, warning = derive_background(replace(DEFAULT_OPTIONS, code_background_key=None), palette)
        assert options.code_background_ansi is None
        assert warning is None


class TestConfigService:
    def test_start_session_bumps_revision(self, palette):
        svc = ConfigService(palette)
        assert svc.revision == 0
        svc.start_session()
        assert svc.revision == 1
        assert svc.options.code_background_ansi is not None

    def test_start_session_without_ui_disables(self, palette):
        svc = ConfigService(palette)
        assert svc.start_session(has_ui=False).enabled is False

    def test_edit_commits_persists_and_redraws(self, service):
        persist = MagicMock()
        redraw = MagicMock()
        service.add_persist_listener(persist)
        service.add_redraw_listener(redraw)

        assert service.edit("indent", "2") is True
        assert service.options.indent_spaces == 2
        persist.assert_called_once_with(snapshot_from_options(service.options))
        redraw.assert_called_once_with()

    def test_noop_edit_does_not_bump(self, service):
        before = service.revision
        assert service.edit("indent", "4") is False
        assert service.revision == before

    def test_indent_abc_keeps_previous_indent(self, service):
        service.edit("indent", "3")
        revision = service.revision
        assert service.edit("indent", "abc") is False
        assert service.options.indent_spaces == 3
        assert service.revision == revision

    def test_revision_is_monotonic(self, service, palette):
        seen = [service.revision]
        for field, value in [("label", "on"), ("bg", "off"), ("headings", "off"), ("unfence", "off")]:
            service.edit(field, value)
            seen.append(service.revision)
        service.set_palette(palette)
        seen.append(service.revision)
        assert seen == sorted(set(seen))

    def test_unknown_bg_key_notifies(self, palette):
        notify = MagicMock()
        svc = ConfigService(palette, notify=notify)
        svc.start_session()
        assert svc.edit("bg", "nope") is True
        assert svc.options.code_background_key is None
        message, severity = notify.call_args.args
        assert 'unknown background key "nope"' in message
        assert severity == "warning"

    def test_persist_failure_is_logged_not_raised(self, service, caplog):
        service.add_persist_listener(MagicMock(side_effect=OSError("disk full")))
        with caplog.at_level(logging.ERROR, logger="render_md.app.config"):
            assert service.edit("label", "on") is True
        assert "Failed to persist render-md settings" in caplog.text
        assert service.options.show_language_label is True

    def test_listener_disposer(self, service):
        redraw = MagicMock()
        dispose = service.add_redraw_listener(redraw)
        dispose()
        service.edit("label", "on")
        redraw.assert_not_called()

    def test_set_palette_rederives_background(self, service):
        from render_md.palette import palette_for_theme

        light = palette_for_theme("textual-light")
        service.set_palette(light)
        assert service.options.code_background_ansi == light.get_bg_ansi("toolPendingBg")
