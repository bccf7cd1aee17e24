"""Tests for the render-md command line."""

import io
import json

import pytest

from render_md.app.config import FLAG_CODE_INDENT, FLAG_NO_TUI
from render_md.cli import build_parser, flags_from_args, main
from render_md.core.ansi_text import strip_ansi
from render_md.io.session_log import LEGACY_SETTINGS_ENTRY_TYPE, SETTINGS_ENTRY_TYPE, SessionLog


@pytest.fixture
def cli(tmp_path, isolated_logging):
    """Run main() with a temp session log; returns (exit_code, stdout, stderr)."""
    log_path = tmp_path / "session.jsonl"

    def run(*argv, capsys):
        code = main(["--session-log", str(log_path), *argv])
        captured = capsys.readouterr()
        return code, captured.out, captured.err

    run.log = SessionLog(log_path)
    return run


@pytest.fixture
def doc(tmp_path):
    def write(text):
        path = tmp_path / "doc.md"
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write


class TestFlags:
    def test_only_given_flags_are_collected(self):
        args = build_parser().parse_args(["--commonmark-tui-code-indent", "3", "--no-commonmark-tui"])
        assert flags_from_args(args) == {FLAG_CODE_INDENT: "3", FLAG_NO_TUI: "on"}

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.path == "-"
        assert args.commonmark is True
        assert args.commonmark_style == "auto"
        assert flags_from_args(args) == {}


class TestPrintMode:
    def test_plain_render(self, cli, doc, capsys):
        code, out, _ = cli("--commonmark-style", "plain", doc("# Title\n\nbody"), capsys=capsys)
        assert code == 0
        assert out == "Title\n\nbody\n"

    def test_stdin(self, cli, monkeypatch, capsys):
        monkeypatch.setattr("sys.stdin", io.StringIO("```markdown\n### A\n```"))
        _, out, _ = cli("--commonmark-style", "plain", capsys=capsys)
        assert out == "A\n"

    def test_ansi_render(self, cli, doc, capsys):
        _, out, _ = cli("--commonmark-style", "ansi", "--commonmark-width", "40", doc("**b**"), capsys=capsys)
        assert "\x1b[1mb\x1b[0m" in out

    def test_rendering_disabled(self, cli, doc, capsys):
        _, out, _ = cli("--no-commonmark", doc("### A"), capsys=capsys)
        assert out == "### A\n"

    def test_json_mode_keeps_markdown(self, cli, doc, capsys):
        _, out, _ = cli("--mode", "json", doc("### A"), capsys=capsys)
        message = json.loads(out)
        assert message["role"] == "assistant"
        assert message["content"][0]["text"] == "### A"

    def test_transforms_disabled_by_flag(self, cli, doc, capsys):
        _, out, _ = cli("--commonmark-style", "plain", "--no-commonmark-tui", doc("### A"), capsys=capsys)
        assert out == "### A\n"

    def test_fences_hidden_with_transforms_disabled(self, cli, doc, capsys):
        _, out, _ = cli(
            "--commonmark-style", "ansi", "--no-commonmark-tui", doc("```py\nx = 1\n```\n"), capsys=capsys
        )
        assert "```" not in out
        assert "x = 1" in strip_ansi(out)

    def test_persisted_settings_apply(self, cli, doc, capsys):
        cli.log.persist_settings({"tui": {"strip_heading_prefixes": False}})
        _, out, _ = cli("--commonmark-style", "plain", doc("### A"), capsys=capsys)
        assert out == "### A\n"

    def test_legacy_settings_entry_applies(self, cli, doc, capsys):
        cli.log.append_entry(LEGACY_SETTINGS_ENTRY_TYPE, {"tui": {"stripHeadingPrefixes": False}})
        _, out, _ = cli("--commonmark-style", "plain", doc("### A"), capsys=capsys)
        assert out == "### A\n"

    def test_missing_file(self, cli, tmp_path, capsys):
        code, _, err = cli(str(tmp_path / "missing.md"), capsys=capsys)
        assert code == 1
        assert "cannot read" in err


class TestCommand:
    def test_edit_is_persisted(self, cli, capsys):
        code, _, err = cli("--command", "indent 2", capsys=capsys)
        assert code == 0
        assert "render-md: code indent = 2" in err
        (entry,) = cli.log.entries()
        assert entry["custom_type"] == SETTINGS_ENTRY_TYPE
        assert entry["data"]["tui"]["code_indent_spaces"] == 2

    def test_persisted_edit_survives_next_run(self, cli, capsys):
        cli("--command", "headings off", capsys=capsys)
        _, _, err = cli("--command", "status", capsys=capsys)
        assert "heading-prefix=show" in err

    def test_unknown_background_warns(self, cli, capsys):
        _, _, err = cli("--command", "bg nope", capsys=capsys)
        assert 'unknown background key "nope"' in err
        assert cli.log.entries()[-1]["data"]["tui"]["code_background_key"] == "off"
