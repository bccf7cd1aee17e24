"""Tests for RenderMdMarkdown: revision tracking and end-to-end rendering."""

from dataclasses import replace

import pytest

import render_md.core.fence
import render_md.core.theme_adapter
from render_md.core.ansi_text import strip_ansi
from render_md.core.options import DEFAULT_OPTIONS
from render_md.core.theme import MarkdownTheme, build_ansi_theme
from render_md.core.view import RenderMdMarkdown, StaticOptions
from render_md.palette import build_theme_colors, theme_by_name

from tests.conftest import BG

FENCED = "```markdown\n# Title\n\n**bold**\n```"


@pytest.fixture
def counters(monkeypatch):
    calls = {"unwrap": 0, "wrap": 0}
    real_unwrap = render_md.core.fence.unwrap_outer_fence
    real_wrap = render_md.core.theme_adapter.wrap_theme

    def counting_unwrap(text):
        calls["unwrap"] += 1
        return real_unwrap(text)

    def counting_wrap(*args, **kwargs):
        calls["wrap"] += 1
        return real_wrap(*args, **kwargs)

    monkeypatch.setattr(render_md.core.fence, "unwrap_outer_fence", counting_unwrap)
    monkeypatch.setattr(render_md.core.theme_adapter, "wrap_theme", counting_wrap)
    return calls


class TestRevisionTracking:
    def test_no_rework_without_revision_change(self, service, counters):
        view = RenderMdMarkdown(FENCED, theme=MarkdownTheme(), config=service)
        view.render(60)
        assert counters == {"unwrap": 1, "wrap": 1}

        view.render(60)
        view.render(40)
        assert counters == {"unwrap": 1, "wrap": 1}

    def test_revision_change_reapplies_once(self, service, counters):
        view = RenderMdMarkdown(FENCED, theme=MarkdownTheme(), config=service)
        view.render(60)
        service.edit("label", "on")
        view.render(60)
        view.render(60)
        assert counters == {"unwrap": 2, "wrap": 2}
        assert view.state.last_applied_revision == service.revision

    def test_edit_changes_output(self, service):
        view = RenderMdMarkdown("```\ncode\n```", padding_x=0, theme=MarkdownTheme(), config=service)
        service.edit("bg", "off")
        assert view.render(40)[1].rstrip() == "    code"
        service.edit("indent", "2")
        assert view.render(40)[1].rstrip() == "  code"

    def test_disabling_restores_base_theme(self, service):
        base = MarkdownTheme()
        view = RenderMdMarkdown("```py\nx\n```", padding_x=0, theme=base, config=service)
        view.render(40)
        assert view.theme is not base

        service.start_session(flags={"no-commonmark-tui": "on"})
        lines = [line.rstrip() for line in view.render(40)]
        assert view.theme is base
        assert lines[0] == "```py"

    def test_set_text_unwraps_new_content(self, service):
        view = RenderMdMarkdown(theme=MarkdownTheme(), config=service)
        view.set_text("```md\nplain\n```")
        assert view.text == "plain"

    def test_unwrap_off_keeps_fence_as_code(self):
        options = replace(DEFAULT_OPTIONS, unwrap_outer_fence=False, hide_code_fences=False)
        view = RenderMdMarkdown(FENCED, padding_x=0, theme=MarkdownTheme(), config=StaticOptions(options))
        assert view.render(60)[0].rstrip() == "```markdown"

    def test_set_theme_rebuilds_wrappers(self, service):
        view = RenderMdMarkdown("```\nx\n```", padding_x=0, theme=MarkdownTheme(), config=service)
        view.render(40)
        new_base = MarkdownTheme(code_block=lambda t: f"[{t}]")
        view.set_theme(new_base)
        code_line = view.render(40)[1]
        assert "[x]" in code_line
        assert view.state.theme_originals.code_block is new_base.code_block


class TestEndToEnd:
    def test_fenced_reply_renders_as_markdown(self, tag_theme):
        view = RenderMdMarkdown(FENCED, theme=tag_theme, config=StaticOptions())
        out = "\n".join(view.render(60))
        assert "<h><b><u>Title</u></b></h>" in out
        assert "<b>bold</b>" in out
        assert "#" not in out
        assert "```" not in out

    def test_fenced_reply_with_ansi_theme(self):
        theme = build_ansi_theme(build_theme_colors(theme_by_name("textual-dark")))
        view = RenderMdMarkdown(FENCED, theme=theme, config=StaticOptions())
        out = "\n".join(view.render(60))
        assert "\x1b[1mbold\x1b[0m" in out
        plain = strip_ansi(out)
        assert "Title" in plain
        assert "#" not in plain
        assert "```" not in plain

    def test_labelled_code_block_with_background(self):
        def highlight(code, lang=None):
            return [f"<hl>{line}" for line in code.split("\n")]

        options = replace(DEFAULT_OPTIONS, show_language_label=True, code_background_ansi=BG)
        view = RenderMdMarkdown(
            "```ts\nconst a = 1;\nlet b = 2;\n```",
            theme=MarkdownTheme(highlight_code=highlight),
            config=StaticOptions(options),
        )
        lines = view.render(60)
        out = "\n".join(lines)
        assert "```" not in out

        label_idx = next(i for i, line in enumerate(lines) if "‹ts›" in line)
        assert strip_ansi(lines[label_idx]).strip() == "‹ts›"
        assert strip_ansi(lines[label_idx]).startswith(" " + "    ‹ts›")

        code_lines = lines[label_idx + 1:label_idx + 3]
        assert "<hl>const a = 1;" in code_lines[0]
        assert "<hl>let b = 2;" in code_lines[1]
        for line in code_lines:
            # One column of component padding, then the background introducer.
            assert line[1:].startswith(BG)
            assert strip_ansi(line).startswith(" " + "    <hl>")
