"""Tests for decoding rendered lines into the viewer's Rich Text."""

from rich.console import Console

from render_md.core.theme import build_ansi_theme
from render_md.core.view import RenderMdMarkdown
from render_md.palette import build_theme_colors, theme_by_name
from render_md.tui.app import document_text


def _bg_at(text, needle):
    return text.get_style_at_offset(Console(), text.plain.index(needle)).bgcolor


def test_code_background_stops_at_code_block(service):
    theme = build_ansi_theme(build_theme_colors(theme_by_name("textual-dark")))
    view = RenderMdMarkdown("```py\nx = 1\n```\n\nafter paragraph", theme=theme, config=service)

    text = document_text(view.render(60))

    assert service.options.code_background_ansi
    assert _bg_at(text, "x = 1") is not None
    assert _bg_at(text, "after") is None


def test_one_text_line_per_rendered_line(service):
    view = RenderMdMarkdown("# Title\n\n```\ncode\n```\n\ntail", config=service)
    lines = view.render(40)
    assert len(document_text(lines).plain.split("\n")) == len(lines)
