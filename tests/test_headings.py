"""Tests for heading rendering without hash prefixes."""

from dataclasses import replace

import pytest

from render_md.core.ansi_text import strip_ansi
from render_md.core.headings import heading_indent
from render_md.core.options import DEFAULT_OPTIONS
from render_md.core.theme import MarkdownTheme
from render_md.core.view import RenderMdMarkdown, StaticOptions

DOC = "# One\n\n## Two\n\n### Three\n\n#### Four\n\n##### Five\n\n###### Six"


def _lines(text, options=DEFAULT_OPTIONS, theme=None):
    view = RenderMdMarkdown(text, padding_x=0, theme=theme or MarkdownTheme(), config=StaticOptions(options))
    return [line.rstrip() for line in view.render(60)]


@pytest.mark.parametrize("depth,expected", [(1, ""), (3, ""), (4, "  "), (6, "      ")])
def test_heading_indent(depth, expected):
    assert heading_indent(depth) == expected


def test_no_heading_line_starts_with_hash():
    lines = [line for line in _lines(DOC) if line]
    assert lines == ["One", "Two", "Three", "  Four", "    Five", "      Six"]
    assert not any(strip_ansi(line).lstrip().startswith("#") for line in lines)


def test_deeper_headings_indent_further():
    lines = [line for line in _lines(DOC) if line][2:]
    indents = [len(line) - len(line.lstrip(" ")) for line in lines]
    assert indents == sorted(set(indents))


def test_heading_styles(tag_theme):
    lines = _lines("# One\n\n## Two\n\n#### Four", theme=tag_theme)
    assert lines[0] == "<h><b><u>One</u></b></h>"
    assert "<h><b>Two</b></h>" in lines
    assert "<h><b>  Four</b></h>" in lines


def test_single_blank_line_after_heading():
    assert _lines("### A\n\ntext") == ["A", "", "text"]
    assert _lines("### A\ntext") == ["A", "", "text"]


def test_prefix_kept_when_stripping_is_off():
    options = replace(DEFAULT_OPTIONS, strip_heading_prefixes=False)
    assert _lines("### Three", options)[0] == "### Three"


def test_prefix_kept_when_disabled():
    options = replace(DEFAULT_OPTIONS, enabled=False)
    assert _lines("#### Four", options)[0] == "#### Four"
