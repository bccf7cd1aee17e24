"""Shared fixtures for render-md tests."""

import pytest

import render_md.io.logging_setup
from render_md.app.config import ConfigService
from render_md.core.theme import MarkdownTheme
from render_md.palette import palette_for_theme

# Fake background introducer; distinct from anything a theme would emit.
BG = "\x1b[48;2;1;2;3m"


def _tag(name):
    return lambda text: f"<{name}>{text}</{name}>"


@pytest.fixture
def tag_theme():
    """Theme whose styles are visible markers instead of escape sequences."""
    return MarkdownTheme(
        heading=_tag("h"),
        bold=_tag("b"),
        italic=_tag("i"),
        underline=_tag("u"),
        code=_tag("code"),
        list_bullet=_tag("li"),
    )


@pytest.fixture
def palette():
    return palette_for_theme("textual-dark")


@pytest.fixture
def service(palette):
    svc = ConfigService(palette)
    svc.start_session()
    return svc


@pytest.fixture
def isolated_logging(tmp_path, monkeypatch):
    """Route render-md logging to a temp file and undo configure() afterwards."""
    monkeypatch.setenv("RENDER_MD_LOG_FILE", str(tmp_path / "logs" / "render-md.log"))
    render_md.io.logging_setup.reset()
    yield tmp_path / "logs" / "render-md.log"
    render_md.io.logging_setup.reset()
