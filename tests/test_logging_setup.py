"""Tests for the centralized logging bootstrap."""

import logging
import logging.handlers

import render_md.io.logging_setup as logging_setup


def test_configure_wires_handlers(isolated_logging, monkeypatch):
    monkeypatch.setenv("RENDER_MD_LOG_LEVEL", "debug")
    runtime = logging_setup.configure()

    assert runtime.file_path == str(isolated_logging)
    assert runtime.level == logging.DEBUG
    assert isolated_logging.parent.is_dir()

    logger = logging.getLogger("render_md")
    assert logger.propagate is False
    assert len(logger.handlers) == 2


def test_configure_is_idempotent(isolated_logging):
    first = logging_setup.configure()
    assert logging_setup.configure() is first


def test_no_stderr_handler_for_full_screen(isolated_logging):
    logging_setup.configure(stderr=False)
    handlers = logging.getLogger("render_md").handlers
    assert len(handlers) == 1
    assert isinstance(handlers[0], logging.handlers.RotatingFileHandler)


def test_unknown_level_defaults_to_info(isolated_logging, monkeypatch):
    monkeypatch.setenv("RENDER_MD_LOG_LEVEL", "chatty")
    assert logging_setup.configure().level_name == "INFO"


def test_log_dir_names_a_per_run_file(isolated_logging, monkeypatch, tmp_path):
    monkeypatch.delenv("RENDER_MD_LOG_FILE")
    monkeypatch.setenv("RENDER_MD_LOG_DIR", str(tmp_path / "dir"))
    runtime = logging_setup.configure(stderr=False)
    assert runtime.file_path.startswith(str(tmp_path / "dir" / "render-md-"))
    assert runtime.file_path.endswith(".log")


def test_default_level_is_warning(isolated_logging, monkeypatch):
    monkeypatch.delenv("RENDER_MD_LOG_LEVEL", raising=False)
    assert logging_setup.configure().level == logging.WARNING


def test_records_reach_log_file(isolated_logging):
    logging_setup.configure(stderr=False)
    logging.getLogger("render_md.test").warning("hello file")
    for handler in logging.getLogger("render_md").handlers:
        handler.flush()
    assert "hello file" in isolated_logging.read_text(encoding="utf-8")
