"""Textual in-process test harness for render-md.

    from tests.harness import run_app, press_and_settle, document_lines
"""

from tests.harness.app_runner import run_app
from tests.harness.interactions import press_and_settle, press_sequence
from tests.harness.assertions import document_lines, settings_panel

__all__ = [
    "run_app",
    "press_and_settle",
    "press_sequence",
    "document_lines",
    "settings_panel",
]
