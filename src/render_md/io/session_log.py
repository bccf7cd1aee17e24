"""Append-only session log holding persisted render-md settings.

Each line is one JSON entry ``{"type": "custom", "custom_type": ..., "data": ...}``.
Settings are never rewritten in place: every commit appends a full snapshot
and the latest matching entry wins.

This module is a STABLE BOUNDARY: file format changes need a migration.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Iterable

logger = logging.getLogger(__name__)

SETTINGS_ENTRY_TYPE = "render-md:settings"
LEGACY_SETTINGS_ENTRY_TYPE = "commonmark-renderer:settings"
_SETTINGS_TYPES = frozenset({SETTINGS_ENTRY_TYPE, LEGACY_SETTINGS_ENTRY_TYPE})


def default_log_path() -> Path:
    """XDG_STATE_HOME (default ~/.local/state) / render-md / session.jsonl."""
    state_home = os.environ.get("XDG_STATE_HOME", os.path.expanduser("~/.local/state"))
    return Path(state_home) / "render-md" / "session.jsonl"


class SessionLog:
    """JSONL-backed append-only entry log."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else default_log_path()

    def entries(self) -> list[dict]:
        """All well-formed entries in order. Missing file or bad lines are skipped."""
        try:
            text = self.path.read_text(encoding="utf-8")
        except (FileNotFoundError, OSError):
            return []
        entries: list[dict] = []
        for line_no, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.debug("skipping corrupt session log line %d in %s", line_no, self.path)
                continue
            if isinstance(entry, dict):
                entries.append(entry)
        return entries

    def append_entry(self, custom_type: str, data: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        entry = {"type": "custom", "custom_type": custom_type, "data": data}
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry) + "\n")

    def persist_settings(self, snapshot: dict) -> None:
        self.append_entry(SETTINGS_ENTRY_TYPE, snapshot)


def _latest_settings_entry(entries: Iterable[dict]) -> dict | None:
    latest = None
    for entry in entries:
        if entry.get("type") != "custom":
            continue
        if entry.get("custom_type") in _SETTINGS_TYPES:
            latest = entry
    return latest


def read_persisted_settings(entries: Iterable[dict]) -> dict | None:
    """Data of the latest settings entry under either tag, or None."""
    latest = _latest_settings_entry(entries)
    if latest is None:
        return None
    data = latest.get("data")
    return data if isinstance(data, dict) else None


def migrate_legacy_settings(log: SessionLog) -> bool:
    """Re-append a legacy-tagged latest settings entry under the current tag.

    Run once at startup. Returns True when an entry was migrated.
    """
    latest = _latest_settings_entry(log.entries())
    if latest is None or latest.get("custom_type") != LEGACY_SETTINGS_ENTRY_TYPE:
        return False
    data = latest.get("data")
    if not isinstance(data, dict):
        return False
    log.append_entry(SETTINGS_ENTRY_TYPE, data)
    logger.info("migrated legacy render-md settings entry in %s", log.path)
    return True
