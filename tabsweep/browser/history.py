"""Last-visit lookup against Safari's History.db."""

from __future__ import annotations

import sqlite3
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional, TextIO

# Safari stores visit_time as seconds since 2001-01-01 UTC.
CORE_DATA_EPOCH = datetime(2001, 1, 1, tzinfo=timezone.utc)

SAFARI_HISTORY = Path("~/Library/Safari/History.db").expanduser()
PREVIEW_HISTORY = Path("~/Library/SafariTechnologyPreview/History.db").expanduser()

LAST_VISIT_SQL = """
SELECT MAX(v.visit_time)
FROM history_items AS i
JOIN history_visits AS v ON v.history_item = i.id
WHERE i.url = ?
"""


def default_history_path(preview: bool = False) -> Path:
    return PREVIEW_HISTORY if preview else SAFARI_HISTORY


def from_core_data_seconds(value: float) -> datetime:
    return CORE_DATA_EPOCH + timedelta(seconds=float(value))


class SafariHistory:
    """Read-only history store. Every failure degrades to "no visit recorded"."""

    def __init__(self, path: Path, *, stderr: Optional[TextIO] = sys.stderr) -> None:
        self.path = Path(path).expanduser()
        self._stderr = stderr
        self._conn: Optional[sqlite3.Connection] = None
        self._unavailable = False

    def _warn(self, msg: str) -> None:
        if self._stderr is not None:
            print(f"warn: {msg}", file=self._stderr)

    def _connect(self) -> Optional[sqlite3.Connection]:
        if self._conn is not None:
            return self._conn
        if self._unavailable:
            return None
        if not self.path.exists():
            self._unavailable = True
            self._warn(f"history database not found: {self.path}")
            return None
        try:
            self._conn = sqlite3.connect(f"{self.path.resolve().as_uri()}?mode=ro", uri=True, check_same_thread=False)
        except sqlite3.Error as exc:
            self._unavailable = True
            self._warn(f"history database unavailable ({exc})")
            return None
        return self._conn

    def last_visit(self, url: str) -> Optional[datetime]:
        conn = self._connect()
        if conn is None:
            return None
        try:
            row = conn.execute(LAST_VISIT_SQL, (url,)).fetchone()
        except sqlite3.Error as exc:
            self._warn(f"history lookup failed ({exc})")
            return None
        if not row or row[0] is None:
            return None
        try:
            return from_core_data_seconds(row[0])
        except (TypeError, ValueError, OverflowError):
            return None

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
