"""Safari tab enumeration and closing via AppleScript."""

from __future__ import annotations

import subprocess
from typing import Callable, List

from tabsweep.engine.models import Tab

OSASCRIPT = "/usr/bin/osascript"
SAFARI_APP = "Safari"
PREVIEW_APP = "Safari Technology Preview"
RECORD_SEP = "\x1e"
FIELD_SEP = "\x1f"

ENUMERATE_SCRIPT = """\
set fieldSep to character id 31
set recordSep to character id 30
set out to ""
tell application "{app}"
    set windowIndex to 0
    repeat with w in (every window)
        set windowIndex to windowIndex + 1
        try
            set tabIndex to 0
            repeat with t in (every tab of w)
                set tabIndex to tabIndex + 1
                set tabTitle to name of t
                if tabTitle is missing value then set tabTitle to ""
                set tabURL to URL of t
                if tabURL is missing value then set tabURL to ""
                set out to out & windowIndex & fieldSep & tabIndex & fieldSep & tabTitle & fieldSep & tabURL & recordSep
            end repeat
        end try
    end repeat
end tell
return out
"""


class AutomationError(RuntimeError):
    pass


def applescript_escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


def parse_enumeration(output: str) -> List[Tab]:
    tabs: List[Tab] = []
    for record in output.split(RECORD_SEP):
        record = record.strip("\r\n")
        if not record:
            continue
        fields = record.split(FIELD_SEP)
        if len(fields) < 4:
            raise AutomationError(f"malformed tab record: {record!r}")
        window_raw, tab_raw, title = fields[0], fields[1], fields[2]
        url = FIELD_SEP.join(fields[3:])
        try:
            window_index = int(window_raw.strip())
            tab_index = int(tab_raw.strip())
        except ValueError as exc:
            raise AutomationError(f"malformed tab position: {record!r}") from exc
        tabs.append(Tab(window_index=window_index, tab_index=tab_index, title=title, url=url.strip()))
    return tabs


class SafariBrowser:
    """Browser provider driving Safari (or Technology Preview) through osascript.

    Calls are synchronous; callers must not issue them concurrently.
    """

    def __init__(
        self,
        *,
        preview: bool = False,
        timeout: float = 30.0,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ) -> None:
        self.app = PREVIEW_APP if preview else SAFARI_APP
        self.timeout = timeout
        self._runner = runner

    def _run(self, script: str) -> str:
        try:
            proc = self._runner(
                [OSASCRIPT, "-e", script],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise AutomationError(f"osascript not available: {exc}") from exc
        except subprocess.TimeoutExpired as exc:
            raise AutomationError(f"{self.app} did not respond within {self.timeout:g}s") from exc
        if proc.returncode != 0:
            detail = (proc.stderr or proc.stdout or "").strip()
            raise AutomationError(f"osascript failed (code {proc.returncode}): {detail}")
        return proc.stdout or ""

    def enumerate(self) -> List[Tab]:
        script = ENUMERATE_SCRIPT.format(app=applescript_escape(self.app))
        return parse_enumeration(self._run(script))

    def close_tab(self, window_index: int, tab_index: int) -> None:
        app = applescript_escape(self.app)
        self._run(f'tell application "{app}" to close tab {int(tab_index)} of window {int(window_index)}')

    def close_window(self, window_index: int) -> None:
        app = applescript_escape(self.app)
        self._run(f'tell application "{app}" to close window {int(window_index)}')
