#!/usr/bin/env python3
"""List duplicate, pinned and stale Safari tabs and optionally close them.

Flow:
- Load config.json (App Support by default), then env and flag overrides
- Enumerate Safari tabs and look up last visits in History.db
- Hide pinned tabs, flag stale tabs, link duplicates to their first copy
- Print the classified list (text or --json)
- With --close: re-snapshot, close the selection from the highest position
  down, close windows that only held pinned tabs, print the refreshed list
"""

from __future__ import annotations

import fcntl
import json
import os
import subprocess
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import List, NoReturn, Optional

from tabsweep.browser.history import SafariHistory, default_history_path
from tabsweep.browser.safari import SafariBrowser, applescript_escape
from tabsweep.config import APP_SUPPORT, ConfigError, load_settings
from tabsweep.engine.models import Classification, ClosePlan, CloseResult, with_selection
from tabsweep.engine.reconcile import plan_closures
from tabsweep.engine.session import TabSession
from tabsweep.engine.worker import CloseInProgressError
from tabsweep.render import classification_payload, render_plan, render_text

LOCK_PATH = Path(os.environ.get("TABSWEEP_LOCK_PATH", str(APP_SUPPORT / "tabsweep.lock"))).expanduser()
USAGE = (
    "usage: tabsweep [--preview] [--days N] [--select-stale] [--close | --dry-run] "
    "[--json] [--config PATH] [--verbose]"
)

VERBOSE = False
JSON_OUTPUT = False
CLOSE = False
DRY_RUN = False
SELECT_STALE = False
PREVIEW: Optional[bool] = None
DAYS: Optional[int] = None
CONFIG_PATH: Optional[Path] = None


def log(msg: str) -> None:
    if not VERBOSE:
        return
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[tabsweep] {ts} {msg}", file=sys.stderr)


def _usage_error(msg: str) -> NoReturn:
    print(f"{msg}\n{USAGE}", file=sys.stderr)
    raise SystemExit(2)


def _parse_days(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        _usage_error(f"--days expects an integer, got {value!r}")


def parse_args(argv: List[str]) -> None:
    global VERBOSE, JSON_OUTPUT, CLOSE, DRY_RUN, SELECT_STALE, PREVIEW, DAYS, CONFIG_PATH
    VERBOSE = False
    JSON_OUTPUT = False
    CLOSE = False
    DRY_RUN = False
    SELECT_STALE = False
    PREVIEW = None
    DAYS = None
    CONFIG_PATH = None
    rest = []
    args = list(argv[1:])
    idx = 0
    while idx < len(args):
        arg = args[idx]
        if arg in ("-v", "--verbose"):
            VERBOSE = True
        elif arg == "--json":
            JSON_OUTPUT = True
        elif arg == "--close":
            CLOSE = True
        elif arg == "--dry-run":
            DRY_RUN = True
        elif arg == "--select-stale":
            SELECT_STALE = True
        elif arg == "--preview":
            PREVIEW = True
        elif arg == "--days":
            if idx + 1 >= len(args):
                _usage_error("--days requires a number of days")
            idx += 1
            DAYS = _parse_days(args[idx])
        elif arg.startswith("--days="):
            DAYS = _parse_days(arg.split("=", 1)[1])
        elif arg == "--config":
            if idx + 1 >= len(args):
                _usage_error("--config requires a path")
            idx += 1
            CONFIG_PATH = Path(args[idx]).expanduser()
        elif arg.startswith("--config="):
            CONFIG_PATH = Path(arg.split("=", 1)[1]).expanduser()
        elif arg in ("-h", "--help"):
            print(USAGE, file=sys.stderr)
            raise SystemExit(0)
        else:
            rest.append(arg)
        idx += 1
    if rest:
        _usage_error(f"unknown args: {' '.join(rest)}")
    if CLOSE and DRY_RUN:
        _usage_error("--close and --dry-run are mutually exclusive")


def acquire_lock():
    LOCK_PATH.parent.mkdir(parents=True, exist_ok=True)
    fh = LOCK_PATH.open("w")
    try:
        fcntl.flock(fh, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        fh.close()
        return None
    return fh


def notify_user(title: str, message: str) -> None:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return
    enabled = str(os.environ.get("TABSWEEP_NOTIFY", "1")).strip().lower()
    if enabled in {"0", "false", "no", "off"}:
        return
    try:
        script = f'display notification "{applescript_escape(message)}" with title "{applescript_escape(title)}"'
        subprocess.Popen(
            ["/usr/bin/osascript", "-e", script],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
        )
    except Exception as exc:
        log(f"warn: notification failed ({exc})")


def emit_result(
    classification: Classification,
    result: Optional[CloseResult] = None,
    plan: Optional[ClosePlan] = None,
) -> None:
    if JSON_OUTPUT:
        print(json.dumps(classification_payload(classification, result, plan), sort_keys=True))
        return
    if result is not None:
        line = f"Closed {result.closed} tabs ({result.status})"
        if result.failures:
            line += f", {len(result.failures)} commands failed"
        if result.error:
            line += f": {result.error}"
        print(line)
        print("")
    print(render_text(classification), end="")


def _apply_default_selection(classification: Classification, select_stale: bool) -> Classification:
    if not select_stale:
        return classification
    chosen = [
        idx
        for idx, tab in enumerate(classification.tabs)
        if tab.duplicate_of is not None or tab.is_stale
    ]
    return replace(classification, tabs=with_selection(classification.tabs, chosen))


def _settings_overrides() -> dict:
    overrides: dict = {}
    if DAYS is not None:
        overrides["staleDays"] = DAYS
    if PREVIEW is not None:
        overrides["preview"] = PREVIEW
    if SELECT_STALE:
        overrides["selectStale"] = True
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    parse_args(list(sys.argv if argv is None else argv))
    try:
        settings = load_settings(CONFIG_PATH, _settings_overrides())
    except ConfigError as exc:
        print(f"config error: {exc}", file=sys.stderr)
        return 2

    history_path = settings.history_path or default_history_path(settings.preview)
    log(f"start (preview={settings.preview}, stale_days={settings.stale_days}, history={history_path})")
    browser = SafariBrowser(preview=settings.preview, timeout=settings.osascript_timeout)
    history = SafariHistory(history_path)
    session = TabSession(
        browser,
        history.last_visit,
        stale_days=settings.stale_days,
        max_position=settings.pinned_max_position,
        min_windows=settings.pinned_min_windows,
        threshold=settings.similarity_threshold,
    )
    try:
        classification = session.refresh()
        if classification.error:
            emit_result(classification)
            return 1
        classification = _apply_default_selection(classification, settings.select_stale)
        log(f"classified {len(classification.tabs)} tabs, {len(classification.selected_urls)} selected")

        if DRY_RUN:
            try:
                snapshot = session.worker.refresh(browser.enumerate)
            except Exception as exc:
                print(f"error: fresh snapshot failed ({exc})", file=sys.stderr)
                return 1
            plan = plan_closures(snapshot, classification.selected_urls, classification.empty_windows)
            emit_result(classification, plan=plan)
            if not JSON_OUTPUT:
                print("")
                print(render_plan(plan), end="")
            return 0

        if not CLOSE:
            emit_result(classification)
            return 0

        lock_fh = acquire_lock()
        if lock_fh is None:
            print("another tabsweep run is closing tabs; try again shortly", file=sys.stderr)
            return 3
        try:
            try:
                future = session.close_selected(classification)
            except CloseInProgressError as exc:
                print(f"error: {exc}", file=sys.stderr)
                return 3
            result = future.result()
        finally:
            lock_fh.close()

        log(f"close done: status={result.status} closed={result.closed} planned={result.planned}")
        if result.closed:
            notify_user("TabSweep", f"Closed {result.closed} tabs")
        emit_result(session.latest or Classification(), result)
        return 1 if result.error else 0
    finally:
        session.close()
        history.close()


if __name__ == "__main__":
    raise SystemExit(main())
