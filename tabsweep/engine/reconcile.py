"""Close selected tabs against a fresh snapshot of the live browser.

Positions from the snapshot the user made a selection on are not trusted:
the browser may have changed since. Targets are identified by URL, resolved
to current positions on a fresh snapshot, and closed from the highest
position down so earlier closes never shift the index of a later one.

The snapshot is matched from its last tab backwards, so when a URL is open
more times than it was selected, the earliest copy stays open.
"""

from __future__ import annotations

import sys
from collections import Counter
from typing import Callable, Iterable, List, Optional, Sequence, TextIO

from .models import BrowserProvider, CloseFailure, ClosePlan, CloseResult, Position, Tab


def _match_positions(snapshot: Sequence[Tab], selected_urls: Iterable[str]) -> List[Position]:
    remaining = Counter(selected_urls)
    matched: List[Position] = []
    # Walk backwards so the earliest of several identical tabs is the one kept.
    for tab in reversed(snapshot):
        if remaining[tab.url] > 0:
            remaining[tab.url] -= 1
            matched.append(tab.position)
    return matched


def plan_closures(
    snapshot: Sequence[Tab],
    selected_urls: Iterable[str],
    empty_windows: Iterable[int] = (),
) -> ClosePlan:
    matched = _match_positions(snapshot, selected_urls)
    tab_closes = sorted(matched, key=lambda pos: (pos[0], pos[1]), reverse=True)
    window_closes = sorted(set(empty_windows), reverse=True)
    return ClosePlan(tab_closes=tuple(tab_closes), window_closes=tuple(window_closes))


def execute_plan(plan: ClosePlan, browser: BrowserProvider, *, stderr: TextIO = sys.stderr) -> CloseResult:
    failures: List[CloseFailure] = []

    for window_index, tab_index in plan.tab_closes:
        try:
            browser.close_tab(window_index, tab_index)
        except Exception as exc:
            target = f"window {window_index} tab {tab_index}"
            print(f"warn: close {target} failed ({exc})", file=stderr)
            failures.append(CloseFailure(target=target, message=str(exc)))

    # Indices come from the selection snapshot. If a tab close already emptied
    # a lower window and Safari dropped it, higher indices have shifted down.
    for window_index in plan.window_closes:
        try:
            browser.close_window(window_index)
        except Exception as exc:
            target = f"window {window_index}"
            print(f"warn: close {target} failed ({exc})", file=stderr)
            failures.append(CloseFailure(target=target, message=str(exc)))

    return CloseResult(
        closed=len(plan.tab_closes),
        planned=plan.size,
        failures=tuple(failures),
    )


def reconcile_and_close(
    browser: BrowserProvider,
    selected_urls: Iterable[str],
    empty_windows: Iterable[int] = (),
    *,
    stderr: TextIO = sys.stderr,
    on_plan: Optional[Callable[[ClosePlan], None]] = None,
) -> CloseResult:
    """Re-snapshot, plan and close. Aborts with nothing closed if the snapshot fails."""
    targets = list(selected_urls)
    try:
        snapshot = browser.enumerate()
    except Exception as exc:
        print(f"error: fresh snapshot failed, nothing closed ({exc})", file=stderr)
        return CloseResult(closed=0, planned=0, error=str(exc))

    plan = plan_closures(snapshot, targets, empty_windows)
    if on_plan is not None:
        on_plan(plan)
    return execute_plan(plan, browser, stderr=stderr)
