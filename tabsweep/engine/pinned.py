"""Positional-frequency heuristic for pinned tabs."""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterable, Set, Tuple

from .models import Tab

PIN_MAX_POSITION = 4
PIN_MIN_WINDOWS = 3


@dataclass(frozen=True)
class PinnedResult:
    tabs: Tuple[Tab, ...]
    empty_windows: Tuple[int, ...]
    pinned_urls: FrozenSet[str]


def _is_candidate(tab: Tab, max_position: int) -> bool:
    return tab.tab_index <= max_position


def find_pinned_urls(
    tabs: Iterable[Tab],
    *,
    max_position: int = PIN_MAX_POSITION,
    min_windows: int = PIN_MIN_WINDOWS,
) -> FrozenSet[str]:
    windows_by_url: Dict[str, Set[int]] = defaultdict(set)
    for tab in tabs:
        if _is_candidate(tab, max_position):
            windows_by_url[tab.url].add(tab.window_index)
    return frozenset(url for url, windows in windows_by_url.items() if len(windows) >= min_windows)


def filter_pinned(
    tabs: Iterable[Tab],
    *,
    max_position: int = PIN_MAX_POSITION,
    min_windows: int = PIN_MIN_WINDOWS,
) -> PinnedResult:
    """Drop pinned tabs and report the windows left with nothing in them.

    A URL is pinned when it sits in the first ``max_position`` slots of at
    least ``min_windows`` distinct windows.
    """
    snapshot = tuple(tabs)
    pinned = find_pinned_urls(snapshot, max_position=max_position, min_windows=min_windows)

    totals: Counter = Counter()
    removed: Counter = Counter()
    kept = []
    for tab in snapshot:
        totals[tab.window_index] += 1
        if tab.url in pinned and _is_candidate(tab, max_position):
            removed[tab.window_index] += 1
            continue
        kept.append(tab)

    empty = sorted(window for window, total in totals.items() if total > 0 and total == removed[window])
    return PinnedResult(tabs=tuple(kept), empty_windows=tuple(empty), pinned_urls=pinned)
