"""Classification pipeline: pinned filter, staleness, duplicates."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Callable, Iterable, Optional, TextIO

from .duplicates import mark_duplicates
from .models import BrowserProvider, Classification, Tab
from .pinned import PIN_MAX_POSITION, PIN_MIN_WINDOWS, filter_pinned
from .staleness import LastVisitFn, mark_stale
from .urls import SIMILARITY_THRESHOLD
from .validate import validate_classification


def classify_snapshot(
    raw_tabs: Iterable[Tab],
    *,
    stale_days: int,
    last_visit_fn: LastVisitFn,
    now: Optional[datetime] = None,
    max_position: int = PIN_MAX_POSITION,
    min_windows: int = PIN_MIN_WINDOWS,
    threshold: float = SIMILARITY_THRESHOLD,
    filter_pinned_fn=filter_pinned,
    mark_stale_fn=mark_stale,
    mark_duplicates_fn=mark_duplicates,
    validate_fn: Callable[[tuple], None] = validate_classification,
    stderr: Optional[TextIO] = None,
) -> Classification:
    raw = tuple(raw_tabs)
    pinned = filter_pinned_fn(raw, max_position=max_position, min_windows=min_windows)
    stale = mark_stale_fn(
        pinned.tabs,
        stale_days=stale_days,
        last_visit_fn=last_visit_fn,
        now=now,
        stderr=stderr,
    )
    tabs = mark_duplicates_fn(stale, threshold=threshold)
    validate_fn(tabs)

    result = Classification(
        tabs=tabs,
        empty_windows=pinned.empty_windows,
        pinned_urls=pinned.pinned_urls,
    )
    if stderr is not None:
        print(
            "classify diagnostics: "
            f"total={len(raw)} "
            f"pinned={len(raw) - len(tabs)} "
            f"pinned_urls={len(pinned.pinned_urls)} "
            f"empty_windows={len(pinned.empty_windows)} "
            f"duplicates={result.duplicate_count} "
            f"stale={result.stale_count} "
            f"stale_days={stale_days}",
            file=stderr,
        )
    return result


def load_classification(
    browser: BrowserProvider,
    last_visit_fn: LastVisitFn,
    *,
    stale_days: int,
    now: Optional[datetime] = None,
    max_position: int = PIN_MAX_POSITION,
    min_windows: int = PIN_MIN_WINDOWS,
    threshold: float = SIMILARITY_THRESHOLD,
    stderr: TextIO = sys.stderr,
) -> Classification:
    """Enumerate the browser and classify; enumeration failure yields an empty result."""
    try:
        raw = browser.enumerate()
    except Exception as exc:
        print(f"error: tab enumeration failed ({exc})", file=stderr)
        return Classification(error=str(exc))

    return classify_snapshot(
        raw,
        stale_days=stale_days,
        last_visit_fn=last_visit_fn,
        now=now,
        max_position=max_position,
        min_windows=min_windows,
        threshold=threshold,
        stderr=stderr,
    )
