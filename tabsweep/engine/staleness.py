"""Staleness annotation from browsing history."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, Optional, TextIO, Tuple

from .models import Tab

LastVisitFn = Callable[[str], Optional[datetime]]


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _lookup(url: str, last_visit_fn: LastVisitFn, stderr: Optional[TextIO]) -> Optional[datetime]:
    try:
        value = last_visit_fn(url)
    except Exception as exc:
        if stderr is not None:
            print(f"warn: history lookup failed for {url!r} ({exc})", file=stderr)
        return None
    if not isinstance(value, datetime):
        return None
    return _as_aware(value)


def is_stale(last_visit: Optional[datetime], cutoff: datetime) -> bool:
    if last_visit is None:
        return True
    return _as_aware(last_visit) < _as_aware(cutoff)


def mark_stale(
    tabs: Iterable[Tab],
    *,
    stale_days: int,
    last_visit_fn: LastVisitFn,
    now: Optional[datetime] = None,
    stderr: Optional[TextIO] = None,
) -> Tuple[Tab, ...]:
    """Annotate tabs with their last visit and stale flag.

    Unknown history counts as stale. ``stale_days`` is assumed to be >= 1.
    """
    current = _as_aware(now or datetime.now(timezone.utc))
    cutoff = current - timedelta(days=stale_days)

    visits: Dict[str, Optional[datetime]] = {}
    out = []
    for tab in tabs:
        if tab.url not in visits:
            visits[tab.url] = _lookup(tab.url, last_visit_fn, stderr)
        last_visit = visits[tab.url]
        out.append(replace(tab, last_visit=last_visit, is_stale=is_stale(last_visit, cutoff)))
    return tuple(out)
