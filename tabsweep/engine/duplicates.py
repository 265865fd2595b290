"""Exact and fuzzy duplicate detection over an ordered tab list."""

from __future__ import annotations

from dataclasses import replace
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import Tab
from .urls import SIMILARITY_THRESHOLD, are_similar_urls


def find_duplicate_of(
    index: int,
    urls: Sequence[str],
    *,
    threshold: float = SIMILARITY_THRESHOLD,
) -> Optional[int]:
    url = urls[index]
    for earlier in range(index):
        other = urls[earlier]
        if url == other or are_similar_urls(url, other, threshold=threshold):
            return earlier
    return None


def mark_duplicates(tabs: Iterable[Tab], *, threshold: float = SIMILARITY_THRESHOLD) -> Tuple[Tab, ...]:
    """Link each tab to the first earlier tab it duplicates.

    Single forward pass, first match wins. Links are not followed
    transitively: if A~B and B~C but not A~C, C points at B.
    """
    ordered = tuple(tabs)
    urls: List[str] = [tab.url for tab in ordered]
    out = []
    for idx, tab in enumerate(ordered):
        duplicate_of = find_duplicate_of(idx, urls, threshold=threshold)
        out.append(replace(tab, duplicate_of=duplicate_of, selected=duplicate_of is not None))
    return tuple(out)
