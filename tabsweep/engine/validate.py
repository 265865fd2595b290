"""Invariant checks for classified tab lists."""

from __future__ import annotations

from typing import Sequence, Set

from .models import Position, Tab


def _validate_positions(tabs: Sequence[Tab]) -> None:
    seen: Set[Position] = set()
    for tab in tabs:
        if tab.window_index < 1 or tab.tab_index < 1:
            raise ValueError(f"Invalid tab position: {tab.position}")
        if tab.position in seen:
            raise ValueError(f"Duplicate tab position: {tab.position}")
        seen.add(tab.position)


def _validate_duplicate_links(tabs: Sequence[Tab]) -> None:
    for idx, tab in enumerate(tabs):
        ref = tab.duplicate_of
        if ref is None:
            continue
        if ref < 0 or ref >= idx:
            raise ValueError(f"duplicate_of must point at an earlier tab: #{idx} -> #{ref}")


def validate_classification(tabs: Sequence[Tab]) -> None:
    _validate_positions(tabs)
    _validate_duplicate_links(tabs)
