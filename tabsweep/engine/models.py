"""Data models for tab classification and closing."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from typing import FrozenSet, Iterable, List, Optional, Protocol, Tuple

Position = Tuple[int, int]


@dataclass(frozen=True)
class Tab:
    window_index: int
    tab_index: int
    title: str
    url: str
    last_visit: Optional[datetime] = None
    is_stale: bool = False
    duplicate_of: Optional[int] = None
    selected: bool = False

    @property
    def position(self) -> Position:
        return (self.window_index, self.tab_index)


@dataclass(frozen=True)
class Classification:
    tabs: Tuple[Tab, ...] = ()
    empty_windows: Tuple[int, ...] = ()
    pinned_urls: FrozenSet[str] = frozenset()
    error: Optional[str] = None

    @property
    def duplicate_count(self) -> int:
        return sum(1 for tab in self.tabs if tab.duplicate_of is not None)

    @property
    def stale_count(self) -> int:
        return sum(1 for tab in self.tabs if tab.is_stale)

    @property
    def selected_urls(self) -> List[str]:
        return [tab.url for tab in self.tabs if tab.selected]


@dataclass(frozen=True)
class ClosePlan:
    tab_closes: Tuple[Position, ...] = ()
    window_closes: Tuple[int, ...] = ()

    @property
    def size(self) -> int:
        return len(self.tab_closes) + len(self.window_closes)


@dataclass(frozen=True)
class CloseFailure:
    target: str
    message: str


@dataclass(frozen=True)
class CloseResult:
    closed: int = 0
    planned: int = 0
    failures: Tuple[CloseFailure, ...] = ()
    error: Optional[str] = None

    @property
    def status(self) -> str:
        if self.error:
            return "error"
        if self.planned == 0:
            return "noop"
        if self.failures:
            return "partial"
        return "ok"


class BrowserProvider(Protocol):
    def enumerate(self) -> List[Tab]: ...

    def close_tab(self, window_index: int, tab_index: int) -> None: ...

    def close_window(self, window_index: int) -> None: ...


def with_selection(tabs: Iterable[Tab], selected: Iterable[int]) -> Tuple[Tab, ...]:
    """Return a new list where exactly the given ordinals are selected."""
    chosen = set(selected)
    return tuple(replace(tab, selected=idx in chosen) for idx, tab in enumerate(tabs))


def toggle_selected(tabs: Tuple[Tab, ...], index: int) -> Tuple[Tab, ...]:
    if index < 0 or index >= len(tabs):
        raise IndexError(f"tab ordinal out of range: {index}")
    target = tabs[index]
    return tabs[:index] + (replace(target, selected=not target.selected),) + tabs[index + 1 :]
