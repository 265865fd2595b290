"""Wires a browser, a history store and settings into refresh/close actions."""

from __future__ import annotations

import sys
from concurrent.futures import Future
from typing import Optional, TextIO

from .models import BrowserProvider, Classification, CloseResult
from .pinned import PIN_MAX_POSITION, PIN_MIN_WINDOWS
from .pipeline import load_classification
from .staleness import LastVisitFn
from .urls import SIMILARITY_THRESHOLD
from .worker import CloseWorker


class TabSession:
    def __init__(
        self,
        browser: BrowserProvider,
        last_visit_fn: LastVisitFn,
        *,
        stale_days: int,
        max_position: int = PIN_MAX_POSITION,
        min_windows: int = PIN_MIN_WINDOWS,
        threshold: float = SIMILARITY_THRESHOLD,
        load_fn=load_classification,
        stderr: TextIO = sys.stderr,
    ) -> None:
        self._browser = browser
        self._last_visit_fn = last_visit_fn
        self._stale_days = stale_days
        self._max_position = max_position
        self._min_windows = min_windows
        self._threshold = threshold
        self._load_fn = load_fn
        self._stderr = stderr
        self._worker = CloseWorker(browser, on_done=self._after_close, stderr=stderr)
        self.latest: Optional[Classification] = None
        self.last_result: Optional[CloseResult] = None

    @property
    def worker(self) -> CloseWorker:
        return self._worker

    def _classify(self) -> Classification:
        return self._load_fn(
            self._browser,
            self._last_visit_fn,
            stale_days=self._stale_days,
            max_position=self._max_position,
            min_windows=self._min_windows,
            threshold=self._threshold,
            stderr=self._stderr,
        )

    def refresh(self) -> Classification:
        self.latest = self._worker.refresh(self._classify)
        return self.latest

    def close_selected(self, classification: Classification) -> "Future[CloseResult]":
        return self._worker.submit(classification.selected_urls, classification.empty_windows)

    def _after_close(self, result: CloseResult) -> None:
        self.last_result = result
        self.refresh()

    def close(self) -> None:
        self._worker.shutdown()
