"""Single-flight background worker for snapshot and close operations.

Only one close or re-snapshot touches the browser at a time. A close request
that arrives while another is outstanding is rejected, not queued.
"""

from __future__ import annotations

import sys
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, TextIO, TypeVar

from .models import BrowserProvider, ClosePlan, CloseResult
from .reconcile import reconcile_and_close

T = TypeVar("T")


class CloseInProgressError(RuntimeError):
    pass


class CloseWorker:
    def __init__(
        self,
        browser: BrowserProvider,
        *,
        on_done: Optional[Callable[[CloseResult], None]] = None,
        reconcile_fn=reconcile_and_close,
        stderr: TextIO = sys.stderr,
    ) -> None:
        self._browser = browser
        self._on_done = on_done
        self._reconcile_fn = reconcile_fn
        self._stderr = stderr
        self._busy = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tabsweep-close")
        self.planned: Optional[int] = None

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    def submit(self, selected_urls: Iterable[str], empty_windows: Iterable[int] = ()) -> "Future[CloseResult]":
        if not self._busy.acquire(blocking=False):
            raise CloseInProgressError("a close request is already in progress")
        targets = list(selected_urls)
        windows = list(empty_windows)
        self.planned = None
        try:
            return self._executor.submit(self._run, targets, windows)
        except Exception:
            self._busy.release()
            raise

    def _record_plan(self, plan: ClosePlan) -> None:
        self.planned = plan.size

    def _run(self, targets: List[str], windows: List[int]) -> CloseResult:
        try:
            result = self._reconcile_fn(
                self._browser,
                targets,
                windows,
                stderr=self._stderr,
                on_plan=self._record_plan,
            )
        finally:
            self._busy.release()
        if self._on_done is not None:
            try:
                self._on_done(result)
            except Exception as exc:
                print(f"warn: close completion callback failed ({exc})", file=self._stderr)
        return result

    def refresh(self, fn: Callable[[], T]) -> T:
        """Run a re-snapshot under the same guard as closes."""
        if not self._busy.acquire(blocking=False):
            raise CloseInProgressError("cannot refresh while a close is in progress")
        try:
            return fn()
        finally:
            self._busy.release()

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)
