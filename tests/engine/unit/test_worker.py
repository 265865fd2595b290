import io
import threading

import pytest

from tabsweep.engine.models import ClosePlan, CloseResult
from tabsweep.engine.worker import CloseInProgressError, CloseWorker
from tests.fakes import FakeBrowser


def _blocking_reconcile(started: threading.Event, release: threading.Event):
    def reconcile(browser, targets, windows, *, stderr, on_plan):
        on_plan(ClosePlan(tab_closes=((1, 1),) * len(targets), window_closes=tuple(windows)))
        started.set()
        release.wait(timeout=5)
        return CloseResult(closed=len(targets), planned=len(targets) + len(windows))

    return reconcile


def test_submit_resolves_with_single_terminal_result():
    browser = FakeBrowser([["https://a.com/", "https://a.com/"]])
    done = []
    worker = CloseWorker(browser, on_done=done.append, stderr=io.StringIO())
    try:
        result = worker.submit(["https://a.com/"]).result(timeout=5)
    finally:
        worker.shutdown()

    assert result.closed == 1
    assert done == [result]
    assert browser.urls() == [["https://a.com/"]]
    assert worker.planned == 1
    assert worker.busy is False


def test_second_submit_is_rejected_while_first_is_running():
    started, release = threading.Event(), threading.Event()
    worker = CloseWorker(
        FakeBrowser([]),
        reconcile_fn=_blocking_reconcile(started, release),
        stderr=io.StringIO(),
    )
    try:
        first = worker.submit(["https://a.com/", "https://b.com/"], [3])
        assert started.wait(timeout=5)
        assert worker.busy is True
        assert worker.planned == 3

        with pytest.raises(CloseInProgressError):
            worker.submit(["https://c.com/"])
        with pytest.raises(CloseInProgressError):
            worker.refresh(lambda: "snapshot")

        release.set()
        assert first.result(timeout=5).closed == 2
        assert worker.refresh(lambda: "snapshot") == "snapshot"
    finally:
        release.set()
        worker.shutdown()


def test_worker_accepts_new_request_after_completion():
    browser = FakeBrowser([["https://a.com/", "https://b.com/"]])
    worker = CloseWorker(browser, stderr=io.StringIO())
    try:
        worker.submit(["https://a.com/"]).result(timeout=5)
        worker.submit(["https://b.com/"]).result(timeout=5)
    finally:
        worker.shutdown()

    assert browser.urls() == [[]]


def test_callback_errors_do_not_lose_the_result():
    stderr = io.StringIO()

    def broken(_result):
        raise RuntimeError("ui gone")

    worker = CloseWorker(FakeBrowser([["https://a.com/"]]), on_done=broken, stderr=stderr)
    try:
        result = worker.submit(["https://a.com/"]).result(timeout=5)
    finally:
        worker.shutdown()

    assert result.closed == 1
    assert "close completion callback failed" in stderr.getvalue()


def test_refresh_releases_guard_when_fn_raises():
    worker = CloseWorker(FakeBrowser([]), stderr=io.StringIO())

    def boom():
        raise RuntimeError("enumerate failed")

    try:
        with pytest.raises(RuntimeError):
            worker.refresh(boom)
        assert worker.busy is False
    finally:
        worker.shutdown()
