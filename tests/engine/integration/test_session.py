import io

from tabsweep.engine.models import toggle_selected
from tabsweep.engine.session import TabSession
from tests.fakes import FakeBrowser

PIN = "https://mail.example.com/"


def _session(browser):
    return TabSession(browser, lambda _url: None, stale_days=7, stderr=io.StringIO())


def test_close_selected_closes_duplicates_and_pinned_only_windows_then_refreshes():
    browser = FakeBrowser(
        [
            [PIN, "https://a.com/x", "https://a.com/x"],
            [PIN, "https://b.com/"],
            [PIN],
        ]
    )
    session = _session(browser)
    try:
        before = session.refresh()
        assert before.selected_urls == ["https://a.com/x"]
        assert before.empty_windows == (3,)

        result = session.close_selected(before).result(timeout=5)
    finally:
        session.close()

    assert result.closed == 1
    assert result.planned == 2
    assert result.status == "ok"
    assert browser.urls() == [[PIN, "https://a.com/x"], [PIN, "https://b.com/"]]
    assert session.last_result == result
    assert session.latest is not before
    # Only two windows still open the pinned URL up front, so it is no longer pinned.
    assert [t.url for t in session.latest.tabs] == [PIN, "https://a.com/x", PIN, "https://b.com/"]
    assert session.latest.tabs[2].duplicate_of == 0


def test_selection_made_on_stale_snapshot_still_closes_by_url():
    browser = FakeBrowser([["https://a.com/", "https://b.com/", "https://c.com/"]])
    session = _session(browser)
    try:
        listing = session.refresh()
        chosen = type(listing)(tabs=toggle_selected(listing.tabs, 2))

        # The user opens a tab at the front before confirming.
        browser.windows[0].insert(0, "https://new.com/")

        result = session.close_selected(chosen).result(timeout=5)
    finally:
        session.close()

    assert result.closed == 1
    assert browser.urls() == [["https://new.com/", "https://a.com/", "https://b.com/"]]
