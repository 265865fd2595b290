"""Pytest configuration: keep tests away from the real Safari and user config."""

import pytest


def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "live_safari: drives a running Safari through osascript (opt-in only).",
    )


def pytest_collection_modifyitems(config, items):
    skip_live = pytest.mark.skip(reason="live Safari tests run only with -m live_safari")
    if "live_safari" in (config.getoption("-m") or ""):
        return
    for item in items:
        if item.get_closest_marker("live_safari"):
            item.add_marker(skip_live)


@pytest.fixture(autouse=True)
def _isolate_user_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("TABSWEEP_CONFIG_PATH", str(tmp_path / "no-user-config.json"))
    monkeypatch.setenv("TABSWEEP_NOTIFY", "0")
