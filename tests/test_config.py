import json
from pathlib import Path

import pytest

from tabsweep import config
from tabsweep.config import (
    DEFAULT_CFG,
    ConfigError,
    load_cfg,
    load_settings,
    merge_cfg,
    settings_from_cfg,
    validate_stale_days,
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("TABSWEEP_STALE_DAYS", "TABSWEEP_PREVIEW", "TABSWEEP_HISTORY_PATH", "TABSWEEP_SIMILARITY"):
        monkeypatch.delenv(name, raising=False)


def test_merge_cfg_applies_layers_in_order():
    merged = merge_cfg({"staleDays": 3, "preview": True}, None, {"staleDays": 10})

    assert merged["staleDays"] == 10
    assert merged["preview"] is True
    assert merged["pinnedMaxPosition"] == DEFAULT_CFG["pinnedMaxPosition"]


def test_defaults_build_valid_settings():
    settings = settings_from_cfg(DEFAULT_CFG)

    assert settings.stale_days == 7
    assert settings.pinned_max_position == 4
    assert settings.pinned_min_windows == 3
    assert settings.similarity_threshold == 0.70
    assert settings.preview is False
    assert settings.history_path is None


def test_validate_stale_days_rejects_values_below_one():
    assert validate_stale_days("2") == 2
    with pytest.raises(ConfigError, match="at least 1"):
        validate_stale_days(0)
    with pytest.raises(ConfigError, match="integer"):
        validate_stale_days("soon")
    with pytest.raises(ConfigError, match="integer"):
        validate_stale_days(True)


def test_settings_reject_bad_thresholds():
    with pytest.raises(ConfigError, match="similarityThreshold"):
        settings_from_cfg(merge_cfg({"similarityThreshold": 1.5}))
    with pytest.raises(ConfigError, match="pinnedMinWindows"):
        settings_from_cfg(merge_cfg({"pinnedMinWindows": 0}))


def test_load_cfg_missing_file_is_empty(tmp_path: Path):
    assert load_cfg(tmp_path / "config.json") == {}


def test_load_cfg_rejects_non_object_and_bad_json(tmp_path: Path):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    listy = tmp_path / "list.json"
    listy.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(ConfigError, match="Unreadable"):
        load_cfg(bad)
    with pytest.raises(ConfigError, match="JSON object"):
        load_cfg(listy)


def test_load_settings_precedence_file_env_overrides(tmp_path: Path, monkeypatch):
    cfg_path = tmp_path / "config.json"
    cfg_path.write_text(json.dumps({"staleDays": 14, "preview": True, "selectStale": "yes"}), encoding="utf-8")

    assert load_settings(cfg_path).stale_days == 14

    monkeypatch.setenv("TABSWEEP_STALE_DAYS", "21")
    monkeypatch.setenv("TABSWEEP_PREVIEW", "0")
    settings = load_settings(cfg_path)
    assert settings.stale_days == 21
    assert settings.preview is False
    assert settings.select_stale is True

    assert load_settings(cfg_path, {"staleDays": 2}).stale_days == 2


def test_env_history_path_and_similarity(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TABSWEEP_HISTORY_PATH", str(tmp_path / "H.db"))
    monkeypatch.setenv("TABSWEEP_SIMILARITY", "3")

    settings = load_settings(tmp_path / "missing.json")

    assert settings.history_path == tmp_path / "H.db"
    assert settings.similarity_threshold == 1.0


def test_env_stale_days_must_be_an_integer(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TABSWEEP_STALE_DAYS", "a week")

    with pytest.raises(ConfigError, match="TABSWEEP_STALE_DAYS"):
        load_settings(tmp_path / "missing.json")


def test_env_helpers_parse_and_clamp(monkeypatch):
    monkeypatch.delenv("TABSWEEP_TEST_FLAG", raising=False)
    assert config._env_flag("TABSWEEP_TEST_FLAG", default=True) is True
    monkeypatch.setenv("TABSWEEP_TEST_FLAG", "on")
    assert config._env_flag("TABSWEEP_TEST_FLAG") is True

    monkeypatch.setenv("TABSWEEP_TEST_FLOAT", "-2")
    assert config._env_float("TABSWEEP_TEST_FLOAT", 0.7, minimum=0.0, maximum=1.0) == 0.0
    monkeypatch.setenv("TABSWEEP_TEST_FLOAT", "bad")
    assert config._env_float("TABSWEEP_TEST_FLOAT", 0.7, minimum=0.0, maximum=1.0) == 0.7


def test_config_path_honors_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("TABSWEEP_CONFIG_PATH", str(tmp_path / "c.json"))

    assert config.config_path() == tmp_path / "c.json"
