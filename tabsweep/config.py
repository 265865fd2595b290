"""Configuration defaults, file loading and environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

APP_SUPPORT = Path("~/Library/Application Support/TabSweep").expanduser()
DEFAULT_CFG_PATH = APP_SUPPORT / "config.json"

DEFAULT_CFG: Dict = {
    "staleDays": 7,
    "pinnedMaxPosition": 4,
    "pinnedMinWindows": 3,
    "similarityThreshold": 0.70,
    "preview": False,
    "historyPath": "",
    "selectStale": False,
    "osascriptTimeout": 30,
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class Settings:
    stale_days: int
    pinned_max_position: int
    pinned_min_windows: int
    similarity_threshold: float
    preview: bool
    history_path: Optional[Path]
    select_stale: bool
    osascript_timeout: float


def config_path() -> Path:
    return Path(os.environ.get("TABSWEEP_CONFIG_PATH", str(DEFAULT_CFG_PATH))).expanduser()


def load_cfg(p: Path) -> dict:
    if not p.exists():
        return {}
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Unreadable config {p}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Config must be a JSON object: {p}")
    return data


def merge_cfg(*layers: Optional[Mapping]) -> Dict:
    merged = dict(DEFAULT_CFG)
    for layer in layers:
        if layer:
            merged.update(layer)
    return merged


def _cfg_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    v = str(value).strip().lower()
    if v in {"1", "true", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on", "y"}


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return None
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _env_float(name: str, default: float, *, minimum: float, maximum: float) -> float:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    if parsed < minimum:
        return minimum
    if parsed > maximum:
        return maximum
    return parsed


def env_overrides() -> Dict:
    out: Dict = {}
    stale_days = _env_int("TABSWEEP_STALE_DAYS")
    if stale_days is not None:
        out["staleDays"] = stale_days
    if "TABSWEEP_PREVIEW" in os.environ:
        out["preview"] = _env_flag("TABSWEEP_PREVIEW")
    history_path = os.environ.get("TABSWEEP_HISTORY_PATH")
    if history_path:
        out["historyPath"] = history_path
    if "TABSWEEP_SIMILARITY" in os.environ:
        out["similarityThreshold"] = _env_float(
            "TABSWEEP_SIMILARITY",
            float(DEFAULT_CFG["similarityThreshold"]),
            minimum=0.0,
            maximum=1.0,
        )
    return out


def validate_stale_days(value: object) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"staleDays must be an integer, got {value!r}")
    try:
        days = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"staleDays must be an integer, got {value!r}") from exc
    if days < 1:
        raise ConfigError(f"staleDays must be at least 1, got {days}")
    return days


def _positive_int(cfg: Mapping, key: str) -> int:
    value = cfg.get(key)
    try:
        parsed = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be an integer, got {value!r}") from exc
    if parsed < 1:
        raise ConfigError(f"{key} must be at least 1, got {parsed}")
    return parsed


def _unit_float(cfg: Mapping, key: str) -> float:
    value = cfg.get(key)
    try:
        parsed = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{key} must be a number, got {value!r}") from exc
    if not 0.0 <= parsed <= 1.0:
        raise ConfigError(f"{key} must be between 0 and 1, got {parsed}")
    return parsed


def settings_from_cfg(cfg: Mapping) -> Settings:
    history_raw = str(cfg.get("historyPath") or "").strip()
    timeout = cfg.get("osascriptTimeout", DEFAULT_CFG["osascriptTimeout"])
    try:
        timeout_value = float(timeout)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"osascriptTimeout must be a number, got {timeout!r}") from exc
    return Settings(
        stale_days=validate_stale_days(cfg.get("staleDays")),
        pinned_max_position=_positive_int(cfg, "pinnedMaxPosition"),
        pinned_min_windows=_positive_int(cfg, "pinnedMinWindows"),
        similarity_threshold=_unit_float(cfg, "similarityThreshold"),
        preview=_cfg_bool(cfg.get("preview"), default=False),
        history_path=Path(history_raw).expanduser() if history_raw else None,
        select_stale=_cfg_bool(cfg.get("selectStale"), default=False),
        osascript_timeout=max(1.0, timeout_value),
    )


def load_settings(path: Optional[Path] = None, overrides: Optional[Mapping] = None) -> Settings:
    """Defaults < config file < environment < explicit overrides."""
    file_cfg = load_cfg(path or config_path())
    return settings_from_cfg(merge_cfg(file_cfg, env_overrides(), overrides))
