"""CLI configuration helpers for options persistence."""
from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict

LOG_LEVELS: tuple[str, ...] = ("DEBUG", "INFO", "WARNING", "ERROR")

_DEFAULT_LOG_LEVEL = "WARNING"
_DEFAULT_SLOT_COUNT = 3
_MAX_SLOT_COUNT = 9


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    override = os.environ.get("TALEWEAVE_HOME")
    if override:
        return Path(override)
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "Taleweave"
        return Path.home() / "Taleweave"
    return Path.home() / ".config" / "taleweave"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def get_save_dir() -> Path:
    """Return the per-user save directory."""
    return get_user_data_dir() / "saves"


def default_config() -> Dict[str, Any]:
    return {
        "stories_dir": None,
        "save_dir": None,
        "slot_count": _DEFAULT_SLOT_COUNT,
        "log_level": _DEFAULT_LOG_LEVEL,
    }


def _normalize_dir(value: object) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _normalize_slot_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return _DEFAULT_SLOT_COUNT
    return min(max(value, 1), _MAX_SLOT_COUNT)


def normalize_log_level(value: object) -> str:
    if isinstance(value, str) and value.upper() in LOG_LEVELS:
        return value.upper()
    return _DEFAULT_LOG_LEVEL


def _normalize(raw: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "stories_dir": _normalize_dir(raw.get("stories_dir")),
        "save_dir": _normalize_dir(raw.get("save_dir")),
        "slot_count": _normalize_slot_count(raw.get("slot_count")),
        "log_level": normalize_log_level(raw.get("log_level")),
    }


def load_config(path: Path | None = None) -> Dict[str, Any]:
    """Load config from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return default_config()
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return default_config()
    if not isinstance(raw, dict):
        return default_config()
    return _normalize(raw)


def save_config(config: Dict[str, Any], path: Path | None = None) -> None:
    """Persist config to disk."""
    config_path = path or get_default_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)
    payload = _normalize(config)
    config_path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
