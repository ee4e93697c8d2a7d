from __future__ import annotations

import configparser
from dataclasses import dataclass
from pathlib import Path

from raceframes.models import DEFAULT_EVENT_TYPES

APP_VERSION = "0.1.0"

APP_NAME = "raceframes"


@dataclass(frozen=True)
class Cfg:
    root: Path
    config_file: Path
    impute_enabled: bool = True
    impute_min_gap: int = 5
    segment_min_gap: int = 5
    event_types: tuple[str, ...] = DEFAULT_EVENT_TYPES
    log_dir: Path | None = None


def load_cfg(project_root: str | Path, config_file: str | Path = "config/defaults.ini") -> Cfg:
    root = Path(project_root).resolve()
    cfg_path = (root / config_file).resolve()

    cp = configparser.ConfigParser()
    cp.read(cfg_path, encoding="utf-8")

    impute_enabled = _get_bool(cp, "analysis", "impute_enabled", True)
    impute_min_gap = max(0, _get_int(cp, "analysis", "impute_min_gap", 5))
    segment_min_gap = max(0, _get_int(cp, "analysis", "segment_min_gap", 5))
    events_raw = _get_str(cp, "labels", "event_types", ",".join(DEFAULT_EVENT_TYPES))
    event_types = tuple(e.strip() for e in events_raw.split(",") if e.strip()) or DEFAULT_EVENT_TYPES
    log_dir = root / _get_str(cp, "logging", "log_dir", "_logs")

    return Cfg(
        root=root,
        config_file=cfg_path,
        impute_enabled=impute_enabled,
        impute_min_gap=impute_min_gap,
        segment_min_gap=segment_min_gap,
        event_types=event_types,
        log_dir=log_dir,
    )


def _get_int(cp: configparser.ConfigParser, section: str, key: str, default: int) -> int:
    try:
        return int(cp.get(section, key, fallback=str(default)).strip())
    except Exception:
        return int(default)


def _get_bool(cp: configparser.ConfigParser, section: str, key: str, default: bool) -> bool:
    try:
        return cp.getboolean(section, key, fallback=default)
    except Exception:
        return bool(default)


def _get_str(cp: configparser.ConfigParser, section: str, key: str, default: str) -> str:
    try:
        return str(cp.get(section, key, fallback=default)).strip()
    except Exception:
        return str(default)
