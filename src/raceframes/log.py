"""Plain-text run log for the analyze command (one ``key=value`` per line)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

LOG_FILE_ENV = "RACEFRAMES_LOG_FILE"


@dataclass
class Logger:
    log_file: Path
    stamp: bool = True

    def kv(self, key: str, value: Any) -> None:
        self._write(f"{key}={value}")

    def kvs(self, **pairs: Any) -> None:
        self._write(" ".join(f"{key}={value}" for key, value in pairs.items()))

    def msg(self, text: str) -> None:
        self._write(text)

    def _write(self, line: str) -> None:
        if self.stamp:
            line = f"[{datetime.now().strftime('%H:%M:%S')}] {line}"
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as f:
            f.write(line.rstrip("\n") + "\n")


def build_log_file_path(log_dir: str | Path, name: str = "analyze") -> Path:
    ts = datetime.now().strftime("%Y%m%d-%H%M%S")
    return Path(log_dir) / f"{ts}_{name}.txt"


def make_logger(log_dir: str | Path, name: str = "analyze", log_file: Path | None = None) -> Logger:
    """Explicit log_file wins, then $RACEFRAMES_LOG_FILE, then a timestamped file in log_dir."""
    if log_file is None:
        env_path = str(os.environ.get(LOG_FILE_ENV) or "").strip()
        log_file = Path(env_path) if env_path else build_log_file_path(log_dir, name)
    return Logger(log_file=log_file)
