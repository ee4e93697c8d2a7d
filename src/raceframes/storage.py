"""JSON import/export of labeled frames and race data, plus Parquet export."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
import json
import logging
import math
from pathlib import Path
import re
from typing import Any

from raceframes.models import Frame, RaceRecord

_LOG = logging.getLogger(__name__)

_SANITIZE_INVALID_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]+')
_SANITIZE_WHITESPACE_RE = re.compile(r"\s+")
_SANITIZE_REPEAT_UNDERSCORE_RE = re.compile(r"_+")
_NAME_MAX_LEN = 80


@dataclass
class SessionData:
    frames: list[Frame] = field(default_factory=list)
    video_name: str = "Untitled"
    sample_interval: float = 1.0
    races: list[RaceRecord] = field(default_factory=list)


def sanitize_name(s: str, max_len: int = _NAME_MAX_LEN) -> str:
    """Turn a video title into a file stem; long titles are cut to max_len."""
    text = str(s or "").strip()
    if not text:
        return "unknown"
    text = _SANITIZE_WHITESPACE_RE.sub("_", text)
    text = _SANITIZE_INVALID_CHARS_RE.sub("_", text)
    text = text.replace(".", "_")
    text = _SANITIZE_REPEAT_UNDERSCORE_RE.sub("_", text).strip("_")
    if max_len > 0:
        text = text[:max_len].rstrip("_")
    return text or "unknown"


def _read_json(path: str | Path) -> Any:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"frames file not found: {p}")
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON in {p}: {exc}") from exc


def _frames_from_rows(rows: Any) -> list[Frame]:
    if not isinstance(rows, list):
        raise ValueError("frames must be a list of objects")
    dict_rows = [row for row in rows if isinstance(row, dict)]
    if len(dict_rows) != len(rows):
        _LOG.warning("storage: skipped %d non-object frame row(s)", len(rows) - len(dict_rows))
    if dict_rows and all("frame_index" in row for row in dict_rows):
        dict_rows = sorted(dict_rows, key=lambda row: _sort_index(row.get("frame_index")))
    return [Frame.from_dict(row) for row in dict_rows]


def _sort_index(value: Any) -> int:
    try:
        return int(value)
    except Exception:
        return 0


def _coerce_interval(value: Any) -> float:
    try:
        interval = float(value)
    except Exception:
        return 1.0
    if not math.isfinite(interval) or interval <= 0:
        return 1.0
    return interval


def load_session_json(path: str | Path) -> SessionData:
    data = _read_json(path)
    if isinstance(data, list):
        return SessionData(frames=_frames_from_rows(data))
    if not isinstance(data, dict):
        raise ValueError("expected a list of frames or an object with a 'frames' list")
    if "frames" not in data:
        raise ValueError("session object has no 'frames' list")
    races_raw = data.get("race_data")
    races = [RaceRecord.from_dict(r) for r in races_raw if isinstance(r, dict)] if isinstance(races_raw, list) else []
    return SessionData(
        frames=_frames_from_rows(data.get("frames")),
        video_name=str(data.get("video_name") or "Untitled"),
        sample_interval=_coerce_interval(data.get("sample_interval", 1.0)),
        races=races,
    )


def load_frames_json(path: str | Path) -> list[Frame]:
    return load_session_json(path).frames


def frame_rows(frames: Sequence[Frame]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for idx, frame in enumerate(frames):
        row: dict[str, Any] = {"frame_index": idx}
        row.update(frame.to_dict())
        rows.append(row)
    return rows


def save_session_json(
    path: str | Path,
    frames: Sequence[Frame],
    races: Sequence[RaceRecord],
    *,
    video_name: str = "Untitled",
    sample_interval: float = 1.0,
) -> Path:
    p = Path(path)
    payload = {
        "video_name": str(video_name or "Untitled"),
        "sample_interval": float(sample_interval),
        "frames": frame_rows(frames),
        "race_data": [r.to_dict() for r in races],
    }
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    _LOG.info("storage: wrote %d frame(s) and %d race(s) to %s", len(frames), len(races), p)
    return p


def _arrow_backend() -> tuple[Any, Any]:
    try:
        import pyarrow as pa  # type: ignore
        import pyarrow.parquet as pq  # type: ignore
    except Exception as exc:
        raise RuntimeError("pyarrow is required for Parquet export") from exc
    return pa, pq


def export_frames_parquet(path: str | Path, frames: Sequence[Frame]) -> Path:
    """Write one row per frame; position is stored as text so the 'x' sentinel survives."""
    pa, pq = _arrow_backend()
    schema = pa.schema(
        [
            pa.field("frame_index", pa.int64()),
            pa.field("timestamp", pa.float64()),
            pa.field("scene", pa.string(), nullable=True),
            pa.field("position", pa.string(), nullable=True),
            pa.field("coins", pa.int32(), nullable=True),
            pa.field("events", pa.list_(pa.string())),
        ]
    )
    columns: dict[str, list[Any]] = {name: [] for name in schema.names}
    for idx, frame in enumerate(frames):
        labels = frame.labels
        columns["frame_index"].append(idx)
        columns["timestamp"].append(float(frame.timestamp))
        columns["scene"].append(labels.scene)
        columns["position"].append(None if labels.position is None else str(labels.position))
        columns["coins"].append(labels.coins if isinstance(labels.coins, int) else None)
        columns["events"].append(list(labels.events))
    table = pa.Table.from_pydict(columns, schema=schema)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, p)
    return p


def export_races_parquet(path: str | Path, races: Sequence[RaceRecord]) -> Path:
    """Write one row per position sample, carrying the race summary columns."""
    pa, pq = _arrow_backend()
    schema = pa.schema(
        [
            pa.field("race_number", pa.int32()),
            pa.field("start_time", pa.float64()),
            pa.field("duration", pa.float64()),
            pa.field("final_position", pa.int32(), nullable=True),
            pa.field("avg_position", pa.float64(), nullable=True),
            pa.field("timestamp", pa.float64()),
            pa.field("relative_time", pa.float64()),
            pa.field("position", pa.int32()),
        ]
    )
    columns: dict[str, list[Any]] = {name: [] for name in schema.names}
    for race in races:
        for sample in race.position_history:
            columns["race_number"].append(race.race_number)
            columns["start_time"].append(race.start_time)
            columns["duration"].append(race.duration)
            columns["final_position"].append(race.final_position)
            columns["avg_position"].append(race.avg_position)
            columns["timestamp"].append(sample.timestamp)
            columns["relative_time"].append(sample.relative_time)
            columns["position"].append(sample.position)
    table = pa.Table.from_pydict(columns, schema=schema)
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    pq.write_table(table, p)
    return p
