"""Frame label and race record models shared by imputation and segmentation."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
import math
import re
from typing import Any

SCENE_IN_RACE = "in_race"
SCENE_NOT_IN_RACE = "not_in_race"
SCENES: tuple[str, ...] = (SCENE_IN_RACE, SCENE_NOT_IN_RACE)

POSITION_NOT_VISIBLE = "x"
POSITION_MIN = 1
POSITION_MAX = 24
COINS_MIN = 0
COINS_MAX = 20

DEFAULT_EVENT_TYPES: tuple[str, ...] = ("shock", "item_hit")

_INT_TEXT_RE = re.compile(r"[+-]?[0-9]+")


def _integral_in_range(value: Any, lo: int, hi: int) -> int | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            return None
    result = int(value)
    if result < lo or result > hi:
        return None
    return result


def numeric_position(value: Any) -> int | None:
    """Return the position as int, or None for unset/not-visible/out-of-range values."""
    return _integral_in_range(value, POSITION_MIN, POSITION_MAX)


def numeric_coins(value: Any) -> int | None:
    """Return the coin count as int, or None for unset/out-of-range values."""
    return _integral_in_range(value, COINS_MIN, COINS_MAX)


def round_half_away(value: float, ndigits: int = 0) -> float:
    """Round half away from zero (2.5 -> 3, -2.5 -> -3); inf and nan pass through."""
    if not math.isfinite(value):
        return float(value)
    quantum = Decimal(1).scaleb(-ndigits)
    rounded = Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP)
    return float(rounded)


def _to_int_or_none(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except Exception:
        try:
            return int(float(value))
        except Exception:
            return None


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except Exception:
        return float(default)


def _coerce_scene(value: Any) -> str | None:
    text = str(value or "").strip().lower()
    return text if text in SCENES else None


def _coerce_label_number(value: Any) -> int | float | None:
    """Numbers pass through untouched; only exact integer strings are converted."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return value
    if isinstance(value, str):
        text = value.strip()
        if _INT_TEXT_RE.fullmatch(text):
            return int(text)
    return None


def _coerce_position(value: Any) -> int | float | str | None:
    if isinstance(value, str) and value.strip().lower() == POSITION_NOT_VISIBLE:
        return POSITION_NOT_VISIBLE
    return _coerce_label_number(value)


def _dedupe_events(values: Any) -> list[str]:
    if not isinstance(values, (list, tuple, set, frozenset)):
        return []
    out: list[str] = []
    for item in values:
        if item is None:
            continue
        tag = str(item)
        if tag and tag not in out:
            out.append(tag)
    return out


@dataclass
class FrameLabels:
    scene: str | None = None
    position: int | float | str | None = None
    coins: int | float | None = None
    events: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "scene": self.scene,
            "position": self.position,
            "coins": self.coins,
            "events": list(self.events),
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "FrameLabels":
        data = d if isinstance(d, dict) else {}
        return cls(
            scene=_coerce_scene(data.get("scene")),
            position=_coerce_position(data.get("position")),
            coins=_coerce_label_number(data.get("coins")),
            events=_dedupe_events(data.get("events")),
        )

    def has_event(self, event: str) -> bool:
        return event in self.events

    def add_event(self, event: str) -> bool:
        if event in self.events:
            return False
        self.events.append(event)
        return True

    def remove_event(self, event: str) -> bool:
        if event not in self.events:
            return False
        self.events = [e for e in self.events if e != event]
        return True


def default_labels() -> FrameLabels:
    return FrameLabels()


def is_labeled(labels: FrameLabels) -> bool:
    return (
        labels.scene is not None
        or labels.position is not None
        or labels.coins is not None
        or len(labels.events) > 0
    )


@dataclass
class Frame:
    """One sampled point of the source video and its labels."""
    timestamp: float
    labels: FrameLabels = field(default_factory=FrameLabels)

    @property
    def in_race(self) -> bool:
        return self.labels.scene == SCENE_IN_RACE

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": float(self.timestamp)}
        data.update(self.labels.to_dict())
        return data

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "Frame":
        data = d if isinstance(d, dict) else {}
        labels_raw = data.get("labels")
        labels = FrameLabels.from_dict(labels_raw if isinstance(labels_raw, dict) else data)
        return cls(timestamp=_to_float(data.get("timestamp"), 0.0), labels=labels)


@dataclass(frozen=True)
class PositionSample:
    timestamp: float
    position: int
    relative_time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "position": self.position,
            "relative_time": self.relative_time,
        }


@dataclass(frozen=True)
class CoinSample:
    timestamp: float
    coins: int
    relative_time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "coins": self.coins,
            "relative_time": self.relative_time,
        }


@dataclass(frozen=True)
class RaceRecord:
    """Summary of one merged stretch of in-race frames.

    total_frames counts every frame of the span including non-race frames
    absorbed by merging; in_race_frames and both histories only cover
    frames labeled in_race.
    """
    race_number: int
    start_time: float
    end_time: float
    duration: float
    total_frames: int
    in_race_frames: int
    position_history: tuple[PositionSample, ...] = ()
    coin_history: tuple[CoinSample, ...] = ()
    best_position: int | None = None
    worst_position: int | None = None
    final_position: int | None = None
    avg_position: float | None = None
    position_changes: int = 0
    final_coins: int | None = None
    max_coins: int | None = None
    min_coins: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "race_number": self.race_number,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "duration": self.duration,
            "total_frames": self.total_frames,
            "in_race_frames": self.in_race_frames,
            "position_history": [p.to_dict() for p in self.position_history],
            "coin_history": [c.to_dict() for c in self.coin_history],
            "best_position": self.best_position,
            "worst_position": self.worst_position,
            "final_position": self.final_position,
            "avg_position": self.avg_position,
            "position_changes": self.position_changes,
            "final_coins": self.final_coins,
            "max_coins": self.max_coins,
            "min_coins": self.min_coins,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any] | None) -> "RaceRecord":
        data = d if isinstance(d, dict) else {}
        positions: list[PositionSample] = []
        for item in data.get("position_history") or []:
            if not isinstance(item, dict):
                continue
            pos = _to_int_or_none(item.get("position"))
            if pos is None:
                continue
            positions.append(
                PositionSample(
                    timestamp=_to_float(item.get("timestamp")),
                    position=pos,
                    relative_time=_to_float(item.get("relative_time")),
                )
            )
        coins: list[CoinSample] = []
        for item in data.get("coin_history") or []:
            if not isinstance(item, dict):
                continue
            value = _to_int_or_none(item.get("coins"))
            if value is None:
                continue
            coins.append(
                CoinSample(
                    timestamp=_to_float(item.get("timestamp")),
                    coins=value,
                    relative_time=_to_float(item.get("relative_time")),
                )
            )
        avg_raw = data.get("avg_position")
        return cls(
            race_number=_to_int_or_none(data.get("race_number")) or 0,
            start_time=_to_float(data.get("start_time")),
            end_time=_to_float(data.get("end_time")),
            duration=_to_float(data.get("duration")),
            total_frames=_to_int_or_none(data.get("total_frames")) or 0,
            in_race_frames=_to_int_or_none(data.get("in_race_frames")) or 0,
            position_history=tuple(positions),
            coin_history=tuple(coins),
            best_position=_to_int_or_none(data.get("best_position")),
            worst_position=_to_int_or_none(data.get("worst_position")),
            final_position=_to_int_or_none(data.get("final_position")),
            avg_position=None if avg_raw is None else _to_float(avg_raw),
            position_changes=_to_int_or_none(data.get("position_changes")) or 0,
            final_coins=_to_int_or_none(data.get("final_coins")),
            max_coins=_to_int_or_none(data.get("max_coins")),
            min_coins=_to_int_or_none(data.get("min_coins")),
        )
