"""Session-level figures over a list of race records."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
import math

from raceframes.models import RaceRecord, round_half_away


@dataclass(frozen=True)
class SessionSummary:
    race_count: int = 0
    avg_finish: float | None = None
    wins: int = 0
    podiums: int = 0
    best_finish: int | None = None
    total_race_time: float = 0.0

    def to_dict(self) -> dict[str, object]:
        return {
            "race_count": self.race_count,
            "avg_finish": self.avg_finish,
            "wins": self.wins,
            "podiums": self.podiums,
            "best_finish": self.best_finish,
            "total_race_time": self.total_race_time,
        }


def summarize_races(races: Sequence[RaceRecord]) -> SessionSummary:
    finals = [r.final_position for r in races if r.final_position is not None]
    avg_finish = round_half_away(sum(finals) / len(finals), 1) if finals else None
    return SessionSummary(
        race_count=len(races),
        avg_finish=avg_finish,
        wins=sum(1 for p in finals if p == 1),
        podiums=sum(1 for p in finals if p <= 3),
        best_finish=min(finals) if finals else None,
        total_race_time=round_half_away(sum(r.duration for r in races), 2),
    )


def fmt_ts(seconds: float) -> str:
    """Format seconds as m:ss.s."""
    value = max(0.0, float(seconds))
    minutes = int(math.floor(value / 60.0))
    rest = value - minutes * 60
    return f"{minutes}:{rest:04.1f}"


def ordinal(n: int | None) -> str:
    if n is None:
        return "?"
    value = int(n)
    if 10 <= value % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(value % 10, "th")
    return f"{value}{suffix}"
