"""Relabel pipeline for one frame sequence.

Every label change re-runs imputation and segmentation over the whole
sequence; race records are never patched incrementally.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
import logging
from typing import Any

from raceframes.imputer import impute_scene
from raceframes.models import (
    DEFAULT_EVENT_TYPES,
    SCENE_IN_RACE,
    SCENE_NOT_IN_RACE,
    Frame,
    RaceRecord,
    default_labels,
    is_labeled,
)
from raceframes.segmenter import segment_races

_LOG = logging.getLogger(__name__)

_SETTABLE_KEYS: frozenset[str] = frozenset({"scene", "position", "coins"})


class _Mixed:
    def __repr__(self) -> str:
        return "MIXED"


MIXED: Any = _Mixed()


@dataclass
class LabelConsensus:
    """Shared label values over a selection; MIXED where selected frames disagree."""
    scene: Any = MIXED
    position: Any = MIXED
    coins: Any = MIXED
    events: dict[str, bool] = field(default_factory=dict)


@dataclass(frozen=True)
class LabelStats:
    total: int = 0
    labeled: int = 0
    in_race: int = 0
    not_in_race: int = 0
    positions: int = 0
    coins: int = 0
    events: int = 0


class LabelSession:
    """Single-writer owner of a frame sequence and its derived races."""
    def __init__(
        self,
        frames: Sequence[Frame] | None = None,
        *,
        impute_min_gap: int = 5,
        segment_min_gap: int = 5,
        impute_enabled: bool = True,
    ) -> None:
        self.frames: list[Frame] = list(frames or [])
        self.impute_min_gap = int(impute_min_gap)
        self.segment_min_gap = int(segment_min_gap)
        self.impute_enabled = bool(impute_enabled)
        self.races: list[RaceRecord] = []
        self.last_imputed = 0

    def refresh(self) -> int:
        """Run imputation then segmentation; return the number of frames imputed."""
        imputed = impute_scene(self.frames, self.impute_min_gap) if self.impute_enabled else 0
        self.races = segment_races(self.frames, self.segment_min_gap)
        self.last_imputed = imputed
        _LOG.debug("session.refresh frames=%d imputed=%d races=%d", len(self.frames), imputed, len(self.races))
        return imputed

    def apply_label(self, indices: Iterable[int], key: str, value: Any) -> None:
        if key == "events":
            return
        if key not in _SETTABLE_KEYS:
            raise KeyError(f"unknown label key: {key}")
        selected = self._resolve(indices)
        if not selected:
            return
        for idx in selected:
            setattr(self.frames[idx].labels, key, value)
        self.refresh()

    def toggle_event(self, indices: Iterable[int], event: str) -> None:
        selected = self._resolve(indices)
        if not selected:
            return
        all_have = all(self.frames[idx].labels.has_event(event) for idx in selected)
        for idx in selected:
            if all_have:
                self.frames[idx].labels.remove_event(event)
            else:
                self.frames[idx].labels.add_event(event)
        self.refresh()

    def clear_labels(self, indices: Iterable[int]) -> None:
        selected = self._resolve(indices)
        if not selected:
            return
        for idx in selected:
            self.frames[idx].labels = default_labels()
        self.refresh()

    def next_unlabeled(self, focus: int = -1) -> int | None:
        """Return the first unlabeled index after focus, wrapping around."""
        n = len(self.frames)
        start = focus + 1 if focus >= 0 else 0
        for offset in range(n):
            idx = (start + offset) % n
            if not is_labeled(self.frames[idx].labels):
                return idx
        return None

    def consensus(
        self,
        indices: Iterable[int],
        event_types: Sequence[str] = DEFAULT_EVENT_TYPES,
    ) -> LabelConsensus:
        selected = self._resolve(indices)
        if not selected:
            return LabelConsensus(events={ev: False for ev in event_types})
        first = self.frames[selected[0]].labels
        result = LabelConsensus(
            scene=first.scene,
            position=first.position,
            coins=first.coins,
            events={ev: first.has_event(ev) for ev in event_types},
        )
        for idx in selected[1:]:
            labels = self.frames[idx].labels
            if labels.scene != result.scene:
                result.scene = MIXED
            if labels.position != result.position:
                result.position = MIXED
            if labels.coins != result.coins:
                result.coins = MIXED
            for ev in event_types:
                if not labels.has_event(ev):
                    result.events[ev] = False
        return result

    def stats(self) -> LabelStats:
        labeled = in_race = not_in_race = positions = coins = events = 0
        for frame in self.frames:
            labels = frame.labels
            if is_labeled(labels):
                labeled += 1
            if labels.scene == SCENE_IN_RACE:
                in_race += 1
            elif labels.scene == SCENE_NOT_IN_RACE:
                not_in_race += 1
            if labels.position is not None:
                positions += 1
            if labels.coins is not None:
                coins += 1
            if labels.events:
                events += 1
        return LabelStats(
            total=len(self.frames),
            labeled=labeled,
            in_race=in_race,
            not_in_race=not_in_race,
            positions=positions,
            coins=coins,
            events=events,
        )

    def _resolve(self, indices: Iterable[int]) -> list[int]:
        n = len(self.frames)
        out: list[int] = []
        seen: set[int] = set()
        for raw in indices:
            idx = int(raw)
            if idx < 0 or idx >= n:
                raise IndexError(f"frame index out of range: {idx}")
            if idx not in seen:
                seen.add(idx)
                out.append(idx)
        return out
