"""Race segmentation over a labeled frame sequence."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import numpy as np

from raceframes.models import (
    CoinSample,
    Frame,
    PositionSample,
    RaceRecord,
    numeric_coins,
    numeric_position,
    round_half_away,
)

_LOG = logging.getLogger(__name__)


def find_race_spans(frames: Sequence[Frame]) -> list[tuple[int, int]]:
    """Return inclusive [start, end] index pairs of maximal in_race runs."""
    spans: list[tuple[int, int]] = []
    seg_start: int | None = None
    for idx, frame in enumerate(frames):
        if frame.in_race:
            if seg_start is None:
                seg_start = idx
        elif seg_start is not None:
            spans.append((seg_start, idx - 1))
            seg_start = None
    if seg_start is not None:
        spans.append((seg_start, len(frames) - 1))
    return spans


def merge_spans(spans: Sequence[tuple[int, int]], min_gap: int = 5) -> list[tuple[int, int]]:
    """Join spans whose gap (frames strictly between them) is below min_gap."""
    merged: list[tuple[int, int]] = []
    for start, end in spans:
        if merged:
            prev_start, prev_end = merged[-1]
            gap = start - prev_end - 1
            if gap < min_gap:
                merged[-1] = (prev_start, end)
                continue
        merged.append((start, end))
    return merged


def build_race_record(frames: Sequence[Frame], span: tuple[int, int], race_number: int) -> RaceRecord:
    """Compute the summary record for frames[span[0]..span[1]]."""
    si, ei = span
    race_frames = list(frames[si : ei + 1])
    in_race = [f for f in race_frames if f.in_race]
    start_ts = float(race_frames[0].timestamp)
    end_ts = float(race_frames[-1].timestamp)

    positions: list[PositionSample] = []
    coins: list[CoinSample] = []
    for f in in_race:
        ts = float(f.timestamp)
        pos = numeric_position(f.labels.position)
        if pos is not None:
            positions.append(PositionSample(timestamp=ts, position=pos, relative_time=ts - start_ts))
        coin = numeric_coins(f.labels.coins)
        if coin is not None:
            coins.append(CoinSample(timestamp=ts, coins=coin, relative_time=ts - start_ts))

    pv = np.asarray([p.position for p in positions], dtype=np.int64)
    cv = np.asarray([c.coins for c in coins], dtype=np.int64)
    has_pos = pv.size > 0
    has_coins = cv.size > 0

    return RaceRecord(
        race_number=int(race_number),
        start_time=start_ts,
        end_time=end_ts,
        duration=round_half_away(end_ts - start_ts, 2),
        total_frames=len(race_frames),
        in_race_frames=len(in_race),
        position_history=tuple(positions),
        coin_history=tuple(coins),
        best_position=int(pv.min()) if has_pos else None,
        worst_position=int(pv.max()) if has_pos else None,
        final_position=int(pv[-1]) if has_pos else None,
        avg_position=round_half_away(float(pv.mean()), 2) if has_pos else None,
        position_changes=int(np.count_nonzero(np.diff(pv))) if has_pos else 0,
        final_coins=int(cv[-1]) if has_coins else None,
        max_coins=int(cv.max()) if has_coins else None,
        min_coins=int(cv.min()) if has_coins else None,
    )


def segment_races(frames: Sequence[Frame], min_gap: int = 5) -> list[RaceRecord]:
    """Group in_race frames into merged race segments and summarise each one.

    Pure function of ``frames``: nothing is mutated and no state is kept
    between calls.
    """
    spans = find_race_spans(frames)
    if not spans:
        return []
    merged = merge_spans(spans, min_gap=min_gap)
    _LOG.debug("segmenter: raw_spans=%d merged=%d min_gap=%d", len(spans), len(merged), min_gap)
    return [build_race_record(frames, span, race_number) for race_number, span in enumerate(merged, start=1)]
