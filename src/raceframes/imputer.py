"""Scene gap imputation.

Short runs of ``not_in_race`` frames that sit between two ``in_race`` frames
are treated as classifier misses and reclassified to ``in_race``. Positions
across a repaired run are linearly interpolated from the bounding frames.
Coins and events are left alone.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from raceframes.models import SCENE_IN_RACE, SCENE_NOT_IN_RACE, Frame, numeric_position, round_half_away

_LOG = logging.getLogger(__name__)


def impute_scene(frames: Sequence[Frame], min_gap: int = 5) -> int:
    """Reclassify short bounded not-in-race runs in place and return the frame count changed."""
    n = len(frames)
    imputed = 0
    i = 0
    while i < n:
        if frames[i].labels.scene != SCENE_NOT_IN_RACE:
            i += 1
            continue
        j = i
        while j < n and frames[j].labels.scene == SCENE_NOT_IN_RACE:
            j += 1
        run_len = j - i
        has_left = i > 0 and frames[i - 1].labels.scene == SCENE_IN_RACE
        has_right = j < n and frames[j].labels.scene == SCENE_IN_RACE
        if run_len < min_gap and has_left and has_right:
            _fill_run(frames, i, j)
            imputed += run_len
            _LOG.debug("imputer: run [%d, %d) len=%d reclassified", i, j, run_len)
        i = j
    if imputed:
        _LOG.info("imputer: %d frame(s) reclassified as in_race (min_gap=%d)", imputed, min_gap)
    return imputed


def _fill_run(frames: Sequence[Frame], start: int, stop: int) -> None:
    """Mark frames[start:stop] in_race and fill positions from frames start-1 and stop."""
    lp = numeric_position(frames[start - 1].labels.position)
    rp = numeric_position(frames[stop].labels.position)
    span = stop - (start - 1)
    for k in range(start, stop):
        labels = frames[k].labels
        labels.scene = SCENE_IN_RACE
        if lp is not None and rp is not None:
            offset = k - (start - 1)
            labels.position = int(round_half_away(lp + (offset / span) * (rp - lp)))
        elif lp is not None:
            labels.position = lp
        elif rp is not None:
            labels.position = rp
