from raceframes.imputer import impute_scene
from raceframes.models import SCENE_IN_RACE, SCENE_NOT_IN_RACE, Frame, FrameLabels

_SCENES = {"R": SCENE_IN_RACE, "N": SCENE_NOT_IN_RACE, "-": None}


def _frames(pattern: str, positions=None, coins=None) -> list[Frame]:
    positions = positions or [None] * len(pattern)
    coins = coins or [None] * len(pattern)
    return [
        Frame(timestamp=float(i), labels=FrameLabels(scene=_SCENES[ch], position=positions[i], coins=coins[i]))
        for i, ch in enumerate(pattern)
    ]


def _scenes(frames: list[Frame]) -> str:
    inv = {v: k for k, v in _SCENES.items()}
    return "".join(inv[f.labels.scene] for f in frames)


def test_interpolates_positions_across_gap():
    frames = _frames("RNNNR", positions=[4, None, None, None, 8])
    assert impute_scene(frames, min_gap=5) == 3
    assert _scenes(frames) == "RRRRR"
    assert [f.labels.position for f in frames] == [4, 5, 6, 7, 8]


def test_interpolation_rounds_half_away_from_zero():
    frames = _frames("RNR", positions=[1, None, 2])
    impute_scene(frames)
    assert frames[1].labels.position == 2


def test_equal_bounds_give_constant_positions():
    frames = _frames("RNNNR", positions=[1, None, None, None, 1])
    impute_scene(frames)
    assert [f.labels.position for f in frames[1:4]] == [1, 1, 1]


def test_single_numeric_side_is_propagated():
    left_only = _frames("RNNR", positions=[3, None, None, None])
    impute_scene(left_only)
    assert [f.labels.position for f in left_only[1:3]] == [3, 3]

    right_only = _frames("RNNR", positions=["x", None, None, 6])
    impute_scene(right_only)
    assert [f.labels.position for f in right_only[1:3]] == [6, 6]


def test_no_numeric_bounds_leaves_position_untouched():
    frames = _frames("RNNR", positions=["x", None, "x", None])
    assert impute_scene(frames) == 2
    assert _scenes(frames) == "RRRR"
    assert [f.labels.position for f in frames] == ["x", None, "x", None]


def test_out_of_range_bound_is_not_numeric():
    frames = _frames("RNR", positions=[30, None, 5])
    impute_scene(frames)
    assert frames[1].labels.position == 5


def test_long_gap_is_left_unchanged():
    frames = _frames("RNNNNNR", positions=[2, 9, 9, 9, 9, 9, 2])
    assert impute_scene(frames, min_gap=5) == 0
    assert _scenes(frames) == "RNNNNNR"
    assert [f.labels.position for f in frames] == [2, 9, 9, 9, 9, 9, 2]


def test_gap_just_below_threshold_is_repaired():
    frames = _frames("RNNNNR")
    assert impute_scene(frames, min_gap=5) == 4
    assert _scenes(frames) == "RRRRRR"


def test_runs_touching_sequence_ends_are_never_imputed():
    frames = _frames("NNRRNRRN")
    assert impute_scene(frames, min_gap=100) == 1
    assert _scenes(frames) == "NNRRRRRN"


def test_min_gap_zero_disables_imputation():
    frames = _frames("RNR")
    assert impute_scene(frames, min_gap=0) == 0
    assert _scenes(frames) == "RNR"


def test_unset_scene_does_not_count_as_race_bound():
    frames = _frames("R-NR")
    assert impute_scene(frames) == 0
    assert _scenes(frames) == "R-NR"


def test_coins_and_events_are_not_touched():
    frames = _frames("RNR", positions=[1, None, 1], coins=[4, None, 6])
    frames[1].labels.events = ["shock"]
    impute_scene(frames)
    assert frames[1].labels.coins is None
    assert frames[1].labels.events == ["shock"]


def test_race_frames_never_regress():
    frames = _frames("RRNRNNNNNNRRN-RNNR")
    before = [f.labels.scene == SCENE_IN_RACE for f in frames]
    impute_scene(frames, min_gap=3)
    after = [f.labels.scene == SCENE_IN_RACE for f in frames]
    assert all(a for b, a in zip(before, after) if b)


def test_multiple_gaps_counted():
    frames = _frames("RNRNNR")
    assert impute_scene(frames) == 3


def test_empty_sequence():
    frames: list[Frame] = []
    assert impute_scene(frames) == 0
    assert frames == []
