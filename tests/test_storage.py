import json

import pytest

from raceframes.models import SCENE_IN_RACE, Frame, FrameLabels
from raceframes.segmenter import segment_races
from raceframes.storage import (
    export_frames_parquet,
    export_races_parquet,
    load_frames_json,
    load_session_json,
    sanitize_name,
    save_session_json,
)


def _frames() -> list[Frame]:
    return [
        Frame(0.0, FrameLabels(scene=SCENE_IN_RACE, position=4, coins=2, events=["shock"])),
        Frame(1.0, FrameLabels(scene=SCENE_IN_RACE, position="x", coins=3)),
        Frame(2.0, FrameLabels(scene=SCENE_IN_RACE, position=3)),
        Frame(3.0, FrameLabels()),
    ]


def test_save_and_load_session(tmp_path):
    frames = _frames()
    races = segment_races(frames)
    path = save_session_json(tmp_path / "out" / "s.json", frames, races, video_name="GP run", sample_interval=0.5)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["frames"][1] == {
        "frame_index": 1,
        "timestamp": 1.0,
        "scene": "in_race",
        "position": "x",
        "coins": 3,
        "events": [],
    }

    loaded = load_session_json(path)
    assert loaded.video_name == "GP run"
    assert loaded.sample_interval == 0.5
    assert loaded.frames == frames
    assert loaded.races == races


def test_load_plain_list_sorted_by_frame_index(tmp_path):
    path = tmp_path / "frames.json"
    rows = [
        {"frame_index": 1, "timestamp": 1.0, "scene": "not_in_race"},
        {"frame_index": 0, "timestamp": 0.0, "scene": "in_race", "position": "2"},
    ]
    path.write_text(json.dumps(rows), encoding="utf-8")
    frames = load_frames_json(path)
    assert [f.timestamp for f in frames] == [0.0, 1.0]
    assert frames[0].labels.position == 2


def test_load_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_frames_json(tmp_path / "missing.json")

    bad_shape = tmp_path / "bad.json"
    bad_shape.write_text(json.dumps({"video_name": "x"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_frames_json(bad_shape)

    not_json = tmp_path / "broken.json"
    not_json.write_text("{", encoding="utf-8")
    with pytest.raises(ValueError):
        load_frames_json(not_json)


def test_sanitize_name():
    assert sanitize_name("Rainbow Road: 150cc.mp4") == "Rainbow_Road_150cc_mp4"
    assert sanitize_name("   ") == "unknown"


def test_parquet_exports(tmp_path):
    pq = pytest.importorskip("pyarrow.parquet")
    frames = _frames()
    races = segment_races(frames)

    frames_path = export_frames_parquet(tmp_path / "frames.parquet", frames)
    table = pq.read_table(frames_path)
    assert table.num_rows == 4
    assert table.column("position").to_pylist() == ["4", "x", "3", None]
    assert table.column("events").to_pylist()[0] == ["shock"]

    races_path = export_races_parquet(tmp_path / "races.parquet", races)
    race_table = pq.read_table(races_path)
    assert race_table.column("position").to_pylist() == [4, 3]
    assert race_table.column("race_number").to_pylist() == [1, 1]


def test_sanitize_name_caps_length():
    name = sanitize_name("Grand Prix " * 20)
    assert len(name) <= 80
    assert not name.endswith("_")
    assert sanitize_name("a" * 10, max_len=4) == "aaaa"


def test_round_trip_keeps_non_integral_labels(tmp_path):
    frames = [
        Frame(float(i), FrameLabels(scene=SCENE_IN_RACE, position=pos, coins=coin))
        for i, (pos, coin) in enumerate(zip([2, 7.9, 2], [3.5, 4, 4]))
    ]
    direct = segment_races(frames)
    path = save_session_json(tmp_path / "s.json", frames, direct)

    reloaded = load_frames_json(path)
    assert [f.labels.position for f in reloaded] == [2, 7.9, 2]
    assert [f.labels.coins for f in reloaded] == [3.5, 4, 4]

    via_import = segment_races(reloaded)
    assert via_import == direct
    assert via_import[0].worst_position == 2
    assert via_import[0].min_coins == 4
