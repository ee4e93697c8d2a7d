"""Scene gap imputation and race segmentation for per-frame race labels."""

from raceframes.answers import labels_from_answers, parse_coins, parse_position, parse_scene
from raceframes.imputer import impute_scene
from raceframes.models import Frame, FrameLabels, RaceRecord
from raceframes.segmenter import segment_races

__all__ = [
    "Frame",
    "FrameLabels",
    "RaceRecord",
    "impute_scene",
    "labels_from_answers",
    "parse_coins",
    "parse_position",
    "parse_scene",
    "segment_races",
]
