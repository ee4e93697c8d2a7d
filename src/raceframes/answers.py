"""Parsing of free-text vision model answers into frame label values."""

from __future__ import annotations

import re

from raceframes.models import (
    COINS_MAX,
    COINS_MIN,
    POSITION_MAX,
    POSITION_MIN,
    SCENE_IN_RACE,
    SCENE_NOT_IN_RACE,
    FrameLabels,
)

SCENE_QUESTION = "Is this an active mario kart race? Response yes no or unsure"
POSITION_QUESTION = (
    "What position number (1-24) is shown? Respond with just the number or n/a if nothing is shown."
)
COINS_QUESTION = "How many coins are shown? Respond with just the number or n/a if nothing is shown."

_PUNCT_RE = re.compile(r"[.,!]")
_INT_RE = re.compile(r"\d+")


def parse_scene(answer: str) -> str:
    text = _PUNCT_RE.sub("", str(answer or "").strip().lower()).strip()
    if text == "yes":
        return SCENE_IN_RACE
    if text in {"no", "unsure"}:
        return SCENE_NOT_IN_RACE
    if "yes" in text and "no" not in text and "unsure" not in text:
        return SCENE_IN_RACE
    return SCENE_NOT_IN_RACE


def _first_int(answer: str) -> int | None:
    match = _INT_RE.search(str(answer or "").strip())
    if match is None:
        return None
    return int(match.group(0))


def parse_position(answer: str) -> int | None:
    value = _first_int(answer)
    if value is None or value < POSITION_MIN or value > POSITION_MAX:
        return None
    return value


def parse_coins(answer: str) -> int | None:
    text = str(answer or "").strip().lower()
    if not text or "n/a" in text or "nothing" in text:
        return None
    value = _first_int(text)
    if value is None or value < COINS_MIN or value > COINS_MAX:
        return None
    return value


def labels_from_answers(
    scene_answer: str,
    position_answer: str | None = None,
    coins_answer: str | None = None,
) -> FrameLabels:
    """Build labels from raw answers; HUD answers only count for in-race frames."""
    labels = FrameLabels(scene=parse_scene(scene_answer))
    if labels.scene != SCENE_IN_RACE:
        return labels
    if position_answer is not None:
        labels.position = parse_position(position_answer)
    if coins_answer is not None:
        labels.coins = parse_coins(coins_answer)
    return labels
