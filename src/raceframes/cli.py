"""
raceframes-analyze: repair scene labels and segment races from a frames file.

Usage:
    raceframes-analyze <frames.json> [--out DIR] [--parquet] [--timeline]

Loads a frame sequence (a list of frame objects or a saved session), runs
gap imputation followed by race segmentation, prints a report and writes
<video_name>_races.json next to the input (or into --out). It exits 1
rather than overwrite the input file.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from datetime import datetime, timezone
import logging
from pathlib import Path
import sys

from raceframes.cfg import APP_NAME, APP_VERSION, load_cfg
from raceframes.log import make_logger
from raceframes.models import SCENE_IN_RACE, Frame, RaceRecord
from raceframes.session import LabelSession
from raceframes.storage import (
    export_frames_parquet,
    export_races_parquet,
    load_session_json,
    sanitize_name,
    save_session_json,
)
from raceframes.summary import SessionSummary, fmt_ts, ordinal, summarize_races

SEP = "=" * 76
SUB_SEP = "-" * 76


def _fmt_opt(value: object) -> str:
    return "-" if value is None else str(value)


def render_race_table(races: Sequence[RaceRecord]) -> list[str]:
    lines = [
        f"  {'#':>3}  {'start':>8}  {'end':>8}  {'dur s':>8}  {'frames':>7}  {'in race':>7}"
        f"  {'final':>5}  {'best':>5}  {'worst':>5}  {'avg':>6}  {'chg':>4}  {'coins':>5}",
        SUB_SEP,
    ]
    for race in races:
        lines.append(
            f"  {race.race_number:>3}  {fmt_ts(race.start_time):>8}  {fmt_ts(race.end_time):>8}"
            f"  {race.duration:>8.2f}  {race.total_frames:>7}  {race.in_race_frames:>7}"
            f"  {(ordinal(race.final_position) if race.final_position is not None else '-'):>5}"
            f"  {_fmt_opt(race.best_position):>5}  {_fmt_opt(race.worst_position):>5}"
            f"  {_fmt_opt(race.avg_position):>6}  {race.position_changes:>4}  {_fmt_opt(race.final_coins):>5}"
        )
    return lines


def render_summary(summary: SessionSummary) -> list[str]:
    avg = "-" if summary.avg_finish is None else f"{summary.avg_finish:.1f}"
    return [
        f"  Races            : {summary.race_count}",
        f"  Avg finish       : {avg}",
        f"  Best finish      : {(ordinal(summary.best_finish) if summary.best_finish is not None else '-')}",
        f"  Wins / podiums   : {summary.wins} / {summary.podiums}",
        f"  Total race time  : {round(summary.total_race_time)}s",
    ]


def render_timeline(frames: Sequence[Frame], before_scenes: Sequence[str | None], races: Sequence[RaceRecord]) -> list[str]:
    """One line per frame; '*' marks frames reclassified by imputation."""
    lines = [f"  {'idx':>5}  {'time':>8}  {'scene':<12}  {'pos':>3}  {'coins':>5}  {'race':>4}  events", SUB_SEP]
    for idx, frame in enumerate(frames):
        labels = frame.labels
        mark = "*" if before_scenes[idx] != SCENE_IN_RACE and labels.scene == SCENE_IN_RACE else " "
        race_no = next((r.race_number for r in races if r.start_time <= frame.timestamp <= r.end_time), None)
        lines.append(
            f" {mark}{idx:>5}  {fmt_ts(frame.timestamp):>8}  {_fmt_opt(labels.scene):<12}"
            f"  {_fmt_opt(labels.position):>3}  {_fmt_opt(labels.coins):>5}  {_fmt_opt(race_no):>4}"
            f"  {','.join(labels.events)}"
        )
    return lines


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="raceframes-analyze",
        description=(
            "Repair short scene-classification gaps and segment races.\n"
            "Reads a frames JSON file, prints a race report and writes\n"
            "<video_name>_races.json (plus Parquet files with --parquet)."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("frames_path", help="Path to the frames / session JSON file")
    parser.add_argument("--config", default="config/defaults.ini", help="INI file with analysis defaults")
    parser.add_argument("--out", default="", help="Output directory (default: next to the input)")
    parser.add_argument("--impute-min-gap", type=int, default=None, help="Longest gap (frames) repaired is N-1")
    parser.add_argument("--segment-min-gap", type=int, default=None, help="Races closer than N frames merge")
    parser.add_argument("--no-impute", action="store_true", help="Skip gap imputation")
    parser.add_argument("--parquet", action="store_true", help="Also write frames/races Parquet files")
    parser.add_argument("--timeline", action="store_true", help="Print a per-frame timeline")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    cfg = load_cfg(Path.cwd(), args.config)
    log = make_logger(cfg.log_dir or Path.cwd() / "_logs")
    log.msg(f"{APP_NAME} {APP_VERSION} analyze start")

    frames_path = Path(args.frames_path).expanduser().resolve()
    log.kv("frames_path", frames_path)
    try:
        session_data = load_session_json(frames_path)
    except (FileNotFoundError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        log.kv("error", exc)
        return 1

    out_dir = Path(args.out).expanduser().resolve() if args.out else frames_path.parent
    base = sanitize_name(session_data.video_name if session_data.video_name != "Untitled" else frames_path.stem)
    out_path = out_dir / f"{base}_races.json"
    if out_path == frames_path:
        print(f"ERROR: output would overwrite the input file {frames_path}; pass --out DIR", file=sys.stderr)
        log.kv("error", "output_is_input")
        return 1

    impute_min_gap = cfg.impute_min_gap if args.impute_min_gap is None else max(0, args.impute_min_gap)
    segment_min_gap = cfg.segment_min_gap if args.segment_min_gap is None else max(0, args.segment_min_gap)
    session = LabelSession(
        session_data.frames,
        impute_min_gap=impute_min_gap,
        segment_min_gap=segment_min_gap,
        impute_enabled=cfg.impute_enabled and not args.no_impute,
    )
    before_scenes = [f.labels.scene for f in session.frames]
    imputed = session.refresh()
    summary = summarize_races(session.races)
    stats = session.stats()
    log.kvs(frames=stats.total, imputed=imputed, races=summary.race_count)

    lines: list[str] = []
    lines.append(SEP)
    lines.append(f"  {APP_NAME} race analysis")
    lines.append(f"  Source  : {frames_path}")
    lines.append(f"  Video   : {session_data.video_name}")
    lines.append(f"  Created : {datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')}")
    lines.append(SEP)
    lines.append(
        f"  Frames {stats.total}  labeled {stats.labeled}  in_race {stats.in_race}"
        f"  not_in_race {stats.not_in_race}  imputed {imputed}"
    )
    lines.append(f"  min_gap impute={impute_min_gap} segment={segment_min_gap}")
    lines.append("")
    if args.timeline:
        lines.extend(render_timeline(session.frames, before_scenes, session.races))
        lines.append("")
    if session.races:
        lines.extend(render_race_table(session.races))
    else:
        lines.append("  No races detected.")
    lines.append("")
    lines.append(SEP)
    lines.append("  SUMMARY")
    lines.append(SEP)
    lines.extend(render_summary(summary))
    lines.append(SEP)
    print("\n".join(lines))

    out_json = save_session_json(
        out_path,
        session.frames,
        session.races,
        video_name=session_data.video_name,
        sample_interval=session_data.sample_interval,
    )
    print(f"Races written: {out_json}")
    log.kv("out_json", out_json)

    if args.parquet:
        try:
            frames_pq = export_frames_parquet(out_dir / f"{base}_frames.parquet", session.frames)
            races_pq = export_races_parquet(out_dir / f"{base}_races.parquet", session.races)
        except RuntimeError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            log.kv("error", exc)
            return 1
        print(f"Parquet written: {frames_pq}, {races_pq}")
        log.kv("out_parquet", races_pq)

    log.msg("analyze done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
