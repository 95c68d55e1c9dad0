from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys

from .clock import RealClock
from .config import ConfigError, Settings, configure_logging, load_settings
from .narration import SESSION_MODE, SingleTrack, SessionStory
from .runner import SessionRunner
from .schedule import Schedule, ScheduleError, build_schedule, format_duration, generate_id, uniform_schedule
from .session import StorySession, WorkoutSession

logger = logging.getLogger(__name__)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="storytimer",
        description="StoryTimer: interval workouts narrated by a story",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="logging level (default from STORYTIMER_LOG_LEVEL)")

    schedule_args = argparse.ArgumentParser(add_help=False)
    schedule_args.add_argument("--schedule", default=None, help="JSON schedule file (list of sets)")
    schedule_args.add_argument("--sets", type=int, default=1, help="number of sets")
    schedule_args.add_argument("--intervals", type=int, default=1, help="intervals per set")
    schedule_args.add_argument("--work", type=int, default=60, help="interval duration (seconds)")
    schedule_args.add_argument("--pause", type=int, default=0, help="pause after each interval (seconds)")
    schedule_args.add_argument("--rest", type=int, default=0, help="rest after each set (seconds)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("plan", parents=[schedule_args], help="show a schedule and its durations")

    run_parser = subparsers.add_parser("run", parents=[schedule_args], help="run a session in the terminal")
    run_parser.add_argument(
        "--tick-seconds",
        type=float,
        default=settings.tick_seconds,
        help="wall-clock seconds per tick (>0)",
    )
    run_parser.add_argument("--story", default=None, help="text file narrated for the whole session")
    run_parser.add_argument("--audio", default=None, help="audio handle narrated for the whole session")

    serve_parser = subparsers.add_parser("serve", help="run the HTTP API")
    serve_parser.add_argument("--host", default=settings.host)
    serve_parser.add_argument("--port", type=int, default=settings.port)

    return parser


def load_schedule_file(path: Path) -> Schedule:
    content = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(content, dict):
        content = content.get("sets", [])
    if not isinstance(content, list):
        raise ScheduleError("schedule file must contain a list of sets")
    return build_schedule(content)


def _schedule_from_args(args: argparse.Namespace, parser: argparse.ArgumentParser) -> Schedule:
    try:
        if args.schedule:
            return load_schedule_file(Path(args.schedule))
        return uniform_schedule(args.sets, args.intervals, args.work, args.pause, args.rest)
    except (OSError, json.JSONDecodeError, ScheduleError) as exc:
        parser.error(f"invalid schedule: {exc}")


def main(argv: list[str] | None = None) -> int:
    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=sys.stderr)
        return 2

    parser = build_parser(settings)
    args = parser.parse_args(argv)
    if not isinstance(logging.getLevelName(args.log_level.upper()), int):
        parser.error(f"--log-level: unknown logging level {args.log_level!r}")
    configure_logging(args.log_level)

    if args.command == "serve":
        return _handle_serve(args, settings)

    schedule = _schedule_from_args(args, parser)
    if args.command == "plan":
        return _handle_plan(schedule)
    if args.command == "run":
        return _handle_run(args, schedule, settings, parser)

    parser.print_help()
    return 2


def _handle_plan(schedule: Schedule) -> int:
    for set_pos, workout_set in enumerate(schedule.sets, start=1):
        print(f"[Set {set_pos}]")
        for interval in workout_set.intervals:
            line = f"  {interval.label}: {format_duration(interval.duration)}"
            if interval.pause_after:
                line += f", pause {format_duration(interval.pause_after)}"
            print(line)
        if workout_set.rest_after and set_pos < len(schedule.sets):
            print(f"  rest {format_duration(workout_set.rest_after)}")
    print(f"Total: {format_duration(schedule.total_seconds)}")
    print(f"Runtime: {format_duration(schedule.runtime_seconds)}")
    return 0


def _handle_run(
    args: argparse.Namespace,
    schedule: Schedule,
    settings: Settings,
    parser: argparse.ArgumentParser,
) -> int:
    if args.tick_seconds <= 0:
        parser.error("--tick-seconds must be positive")

    story = None
    if args.story:
        try:
            story = SessionStory(Path(args.story).read_text(encoding="utf-8"))
        except OSError as exc:
            parser.error(f"cannot read story: {exc}")

    session = WorkoutSession(
        StorySession(
            id=generate_id(),
            schedule=schedule,
            story_mode=SESSION_MODE,
            story=story,
            audio=SingleTrack(args.audio) if args.audio else None,
        ),
        max_retries=settings.audio_retries,
    )
    try:
        result = SessionRunner(clock=RealClock(), stream=sys.stdout).run(session, tick_seconds=args.tick_seconds)
    finally:
        session.discard()
    return 130 if result.interrupted else 0


def _handle_serve(args: argparse.Namespace, settings: Settings) -> int:
    try:
        import uvicorn
    except ImportError as exc:
        print(f"serve needs uvicorn: {exc}", file=sys.stderr)
        return 2

    from .api.app import create_app

    logger.info("serving on %s:%s", args.host, args.port)
    uvicorn.run(create_app(settings=settings), host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0
