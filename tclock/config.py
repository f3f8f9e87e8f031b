"""Command line parsing and the validated run configuration."""
from __future__ import annotations

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from tclock.common import APP_NAME, APP_VERSION
from tclock.timer_engine import ClockMode, CountdownMode, Mode, StopwatchMode, TimeBar
from tclock.utils import parse_duration

DEFAULT_REFRESH = 0.1
DEFAULT_HIGHLIGHT = 10.0
DEFAULT_COUNTDOWN = 5 * 60.0


@dataclass(frozen=True)
class Theme:
    digits: str = "red"
    caption: str = "blue"
    bar: str = "blue"
    alarm: str = "bold yellow reverse"


@dataclass(frozen=True)
class Configuration:
    mode: Mode = field(default_factory=ClockMode)
    target: Optional[float] = None
    refresh_interval: float = DEFAULT_REFRESH
    theme: Theme = field(default_factory=Theme)
    alarm_highlight_duration: float = DEFAULT_HIGHLIGHT
    time_bar: Optional[TimeBar] = None
    auto_start: bool = True
    notify: bool = True
    sound: bool = True
    sound_id: str = "complete"
    log_dir: Path = Path("logs")
    verbosity: int = 0

    @property
    def countdown_target(self) -> float:
        """Target used when switching into countdown mode at runtime."""
        return self.target if self.target else DEFAULT_COUNTDOWN


def _duration(text: str) -> float:
    try:
        value = parse_duration(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))
    if value <= 0:
        raise argparse.ArgumentTypeError(f"duration must be positive: {text!r}")
    return value


def _seconds(text: str) -> float:
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}")
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Make your terminal into a big clock, countdown or stopwatch.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")

    modes = parser.add_mutually_exclusive_group()
    modes.add_argument("--countdown", "-c", metavar="DURATION", type=_duration,
                       help="Count down from DURATION (90, 5m, 1h2m3s)")
    modes.add_argument("--stopwatch", "-t", action="store_true",
                       help="Show time since start")

    bars = parser.add_mutually_exclusive_group()
    bars.add_argument("--bar", "-b", choices=("minute", "hour", "day"),
                      help="Clock mode: show progress through the current minute/hour/day")
    bars.add_argument("--custom", "-C", metavar="DURATION", type=_duration,
                      help="Clock mode: show a time bar that restarts every DURATION")
    parser.add_argument("--refresh", type=_duration, default=DEFAULT_REFRESH, metavar="SECONDS",
                        help=f"Refresh interval (default {DEFAULT_REFRESH}s)")
    parser.add_argument("--highlight", type=_seconds, default=DEFAULT_HIGHLIGHT, metavar="SECONDS",
                        help=f"Seconds to flash the digits after a countdown ends (default {DEFAULT_HIGHLIGHT:g})")
    parser.add_argument("--color", default=Theme.digits, help="Digit color (default red)")
    parser.add_argument("--paused", action="store_true",
                        help="Start countdown/stopwatch paused")
    parser.add_argument("--no-notify", dest="notify", action="store_false",
                        help="Disable desktop notifications")
    parser.add_argument("--no-sound", dest="sound", action="store_false",
                        help="Disable the alarm sound")
    parser.add_argument("--sound-id", default="complete",
                        help="Sound theme name or file played on alarm (default complete)")
    parser.add_argument("--log-dir", type=Path, default=Path("logs"),
                        help="Directory for the log file (default ./logs)")
    parser.add_argument("--verbose", "-v", action="count", default=0,
                        help="More log output (repeatable)")
    return parser


def from_args(args: argparse.Namespace) -> Configuration:
    if args.countdown is not None:
        mode: Mode = CountdownMode(target=args.countdown)
    elif args.stopwatch:
        mode = StopwatchMode()
    else:
        mode = ClockMode()

    return Configuration(
        mode=mode,
        target=args.countdown,
        refresh_interval=args.refresh,
        theme=Theme(digits=args.color),
        alarm_highlight_duration=args.highlight,
        time_bar=args.custom if args.custom is not None else args.bar,
        auto_start=not args.paused,
        notify=args.notify,
        sound=args.sound,
        sound_id=args.sound_id,
        log_dir=args.log_dir,
        verbosity=args.verbose,
    )


def parse_args(argv: Sequence[str] | None = None) -> Configuration:
    return from_args(build_parser().parse_args(argv))
