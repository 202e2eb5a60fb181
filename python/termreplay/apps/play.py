#!/usr/bin/env python3
"""
Terminal Time Machine Player - replay terminal sessions like a movie

Usage:
    termreplay-play                              # play session_record.jsonl
    termreplay-play -f demo.jsonl --speed 2.0    # 2x speed
    termreplay-play --info                       # session information only
    termreplay-play --show-input                 # also display typed input
"""

import argparse
import logging
import math
import sys
from typing import List, Optional

from ..config import DEFAULT_RECORD_FILE, DEFAULT_SPEED, DEFAULT_START_DELAY
from ..replay import (
    PlayerConfig,
    SessionPlayer,
    TermReplayError,
    format_summary,
    load_session,
)

logger = logging.getLogger("termreplay.play")


def positive_float(value: str) -> float:
    """argparse type: finite float > 0"""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not math.isfinite(number) or number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return number


def non_negative_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not math.isfinite(number) or number < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termreplay-play",
        description="Replay terminal sessions like a movie!",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  termreplay-play -f session_record.jsonl
  termreplay-play --speed 2.0 --show-input
  termreplay-play --info
        """,
    )
    parser.add_argument(
        "--file", "-f",
        default=DEFAULT_RECORD_FILE,
        help=f"JSONL recording file to play (default: {DEFAULT_RECORD_FILE})",
    )
    parser.add_argument(
        "--speed", "-s",
        type=positive_float,
        default=str(DEFAULT_SPEED),
        metavar="MULTIPLIER",
        help=f"Playback speed multiplier, e.g. 2.0 for 2x speed (default: {DEFAULT_SPEED})",
    )
    parser.add_argument(
        "--info", "-i",
        action="store_true",
        help="Show session information only",
    )
    parser.add_argument(
        "--show-input",
        action="store_true",
        help="Show input events during playback",
    )
    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Start playback without waiting for Enter",
    )
    parser.add_argument(
        "--delay",
        type=non_negative_float,
        default=str(DEFAULT_START_DELAY),
        metavar="SECONDS",
        help=f"Pause before the first event (default: {DEFAULT_START_DELAY})",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    print("🎞️  Terminal Time Machine Player")
    print(f"Loading session: {args.file}")

    try:
        session = load_session(args.file)
        print(format_summary(session.summary))

        if args.info:
            return 0

        if not args.yes and not session.is_empty:
            print("\nPress Enter to start playback...")
            sys.stdin.readline()

        config = PlayerConfig(
            speed=args.speed,
            show_input=args.show_input,
            start_delay=args.delay,
        )
        SessionPlayer(config).play(session.events)

    except TermReplayError as e:
        logger.debug("playback failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\n\nPlayback interrupted", file=sys.stderr)
        return 130

    return 0


if __name__ == "__main__":
    sys.exit(main())
