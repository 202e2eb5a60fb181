#!/usr/bin/env python3
"""
Terminal Time Machine Recorder - record an interactive shell session

Usage:
    termreplay-record                        # bash, 80x24, session_record.jsonl
    termreplay-record -o demo.jsonl          # custom output file
    termreplay-record --shell "zsh -l"       # another shell
    termreplay-record --log-file rec.log -v  # debug log to a file

Type 'exit' or press Ctrl+D in the recorded shell to stop recording.
"""

import argparse
import logging
import sys
from typing import List, Optional

from ..config import DEFAULT_COLS, DEFAULT_RECORD_FILE, DEFAULT_ROWS, DEFAULT_SHELL
from ..replay import RecorderConfig, TermReplayError, TerminalRecorder

logger = logging.getLogger("termreplay.record")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="termreplay-record",
        description="Record a terminal session to a JSONL event log",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  termreplay-record
  termreplay-record --output my_session.jsonl --shell /bin/zsh
        """,
    )
    parser.add_argument(
        "--output", "-o",
        default=DEFAULT_RECORD_FILE,
        help=f"Event log path (default: {DEFAULT_RECORD_FILE})",
    )
    parser.add_argument(
        "--shell",
        default=DEFAULT_SHELL,
        help=f"Shell command to record (default: {DEFAULT_SHELL})",
    )
    parser.add_argument(
        "--rows",
        type=int,
        default=DEFAULT_ROWS,
        help=f"Terminal rows (default: {DEFAULT_ROWS})",
    )
    parser.add_argument(
        "--cols",
        type=int,
        default=DEFAULT_COLS,
        help=f"Terminal columns (default: {DEFAULT_COLS})",
    )
    parser.add_argument(
        "--log-file",
        help="Write logs to this file instead of stderr",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def setup_logging(verbose: bool, log_file: Optional[str]) -> None:
    # raw 模式下 stderr 上的日志会打乱屏幕，默认只输出警告
    if log_file:
        level = logging.DEBUG if verbose else logging.INFO
    else:
        level = logging.DEBUG if verbose else logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
        filename=log_file,
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.rows <= 0 or args.cols <= 0:
        parser.error("--rows and --cols must be positive")

    setup_logging(args.verbose, args.log_file)

    config = RecorderConfig(
        output_path=args.output,
        shell=args.shell,
        rows=args.rows,
        cols=args.cols,
    )

    print(f"🎥 Recording session to: {config.output_path}")
    print(f"Shell: {config.shell} ({config.cols}x{config.rows})")
    print("Type 'exit' or press Ctrl+D to stop recording\n")
    sys.stdout.flush()

    try:
        stats = TerminalRecorder(config).record()
    except TermReplayError as e:
        logger.debug("recording failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"\n🎬 Recording saved to: {stats.output_path}")
    print(
        f"Events: {stats.total_events} "
        f"(input {stats.input_events}, output {stats.output_events}), "
        f"duration {stats.duration_ms / 1000.0:.2f}s"
    )
    if stats.dropped_events:
        print(
            f"Warning: {stats.dropped_events} events could not be written",
            file=sys.stderr,
        )
    return 0


if __name__ == "__main__":
    sys.exit(main())
