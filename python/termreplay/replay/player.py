"""
Core Replay Player - 终端会话回放器

按录制时的事件间隔把输出重新写到终端：
- 可变速回放（speed 倍数）
- 可选显示输入事件
- 基于目标偏移的节奏控制，自动纠正调度抖动
"""

import math
import sys
import time
import logging
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, Sequence, TextIO

from .errors import PlaybackError
from .event import EventKind, TerminalEvent
from .summary import summarize
from .timing import PlaybackClock

logger = logging.getLogger(__name__)

RULE = "───────────────────────────────────────"


@dataclass
class PlayerConfig:
    """回放器配置"""

    speed: float = 1.0  # 回放速度倍数
    show_input: bool = False  # 是否显示输入事件
    start_delay: float = 0.0  # 开始前的等待（秒）

    def __post_init__(self):
        if isinstance(self.speed, bool) or not isinstance(self.speed, (int, float)):
            raise ValueError(f"speed must be a number, got {self.speed!r}")
        if not math.isfinite(self.speed) or self.speed <= 0:
            raise ValueError(f"speed must be a finite number > 0, got {self.speed!r}")
        if not math.isfinite(self.start_delay) or self.start_delay < 0:
            raise ValueError(f"start_delay must be >= 0, got {self.start_delay!r}")


@dataclass
class PlaybackResult:
    """回放结果统计"""

    events_played: int = 0
    events_emitted: int = 0
    bytes_emitted: int = 0
    wall_seconds: float = 0.0
    slept_seconds: float = 0.0
    max_lateness_ms: float = 0.0


class SessionPlayer:
    """
    会话回放器

    使用示例：
    ```python
    from termreplay.replay import SessionPlayer, PlayerConfig, load_session

    session = load_session("session_record.jsonl")
    player = SessionPlayer(PlayerConfig(speed=2.0, show_input=True))
    player.play(session.events)
    ```
    """

    def __init__(
        self,
        config: Optional[PlayerConfig] = None,
        output: Optional[BinaryIO] = None,
        console: Optional[TextIO] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or PlayerConfig()
        self.output = output if output is not None else sys.stdout.buffer
        self.console = console if console is not None else sys.stdout
        self._clock = clock
        self._sleep = sleep

    def should_emit(self, event: TerminalEvent) -> bool:
        """输出事件总是显示；输入事件仅在 show_input 时显示"""
        if event.kind == EventKind.OUTPUT:
            return True
        return self.config.show_input and event.kind == EventKind.INPUT

    def play(self, events: Sequence[TerminalEvent]) -> PlaybackResult:
        """
        回放事件序列

        Raises:
            PlaybackError: 写出失败（无法恢复，立即中止）
        """
        result = PlaybackResult()

        if not events:
            self._say("No events to play back.")
            return result

        self._print_banner(events)

        if self.config.start_delay > 0:
            self._sleep(self.config.start_delay)

        pacing = PlaybackClock(self.config.speed, clock=self._clock, sleep=self._sleep)
        pacing.start(base_ms=events[0].time_ms)

        for event in events:
            pacing.wait_for(event.time_ms)
            result.events_played += 1

            if self.should_emit(event):
                self._emit(event.data)
                result.events_emitted += 1
                result.bytes_emitted += event.size

        result.wall_seconds = pacing.elapsed()
        result.slept_seconds = pacing.total_slept
        result.max_lateness_ms = pacing.max_lateness * 1000.0

        self._say("")
        self._say(RULE)
        self._say("🎬 Playback complete!")

        logger.info(
            f"回放完成: {result.events_played} 条事件, "
            f"输出 {result.events_emitted} 条, 用时 {result.wall_seconds:.2f}s, "
            f"最大延迟 {result.max_lateness_ms:.1f}ms"
        )
        return result

    def _emit(self, data: bytes) -> None:
        try:
            self.output.write(data)
            self.output.flush()
        except (OSError, ValueError) as e:
            raise PlaybackError(f"failed to write playback output: {e}") from e

    def _print_banner(self, events: Sequence[TerminalEvent]) -> None:
        summary = summarize(events)
        self._say("🎬 Starting Terminal Time Machine playback...")
        self._say(f"📊 Total events: {summary.total_events}")
        self._say(f"⚡ Speed: {self.config.speed}x")
        self._say(f"📝 Show input: {'Yes' if self.config.show_input else 'No'}")
        self._say(f"⏱️  Duration: {summary.duration_seconds:.2f}s")
        self._say(RULE)

    def _say(self, text: str) -> None:
        try:
            self.console.write(text + "\n")
            self.console.flush()
        except (OSError, ValueError) as e:
            raise PlaybackError(f"failed to write to console: {e}") from e


def play_session(
    events: Sequence[TerminalEvent],
    speed: float = 1.0,
    show_input: bool = False,
    output: Optional[BinaryIO] = None,
    console: Optional[TextIO] = None,
) -> PlaybackResult:
    """
    快捷回放

    Args:
        events: 事件序列
        speed: 回放速度
        show_input: 是否显示输入事件
    """
    config = PlayerConfig(speed=speed, show_input=show_input)
    return SessionPlayer(config, output=output, console=console).play(events)
