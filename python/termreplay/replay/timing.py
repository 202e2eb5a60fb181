"""
Core Replay Timing - 回放节奏控制

每个事件的等待时间按 "目标偏移 - 已流逝时间" 计算，而不是累加每次的
sleep 时长。某个事件因调度抖动迟到时，后续事件仍按各自的目标偏移输出，
误差不会累积。
"""

import time
from typing import Callable, Optional


class PlaybackClock:
    """
    回放时钟

    使用示例：
    ```python
    clock = PlaybackClock(speed=2.0)
    clock.start(base_ms=events[0].time_ms)
    for event in events:
        clock.wait_for(event.time_ms)
        emit(event)
    ```
    """

    def __init__(
        self,
        speed: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if not speed > 0:
            raise ValueError(f"speed must be > 0, got {speed!r}")

        self.speed = speed
        self._clock = clock
        self._sleep = sleep

        self._start: Optional[float] = None
        self.base_ms = 0

        # 统计
        self.total_slept = 0.0
        self.max_lateness = 0.0

    @property
    def started(self) -> bool:
        return self._start is not None

    def start(self, base_ms: int = 0) -> None:
        """以当前时刻作为回放起点，base_ms 为首个事件的时间戳"""
        self._start = self._clock()
        self.base_ms = base_ms
        self.total_slept = 0.0
        self.max_lateness = 0.0

    def elapsed(self) -> float:
        """回放开始后流逝的秒数"""
        if self._start is None:
            return 0.0
        return self._clock() - self._start

    def target_offset(self, time_ms: int) -> float:
        """事件应当输出的时刻（相对回放起点，秒）"""
        return (time_ms - self.base_ms) / 1000.0 / self.speed

    def wait_for(self, time_ms: int) -> float:
        """
        等待到事件的目标时刻

        Returns:
            实际请求的 sleep 秒数（已迟到则为 0）
        """
        if self._start is None:
            self.start(time_ms)

        delay = self.target_offset(time_ms) - self.elapsed()
        if delay > 0:
            self._sleep(delay)
            self.total_slept += delay
            return delay

        self.max_lateness = max(self.max_lateness, -delay)
        return 0.0
