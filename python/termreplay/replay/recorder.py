"""
Core Replay Recorder - 终端会话录制器

在伪终端上运行 shell，同时：
- 实时转发：用户按键立即送达 shell，shell 输出立即显示
- 录制：两个方向的数据都带上相对开始时刻的时间戳写入事件日志

并发模型：
- 输入循环运行在独立的守护线程上（用户输入 -> PTY）
- 输出循环运行在调用线程上（PTY -> 显示），PTY 结束即会话结束
- 两个循环只通过 EventLogSink 的队列共享日志文件
"""

import os
import select
import sys
import time
import threading
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional

from ..config import (
    DEFAULT_COLS,
    DEFAULT_RECORD_FILE,
    DEFAULT_ROWS,
    DEFAULT_SHELL,
    INPUT_CHUNK_SIZE,
    OUTPUT_CHUNK_SIZE,
)
from ..terminal.pty_process import PtyProcess
from ..terminal.raw_mode import get_mode, raw_terminal
from .errors import TerminalModeError
from .event import TerminalEvent
from .sink import EventLogSink

logger = logging.getLogger(__name__)


@dataclass
class RecorderConfig:
    """录制器配置"""

    output_path: str = DEFAULT_RECORD_FILE
    shell: str = DEFAULT_SHELL
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    input_chunk_size: int = INPUT_CHUNK_SIZE  # 单次读取用户输入的上限
    output_chunk_size: int = OUTPUT_CHUNK_SIZE  # 单次读取 PTY 输出的上限
    input_join_timeout: float = 0.5  # 会话结束后等待输入线程的时间（秒）
    env: Optional[Dict[str, str]] = None  # shell 环境变量，None 表示继承


@dataclass
class RecordingStats:
    """录制统计"""

    output_path: Optional[Path] = None
    exit_code: Optional[int] = None
    input_events: int = 0
    output_events: int = 0
    input_bytes: int = 0
    output_bytes: int = 0
    dropped_events: int = 0
    duration_ms: int = 0

    @property
    def total_events(self) -> int:
        return self.input_events + self.output_events


class FdReader:
    """
    按块读取文件描述符（用户输入）

    read 阻塞在 select 上，stop() 通过内部管道唤醒它并让其返回 b""，
    会话结束后输入线程因此能够及时退出。
    """

    def __init__(self, fd: int):
        self.fd = fd
        self._wake_r, self._wake_w = os.pipe()
        self._stopped = False
        self._closed = False

    def read(self, size: int) -> bytes:
        if self._stopped:
            return b""
        readable, _, _ = select.select([self.fd, self._wake_r], [], [])
        if self._wake_r in readable:
            return b""
        return os.read(self.fd, size)

    def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        os.write(self._wake_w, b"\0")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        os.close(self._wake_r)
        os.close(self._wake_w)


class TerminalRecorder:
    """
    终端会话录制器

    使用示例：
    ```python
    from termreplay.replay import TerminalRecorder, RecorderConfig

    recorder = TerminalRecorder(RecorderConfig(output_path="demo.jsonl"))
    stats = recorder.record()
    print(stats.total_events)
    ```
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config or RecorderConfig()
        self._clock = clock
        self._t0 = 0.0
        self._input_thread: Optional[threading.Thread] = None

    def record(
        self,
        stdin_fd: Optional[int] = None,
        display: Optional[BinaryIO] = None,
    ) -> RecordingStats:
        """
        录制一次完整会话

        准备顺序：检查终端 -> 创建日志 -> 启动 shell -> 进入 raw 模式。
        stdin 不是终端时不会触碰已有的日志文件，也不会启动 shell；
        前面的步骤失败时终端模式不会被修改；raw 模式在任何退出路径上都会恢复。

        Raises:
            RecorderSetupError: 日志文件、PTY 或 shell 启动失败
            TerminalModeError: 终端模式无法读取或修改
        """
        if stdin_fd is None:
            stdin_fd = self._stdin_fileno()
        get_mode(stdin_fd)
        display = display if display is not None else sys.stdout.buffer

        sink = EventLogSink.open(self.config.output_path)
        try:
            channel = PtyProcess.spawn(
                self.config.shell,
                size=(self.config.rows, self.config.cols),
                env=self.config.env,
            )
            user_input = FdReader(stdin_fd)
            try:
                with channel, raw_terminal(stdin_fd):
                    return self.capture(channel, user_input, display, sink)
            finally:
                user_input.stop()
                user_input.close()
        finally:
            sink.close()

    def capture(self, channel, user_input, display: BinaryIO, sink: EventLogSink) -> RecordingStats:
        """
        运行两个采集循环直到 PTY 输出结束

        Args:
            channel: PTY 控制端，需提供 read/write/wait/terminate
            user_input: 用户输入源，需提供 read；若提供 stop，会话结束时调用以唤醒输入线程
            display: 显示输出流，需提供 write/flush
            sink: 事件日志写入器，本方法返回前会被关闭
        """
        stats = RecordingStats(output_path=sink.path)
        self._t0 = self._clock()

        self._input_thread = threading.Thread(
            target=self._input_loop,
            args=(user_input, channel, sink, stats),
            name="input-capture",
            daemon=True,
        )
        self._input_thread.start()
        logger.info("开始录制")

        self._output_loop(channel, display, sink, stats)

        # PTY 输出结束是会话结束的唯一依据；回收 shell 后再收尾
        stats.exit_code = channel.wait()
        stats.duration_ms = self._elapsed_ms()

        stop = getattr(user_input, "stop", None)
        if stop is not None:
            stop()
        sink.close()
        self._input_thread.join(timeout=self.config.input_join_timeout)
        if self._input_thread.is_alive():
            logger.warning("输入线程未能及时退出")
        stats.dropped_events = sink.dropped

        logger.info(
            f"录制结束: exit={stats.exit_code}, "
            f"输入 {stats.input_events} 条/{stats.input_bytes} 字节, "
            f"输出 {stats.output_events} 条/{stats.output_bytes} 字节, "
            f"丢弃 {stats.dropped_events} 条, 时长 {stats.duration_ms}ms"
        )
        return stats

    @staticmethod
    def _stdin_fileno() -> int:
        try:
            return sys.stdin.fileno()
        except (AttributeError, OSError, ValueError) as e:
            raise TerminalModeError(f"stdin has no file descriptor: {e}") from e

    def _elapsed_ms(self) -> int:
        return int((self._clock() - self._t0) * 1000)

    def _input_loop(self, user_input, channel, sink: EventLogSink, stats: RecordingStats) -> None:
        """输入循环：用户输入 -> PTY，转发成功后记录"""
        while True:
            try:
                data = user_input.read(self.config.input_chunk_size)
            except OSError as e:
                logger.warning(f"读取用户输入失败: {e}")
                break

            if not data:
                logger.debug("用户输入已结束")
                break

            # 先送达 shell，日志延迟不能变成输入延迟
            try:
                channel.write(data)
            except OSError as e:
                logger.debug(f"转发输入失败，PTY 已关闭: {e}")
                break

            if sink.append(TerminalEvent.input(self._elapsed_ms(), data)):
                stats.input_events += 1
                stats.input_bytes += len(data)

    def _output_loop(self, channel, display: BinaryIO, sink: EventLogSink, stats: RecordingStats) -> None:
        """输出循环：PTY -> 显示，显示后记录"""
        while True:
            try:
                data = channel.read(self.config.output_chunk_size)
            except OSError as e:
                logger.warning(f"读取 PTY 输出失败: {e}")
                channel.terminate()
                break

            if not data:
                logger.debug("PTY 输出已结束")
                break

            try:
                display.write(data)
                display.flush()
            except (OSError, ValueError) as e:
                logger.error(f"显示输出失败，结束会话: {e}")
                channel.terminate()
                break

            if sink.append(TerminalEvent.output(self._elapsed_ms(), data)):
                stats.output_events += 1
                stats.output_bytes += len(data)
