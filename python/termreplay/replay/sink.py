"""
Core Replay Sink - 事件日志写入器

录制时输入、输出两个采集循环共享同一个日志文件。写入由一个独立线程
独占完成：采集循环只把事件放进队列，写线程逐条 encode + write + flush，
因此每一行都是完整的一条记录，不会被另一个循环拆开。

单条事件写入失败只记录警告并计数，不影响正在进行的交互会话。
"""

import logging
import threading
from pathlib import Path
from queue import Queue
from typing import IO, Optional, Union

from .codec import encode_event
from .errors import RecorderSetupError
from .event import TerminalEvent

logger = logging.getLogger(__name__)

_STOP = object()


class EventLogSink:
    """
    事件日志写入器

    使用示例：
    ```python
    with EventLogSink.open("session_record.jsonl") as sink:
        sink.append(TerminalEvent.output(0, b"$ "))
    ```
    """

    def __init__(self, stream: IO[str], path: Optional[Union[str, Path]] = None):
        self.stream = stream
        self.path = Path(path) if path is not None else None

        self._queue: "Queue[object]" = Queue()
        self._lock = threading.Lock()
        self._closed = False

        # 统计
        self.stats = {
            "events_written": 0,
            "events_dropped": 0,
            "bytes_written": 0,
        }

        self._writer_thread = threading.Thread(
            target=self._write_loop, name="event-log-sink", daemon=True
        )
        self._writer_thread.start()

    @classmethod
    def open(cls, path: Union[str, Path]) -> "EventLogSink":
        """创建（覆盖）日志文件并启动写线程"""
        path = Path(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            stream = open(path, "w", encoding="utf-8", newline="\n")
        except OSError as e:
            raise RecorderSetupError(f"cannot create session log {path}: {e}") from e
        logger.info(f"创建会话日志: {path}")
        return cls(stream, path=path)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def dropped(self) -> int:
        return self.stats["events_dropped"]

    def append(self, event: TerminalEvent) -> bool:
        """提交一条事件，写线程按提交顺序写出；已关闭时丢弃"""
        with self._lock:
            if self._closed:
                logger.debug(f"日志已关闭，丢弃事件 t={event.time_ms}ms")
                return False
            self._queue.put(event)
            return True

    def close(self) -> None:
        """写完队列中剩余的事件后关闭文件"""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_STOP)

        self._writer_thread.join()
        try:
            self.stream.close()
        except OSError as e:
            logger.warning(f"关闭会话日志失败: {e}")

        logger.info(
            f"会话日志已关闭: 写入 {self.stats['events_written']} 条, "
            f"丢弃 {self.stats['events_dropped']} 条"
        )

    def _write_loop(self) -> None:
        """写线程：逐条写出并 flush"""
        while True:
            item = self._queue.get()
            if item is _STOP:
                break
            self._write_one(item)

    def _write_one(self, event: TerminalEvent) -> None:
        line = encode_event(event) + "\n"
        try:
            self.stream.write(line)
            self.stream.flush()
        except (OSError, ValueError) as e:
            # ValueError: 底层文件已被关闭
            self.stats["events_dropped"] += 1
            logger.warning(f"写入事件失败 (t={event.time_ms}ms): {e}")
            return

        self.stats["events_written"] += 1
        self.stats["bytes_written"] += len(line)

    def __enter__(self) -> "EventLogSink":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
