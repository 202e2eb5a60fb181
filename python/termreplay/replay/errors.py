"""
Core Replay Errors - 错误类型

录制/回放过程中向上抛出的异常，命令行入口统一转换为错误信息和退出码。
"""

from pathlib import Path
from typing import Optional, Union


class TermReplayError(Exception):
    """所有 termreplay 错误的基类"""


class RecorderSetupError(TermReplayError):
    """录制准备失败（日志文件、PTY、shell 启动）"""


class TerminalModeError(RecorderSetupError):
    """终端模式无法读取或修改"""


class SessionNotFoundError(TermReplayError):
    """会话日志文件不存在"""


class PlaybackError(TermReplayError):
    """回放时写出失败"""


class EventLogError(TermReplayError):
    """事件日志解析失败，携带出错的行号和文件路径"""

    def __init__(
        self,
        reason: str,
        line_number: Optional[int] = None,
        path: Optional[Union[str, Path]] = None,
    ):
        self.reason = reason
        self.line_number = line_number
        self.path = str(path) if path is not None else None
        super().__init__(self._format())

    def _format(self) -> str:
        location = ""
        if self.path is not None:
            location = self.path
        if self.line_number is not None:
            location = f"{location}:{self.line_number}" if location else f"line {self.line_number}"
        return f"{location}: {self.reason}" if location else self.reason

    def locate(
        self, line_number: int, path: Optional[Union[str, Path]] = None
    ) -> "EventLogError":
        """补充位置信息（行号、文件路径）"""
        self.line_number = line_number
        if path is not None:
            self.path = str(path)
        self.args = (self._format(),)
        return self


class MalformedRecordError(EventLogError):
    """行不是合法的事件记录"""


class InvalidTimestampError(EventLogError):
    """time_ms 缺失或不是非负整数"""


class InvalidEncodingError(EventLogError):
    """data 无法还原为原始字节"""
