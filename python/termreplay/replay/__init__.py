"""
Core Replay Module - 录制与回放系统

- event: 事件类型定义（基于 Pydantic）
- codec: 事件日志编解码
- sink: 事件日志写入线程
- recorder: 终端会话录制器
- player: 终端会话回放器
- session: 会话加载
- summary: 会话摘要
"""

from .event import EventKind, TerminalEvent
from .errors import (
    TermReplayError,
    RecorderSetupError,
    TerminalModeError,
    SessionNotFoundError,
    PlaybackError,
    EventLogError,
    MalformedRecordError,
    InvalidTimestampError,
    InvalidEncodingError,
)
from .codec import encode_event, decode_event, iter_events, read_events
from .sink import EventLogSink
from .timing import PlaybackClock
from .recorder import TerminalRecorder, RecorderConfig, RecordingStats
from .player import SessionPlayer, PlayerConfig, PlaybackResult, play_session
from .session import TerminalSession, load_session
from .summary import SessionSummary, summarize, format_summary

__all__ = [
    # Event types
    "EventKind",
    "TerminalEvent",
    # Errors
    "TermReplayError",
    "RecorderSetupError",
    "TerminalModeError",
    "SessionNotFoundError",
    "PlaybackError",
    "EventLogError",
    "MalformedRecordError",
    "InvalidTimestampError",
    "InvalidEncodingError",
    # Codec
    "encode_event",
    "decode_event",
    "iter_events",
    "read_events",
    "EventLogSink",
    # Recorder
    "TerminalRecorder",
    "RecorderConfig",
    "RecordingStats",
    # Player
    "PlaybackClock",
    "SessionPlayer",
    "PlayerConfig",
    "PlaybackResult",
    "play_session",
    # Session
    "TerminalSession",
    "load_session",
    "SessionSummary",
    "summarize",
    "format_summary",
]
