"""
termreplay - 终端会话录制与回放

包含:
- replay: 事件模型、日志编解码、录制器、回放器、会话摘要
- terminal: 伪终端与终端模式控制
- apps: 命令行入口
"""

from .replay import (
    EventKind,
    TerminalEvent,
    TermReplayError,
    EventLogError,
    encode_event,
    decode_event,
    iter_events,
    TerminalRecorder,
    RecorderConfig,
    RecordingStats,
    SessionPlayer,
    PlayerConfig,
    PlaybackResult,
    play_session,
    TerminalSession,
    load_session,
    SessionSummary,
    summarize,
)

__version__ = "1.0.0"

__all__ = [
    "EventKind",
    "TerminalEvent",
    "TermReplayError",
    "EventLogError",
    "encode_event",
    "decode_event",
    "iter_events",
    "TerminalRecorder",
    "RecorderConfig",
    "RecordingStats",
    "SessionPlayer",
    "PlayerConfig",
    "PlaybackResult",
    "play_session",
    "TerminalSession",
    "load_session",
    "SessionSummary",
    "summarize",
]
