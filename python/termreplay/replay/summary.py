"""
Core Replay Summary - 会话摘要

从事件序列计算时长与各类事件数量。单次遍历，可直接作用于
codec.iter_events 产生的惰性序列。
"""

from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

from .event import EventKind, TerminalEvent


class SessionSummary(BaseModel):
    """会话摘要"""

    total_events: int = Field(default=0, ge=0, description="事件总数")
    input_events: int = Field(default=0, ge=0, description="输入事件数")
    output_events: int = Field(default=0, ge=0, description="输出事件数")
    input_bytes: int = Field(default=0, ge=0, description="输入字节数")
    output_bytes: int = Field(default=0, ge=0, description="输出字节数")
    duration_ms: int = Field(default=0, ge=0, description="首尾事件间隔（毫秒）")
    first_event_ms: Optional[int] = Field(default=None, ge=0, description="首个事件时间戳")

    @property
    def is_empty(self) -> bool:
        return self.total_events == 0

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000.0


def summarize(events: Iterable[TerminalEvent]) -> SessionSummary:
    """
    计算会话摘要

    duration 按日志顺序的首尾事件计算（last - first）。两个采集循环并发写入，
    相邻事件可能轻微乱序，结果不做修正；若末尾事件早于首个事件则记为 0。
    """
    counts = {EventKind.INPUT: 0, EventKind.OUTPUT: 0}
    sizes = {EventKind.INPUT: 0, EventKind.OUTPUT: 0}
    first: Optional[TerminalEvent] = None
    last: Optional[TerminalEvent] = None

    for event in events:
        if first is None:
            first = event
        last = event
        counts[event.kind] += 1
        sizes[event.kind] += event.size

    if first is None or last is None:
        return SessionSummary()

    return SessionSummary(
        total_events=counts[EventKind.INPUT] + counts[EventKind.OUTPUT],
        input_events=counts[EventKind.INPUT],
        output_events=counts[EventKind.OUTPUT],
        input_bytes=sizes[EventKind.INPUT],
        output_bytes=sizes[EventKind.OUTPUT],
        duration_ms=max(0, last.time_ms - first.time_ms),
        first_event_ms=first.time_ms,
    )


def format_summary(summary: SessionSummary) -> str:
    """渲染为命令行展示的文本块"""
    if summary.is_empty:
        return "No events found."

    lines: List[str] = [
        "📊 Session Information:",
        f"├─ Duration: {summary.duration_seconds:.2f} seconds",
        f"├─ Total events: {summary.total_events}",
        f"├─ Input events: {summary.input_events}",
        f"├─ Output events: {summary.output_events}",
        f"└─ First event: {summary.first_event_ms} ms",
    ]
    return "\n".join(lines)
