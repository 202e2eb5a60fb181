"""
Core Replay Event Types - 终端事件定义

基于 Pydantic 的事件模型，对应事件日志中的一行记录。
"""

from enum import Enum

from pydantic import BaseModel, Field


class EventKind(str, Enum):
    """事件类型枚举"""

    INPUT = "input"  # 用户键入，发往 PTY
    OUTPUT = "output"  # PTY / shell 产生的输出


class TerminalEvent(BaseModel):
    """
    单条终端事件

    time_ms 为相对录制开始的毫秒数（单调时钟），data 为原始字节，
    可能包含任意字节值（控制序列、被拆开的多字节字符等）。
    """

    time_ms: int = Field(..., ge=0, description="相对录制开始的毫秒数")
    kind: EventKind = Field(..., alias="type", description="事件类型")
    data: bytes = Field(default=b"", description="原始字节")

    model_config = {"frozen": True, "populate_by_name": True}

    @property
    def is_input(self) -> bool:
        return self.kind == EventKind.INPUT

    @property
    def is_output(self) -> bool:
        return self.kind == EventKind.OUTPUT

    @property
    def size(self) -> int:
        return len(self.data)

    @classmethod
    def input(cls, time_ms: int, data: bytes) -> "TerminalEvent":
        return cls(time_ms=time_ms, kind=EventKind.INPUT, data=data)

    @classmethod
    def output(cls, time_ms: int, data: bytes) -> "TerminalEvent":
        return cls(time_ms=time_ms, kind=EventKind.OUTPUT, data=data)
