"""
Core Replay Codec - 事件日志编解码

每个事件一行 JSON（JSONL）：
{"time_ms": 1234, "type": "output", "data": "<base64>"}

data 使用 base64 编码，保证任意字节都能无损地写进行文本格式。
"""

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, Iterator, List, Optional, Union

from pydantic import ValidationError

from .errors import (
    EventLogError,
    InvalidEncodingError,
    InvalidTimestampError,
    MalformedRecordError,
    SessionNotFoundError,
)
from .event import EventKind, TerminalEvent

logger = logging.getLogger(__name__)

_KINDS = {kind.value: kind for kind in EventKind}


def encode_event(event: TerminalEvent) -> str:
    """编码为一行 JSON（不含换行符），对任意字节都不会失败"""
    return json.dumps(
        {
            "time_ms": event.time_ms,
            "type": event.kind.value,
            "data": base64.b64encode(event.data).decode("ascii"),
        },
        separators=(",", ":"),
    )


def decode_event(line: str, line_number: Optional[int] = None) -> TerminalEvent:
    """
    解码一行记录

    Raises:
        MalformedRecordError: 不是 JSON 对象，或 type/data 缺失
        InvalidTimestampError: time_ms 缺失或不是非负整数
        InvalidEncodingError: data 不是合法的 base64 字符串
    """
    try:
        record = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid JSON: {e.msg}", line_number) from e

    if not isinstance(record, dict):
        raise MalformedRecordError(
            f"expected a JSON object, got {type(record).__name__}", line_number
        )

    time_ms = _parse_time_ms(record, line_number)

    kind_name = record.get("type")
    kind = _KINDS.get(kind_name) if isinstance(kind_name, str) else None
    if kind is None:
        raise MalformedRecordError(
            f"unknown event type: {record.get('type')!r}", line_number
        )

    if "data" not in record:
        raise MalformedRecordError("missing 'data' field", line_number)
    data = _parse_data(record["data"], line_number)

    try:
        return TerminalEvent(time_ms=time_ms, kind=kind, data=data)
    except ValidationError as e:
        raise MalformedRecordError(str(e), line_number) from e


def _parse_time_ms(record: dict, line_number: Optional[int]) -> int:
    if "time_ms" not in record:
        raise InvalidTimestampError("missing 'time_ms' field", line_number)

    value: Any = record["time_ms"]
    # bool 是 int 的子类，需要单独排除
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidTimestampError(f"non-numeric time_ms: {value!r}", line_number)
    if isinstance(value, float):
        if not value.is_integer():
            raise InvalidTimestampError(f"non-integer time_ms: {value!r}", line_number)
        value = int(value)
    if value < 0:
        raise InvalidTimestampError(f"negative time_ms: {value}", line_number)
    return value


def _parse_data(value: Any, line_number: Optional[int]) -> bytes:
    if not isinstance(value, str):
        raise InvalidEncodingError(
            f"'data' must be a base64 string, got {type(value).__name__}", line_number
        )
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidEncodingError(f"invalid base64 payload: {e}", line_number) from e


def iter_events(path: Union[str, Path]) -> Iterator[TerminalEvent]:
    """
    惰性读取事件日志

    逐行解码，空行跳过。任何一行解析失败都会抛出带行号和路径的 EventLogError，
    调用方应当放弃整个会话。
    """
    path = Path(path)
    if not path.is_file():
        raise SessionNotFoundError(f"session log not found: {path}")

    with open(path, "rb") as f:
        for line_number, raw in enumerate(f, 1):
            try:
                line = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                raise MalformedRecordError(
                    "line is not valid UTF-8", line_number, path
                ) from e
            if not line.strip():
                continue
            try:
                event = decode_event(line, line_number)
            except EventLogError as e:
                e.locate(line_number, path)
                raise
            yield event


def read_events(path: Union[str, Path]) -> List[TerminalEvent]:
    """读取整个日志文件"""
    events = list(iter_events(path))
    logger.debug(f"读取 {len(events)} 条事件: {path}")
    return events
