"""
Core Replay Session - 会话加载

回放和摘要开始时一次性加载整个日志，之后只读。任何一行解析失败，
整个会话都会被拒绝：在损坏的时间线上做部分回放没有意义。
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

from .codec import iter_events
from .event import TerminalEvent
from .summary import SessionSummary, summarize

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TerminalSession:
    """已加载的录制会话"""

    events: Tuple[TerminalEvent, ...] = ()
    path: Optional[Path] = None
    _summary: Optional[SessionSummary] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[TerminalEvent]:
        return iter(self.events)

    @property
    def is_empty(self) -> bool:
        return not self.events

    @property
    def summary(self) -> SessionSummary:
        if self._summary is None:
            object.__setattr__(self, "_summary", summarize(self.events))
        return self._summary


def load_session(path: Union[str, Path]) -> TerminalSession:
    """
    加载会话日志

    Raises:
        SessionNotFoundError: 文件不存在
        EventLogError: 任意一行无法解析
    """
    path = Path(path)
    session = TerminalSession(events=tuple(iter_events(path)), path=path)
    logger.info(f"加载会话: {path}, 事件数: {len(session)}")
    return session
