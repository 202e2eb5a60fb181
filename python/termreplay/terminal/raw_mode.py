"""
Raw Mode - 终端模式控制

录制期间把控制终端切换到 raw 模式（关闭行缓冲、回显和信号字符），
结束时无论正常退出还是异常都恢复原模式。只用于录制，回放不修改终端模式。
"""

import logging
import termios
import tty
from typing import Any, List, Optional

from ..replay.errors import TerminalModeError

logger = logging.getLogger(__name__)

# termios.tcgetattr 返回的属性列表
Mode = List[Any]


def get_mode(fd: int) -> Mode:
    """读取终端模式"""
    try:
        return termios.tcgetattr(fd)
    except (termios.error, OSError) as e:
        raise TerminalModeError(f"cannot read terminal mode of fd {fd}: {e}") from e


def set_mode(fd: int, mode: Mode, when: int = termios.TCSADRAIN) -> None:
    """设置终端模式"""
    try:
        termios.tcsetattr(fd, when, mode)
    except (termios.error, OSError) as e:
        raise TerminalModeError(f"cannot set terminal mode of fd {fd}: {e}") from e


class RawTerminal:
    """
    raw 模式守卫

    使用示例：
    ```python
    with RawTerminal(sys.stdin.fileno()):
        ...  # 逐字节读取键盘输入
    ```
    """

    def __init__(self, fd: int):
        self.fd = fd
        self.saved_mode: Optional[Mode] = None

    @property
    def active(self) -> bool:
        return self.saved_mode is not None

    def __enter__(self) -> "RawTerminal":
        saved = get_mode(self.fd)
        try:
            tty.setraw(self.fd, termios.TCSANOW)
        except (termios.error, OSError) as e:
            raise TerminalModeError(f"cannot enter raw mode on fd {self.fd}: {e}") from e
        # 只有切换成功后才需要恢复
        self.saved_mode = saved
        logger.debug(f"fd {self.fd} 进入 raw 模式")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # 已有异常时恢复失败只记录，不覆盖原异常
        self.restore(raise_errors=exc_type is None)

    def restore(self, raise_errors: bool = True) -> None:
        if self.saved_mode is None:
            return
        saved, self.saved_mode = self.saved_mode, None
        try:
            set_mode(self.fd, saved)
        except TerminalModeError as e:
            logger.error(f"恢复终端模式失败: {e}")
            if raise_errors:
                raise
            return
        logger.debug(f"fd {self.fd} 已恢复终端模式")


def raw_terminal(fd: int) -> RawTerminal:
    return RawTerminal(fd)
