"""
Terminal Module - 终端协作组件

- pty_process: 在伪终端上启动 shell
- raw_mode: 终端模式读取/设置与 raw 模式守卫
"""

from .pty_process import PtyProcess, set_window_size
from .raw_mode import Mode, RawTerminal, get_mode, set_mode, raw_terminal

__all__ = [
    "PtyProcess",
    "set_window_size",
    "Mode",
    "RawTerminal",
    "get_mode",
    "set_mode",
    "raw_terminal",
]
