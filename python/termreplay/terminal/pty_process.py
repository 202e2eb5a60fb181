"""
PTY Process - 伪终端进程

在伪终端上启动 shell：
- 控制端（controller）由录制器读写
- 从属端（follower）作为 shell 的 stdin/stdout/stderr 和控制终端
"""

import errno
import fcntl
import logging
import os
import pty
import shlex
import signal
import struct
import subprocess
import termios
from typing import Dict, List, Optional, Sequence, Tuple, Union

from ..config import DEFAULT_COLS, DEFAULT_ROWS
from ..replay.errors import RecorderSetupError

logger = logging.getLogger(__name__)


def set_window_size(fd: int, rows: int, cols: int) -> None:
    """设置终端窗口尺寸"""
    winsize = struct.pack("HHHH", rows, cols, 0, 0)
    fcntl.ioctl(fd, termios.TIOCSWINSZ, winsize)


def _acquire_controlling_tty() -> None:
    # 子进程中运行：start_new_session 已调用 setsid，stdin 已指向从属端
    fcntl.ioctl(0, termios.TIOCSCTTY, 0)


class PtyProcess:
    """
    运行在伪终端上的子进程

    使用示例：
    ```python
    with PtyProcess.spawn(["bash"], size=(24, 80)) as proc:
        proc.write(b"echo hi\\n")
        data = proc.read(4096)
    ```
    """

    def __init__(
        self,
        controller_fd: int,
        process: subprocess.Popen,
        size: Tuple[int, int] = (DEFAULT_ROWS, DEFAULT_COLS),
    ):
        self.controller_fd = controller_fd
        self.process = process
        self.size = size
        self._closed = False

    @classmethod
    def spawn(
        cls,
        command: Union[str, Sequence[str]],
        size: Tuple[int, int] = (DEFAULT_ROWS, DEFAULT_COLS),
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> "PtyProcess":
        """
        打开 PTY 并启动命令

        Raises:
            RecorderSetupError: PTY 打开失败或命令无法启动
        """
        argv: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
        if not argv:
            raise RecorderSetupError("empty shell command")

        rows, cols = size
        try:
            controller_fd, follower_fd = pty.openpty()
        except OSError as e:
            raise RecorderSetupError(f"cannot open pseudo-terminal: {e}") from e

        try:
            set_window_size(follower_fd, rows, cols)
            process = subprocess.Popen(
                argv,
                stdin=follower_fd,
                stdout=follower_fd,
                stderr=follower_fd,
                env=env,
                cwd=cwd,
                close_fds=True,
                start_new_session=True,
                preexec_fn=_acquire_controlling_tty,
            )
        except (OSError, subprocess.SubprocessError) as e:
            os.close(controller_fd)
            raise RecorderSetupError(f"cannot spawn {argv[0]!r}: {e}") from e
        finally:
            os.close(follower_fd)

        logger.info(f"启动 {' '.join(argv)} (pid={process.pid}, {cols}x{rows})")
        return cls(controller_fd, process, size)

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def alive(self) -> bool:
        return self.process.poll() is None

    def fileno(self) -> int:
        return self.controller_fd

    def read(self, size: int) -> bytes:
        """读取 shell 输出；返回 b"" 表示流已结束"""
        if self._closed:
            return b""
        try:
            return os.read(self.controller_fd, size)
        except OSError as e:
            # Linux: 从属端全部关闭后控制端读取返回 EIO
            if e.errno == errno.EIO:
                return b""
            raise

    def write(self, data: bytes) -> None:
        """把数据完整写入 shell；关闭后写入抛出 EBADF"""
        if self._closed:
            raise OSError(errno.EBADF, "pseudo-terminal is closed")
        view = memoryview(data)
        while view:
            written = os.write(self.controller_fd, view)
            view = view[written:]

    def wait(self, timeout: Optional[float] = None) -> int:
        """等待并回收子进程，返回退出码"""
        return self.process.wait(timeout=timeout)

    def terminate(self) -> None:
        """挂断 shell（交互式 bash 会忽略 SIGTERM）"""
        if self.alive:
            logger.info(f"挂断子进程 pid={self.pid}")
            self.process.send_signal(signal.SIGHUP)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        os.close(self.controller_fd)

    def __enter__(self) -> "PtyProcess":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.alive:
            self.terminate()
            try:
                self.process.wait(timeout=1.0)
            except subprocess.TimeoutExpired:
                self.process.kill()
                self.process.wait()
        self.close()
