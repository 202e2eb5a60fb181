"""
Recorder Tests - 录制器测试

测试内容：
1. 双向转发与日志内容（使用模拟 PTY）
2. 时间戳
3. 各种失败路径
4. 真实 PTY 上的端到端录制
"""

import errno
import io
import os
import pty
import sys
import threading
import time
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from termreplay.replay.codec import read_events
from termreplay.replay.errors import RecorderSetupError, TerminalModeError
from termreplay.replay.event import EventKind
from termreplay.replay.recorder import FdReader, RecorderConfig, TerminalRecorder
from termreplay.replay.sink import EventLogSink
from termreplay.terminal.raw_mode import get_mode


# ==================== Fakes ====================

class FakeUserInput:
    """按顺序返回预设的按键块，耗尽后返回 b"" """

    def __init__(self, chunks, error=None):
        self.chunks = list(chunks)
        self.error = error
        self.reads = 0
        self.done = threading.Event()

    def read(self, size):
        self.reads += 1
        if self.error is not None:
            self.done.set()
            raise self.error
        if self.chunks:
            return self.chunks.pop(0)
        self.done.set()
        return b""


class FakePty:
    """模拟 PTY 控制端"""

    def __init__(self, output_chunks=(), wait_for=None, read_error=None):
        self.output = list(output_chunks)
        self.wait_for = wait_for
        self.read_error = read_error
        self.written = []
        self.closed = False
        self.terminated = False

    def read(self, size):
        if self.read_error is not None:
            raise self.read_error
        if self.output:
            return self.output.pop(0)
        # 等用户输入处理完再结束，保证输入事件已入队
        if self.wait_for is not None:
            self.wait_for.wait(timeout=5)
        return b""

    def write(self, data):
        if self.closed:
            raise OSError(errno.EIO, "pty closed")
        self.written.append(data)

    def wait(self):
        return 0

    def terminate(self):
        self.terminated = True


class BrokenDisplay(io.BytesIO):
    def write(self, data):
        raise OSError(errno.EPIPE, "broken pipe")


class KeepOpenStream(io.StringIO):
    def close(self):
        pass


class FailingStream(KeepOpenStream):
    def write(self, text):
        raise OSError(errno.ENOSPC, "disk full")


# ==================== Capture Tests ====================

class TestCapture:
    """采集循环测试"""

    def test_forwarding_and_log(self, tmp_path):
        """按键送达 shell，输出送达显示，两者都写入日志"""
        path = tmp_path / "session.jsonl"
        user = FakeUserInput([b"ls\r", b"exit\r"])
        channel = FakePty([b"$ ", b"ls\r\nREADME.md\r\n$ "], wait_for=user.done)
        display = io.BytesIO()

        recorder = TerminalRecorder(RecorderConfig(output_path=str(path)))
        stats = recorder.capture(channel, user, display, EventLogSink.open(path))

        assert channel.written == [b"ls\r", b"exit\r"]
        assert display.getvalue() == b"$ ls\r\nREADME.md\r\n$ "

        events = read_events(path)
        inputs = [e.data for e in events if e.kind == EventKind.INPUT]
        outputs = [e.data for e in events if e.kind == EventKind.OUTPUT]
        assert inputs == [b"ls\r", b"exit\r"]
        assert outputs == [b"$ ", b"ls\r\nREADME.md\r\n$ "]

        assert stats.exit_code == 0
        assert stats.input_events == 2
        assert stats.output_events == 2
        assert stats.input_bytes == 8
        assert stats.output_bytes == len(display.getvalue())
        assert stats.total_events == 4
        assert stats.dropped_events == 0
        assert stats.output_path == path

    def test_timestamps_non_decreasing_per_kind(self, tmp_path):
        path = tmp_path / "session.jsonl"
        user = FakeUserInput([b"a", b"b", b"c"])
        channel = FakePty([b"1", b"2", b"3", b"4"], wait_for=user.done)

        recorder = TerminalRecorder(RecorderConfig(output_path=str(path)))
        recorder.capture(channel, user, io.BytesIO(), EventLogSink.open(path))

        events = read_events(path)
        for kind in (EventKind.INPUT, EventKind.OUTPUT):
            times = [e.time_ms for e in events if e.kind == kind]
            assert times == sorted(times)
            assert all(t >= 0 for t in times)

    def test_time_relative_to_start(self, tmp_path):
        """时间戳相对录制开始时刻"""
        path = tmp_path / "session.jsonl"
        channel = FakePty([b"x", b"y"])
        recorder = TerminalRecorder(
            RecorderConfig(output_path=str(path)), clock=lambda: 1000.0
        )
        recorder.capture(channel, FakeUserInput([]), io.BytesIO(), EventLogSink.open(path))
        assert [e.time_ms for e in read_events(path)] == [0, 0]

    def test_display_failure_ends_session(self):
        channel = FakePty([b"a", b"b"])
        sink = EventLogSink(KeepOpenStream())
        recorder = TerminalRecorder()
        stats = recorder.capture(channel, FakeUserInput([]), BrokenDisplay(), sink)

        assert channel.terminated
        assert stats.output_events == 0
        assert sink.closed

    def test_read_failure_ends_session(self):
        channel = FakePty(read_error=OSError(errno.EBADF, "bad fd"))
        recorder = TerminalRecorder()
        stats = recorder.capture(
            channel, FakeUserInput([]), io.BytesIO(), EventLogSink(KeepOpenStream())
        )
        assert channel.terminated
        assert stats.total_events == 0

    def test_closed_pty_stops_input_loop(self):
        """shell 已退出时输入循环结束，不记录未送达的按键"""
        channel = FakePty()
        channel.closed = True
        user = FakeUserInput([b"a", b"b"])
        recorder = TerminalRecorder()
        stats = recorder.capture(channel, user, io.BytesIO(), EventLogSink(KeepOpenStream()))

        recorder._input_thread.join(timeout=2)
        assert not recorder._input_thread.is_alive()
        assert user.reads == 1
        assert stats.input_events == 0

    def test_input_read_failure(self):
        user = FakeUserInput([], error=OSError(errno.EIO, "stdin gone"))
        channel = FakePty([b"still here"], wait_for=user.done)
        display = io.BytesIO()
        stats = TerminalRecorder().capture(
            channel, user, display, EventLogSink(KeepOpenStream())
        )
        assert display.getvalue() == b"still here"
        assert stats.output_events == 1
        assert stats.input_events == 0

    def test_log_failure_is_not_fatal(self):
        """日志写入失败时会话继续，丢弃数计入统计"""
        user = FakeUserInput([b"k"])
        channel = FakePty([b"a", b"b"], wait_for=user.done)
        display = io.BytesIO()
        stats = TerminalRecorder().capture(
            channel, user, display, EventLogSink(FailingStream())
        )
        assert display.getvalue() == b"ab"
        assert channel.written == [b"k"]
        assert stats.dropped_events == 3


# ==================== Input Reader Tests ====================

@pytest.fixture
def pipe():
    read_fd, write_fd = os.pipe()
    yield read_fd, write_fd
    os.close(read_fd)
    os.close(write_fd)


class TestFdReader:
    """用户输入读取测试"""

    def test_read(self, pipe):
        read_fd, write_fd = pipe
        reader = FdReader(read_fd)
        os.write(write_fd, b"keys")
        try:
            assert reader.read(1024) == b"keys"
        finally:
            reader.close()

    def test_stop_wakes_blocked_read(self, pipe):
        """stop() 让阻塞中的 read 返回 b"" """
        read_fd, _ = pipe
        reader = FdReader(read_fd)
        results = []
        thread = threading.Thread(target=lambda: results.append(reader.read(1024)))
        thread.start()
        time.sleep(0.05)
        reader.stop()
        thread.join(timeout=2)
        try:
            assert not thread.is_alive()
            assert results == [b""]
            assert reader.read(1024) == b""
        finally:
            reader.close()

    def test_close_is_idempotent(self, pipe):
        reader = FdReader(pipe[0])
        reader.stop()
        reader.stop()
        reader.close()
        reader.close()


# ==================== Record Tests ====================

@pytest.fixture
def fake_tty():
    """提供一个伪终端从属端作为录制器的 stdin"""
    controller, follower = pty.openpty()
    yield follower
    # 先关闭控制端，阻塞在从属端读取上的输入线程随之返回
    os.close(controller)
    time.sleep(0.05)
    os.close(follower)


class TestRecord:
    """record() 测试"""

    def test_output_path_failure(self, tmp_path, fake_tty):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        config = RecorderConfig(output_path=str(blocker / "session.jsonl"), shell="true")
        with pytest.raises(RecorderSetupError):
            TerminalRecorder(config).record(stdin_fd=fake_tty, display=io.BytesIO())

    def test_bad_shell_leaves_terminal_untouched(self, tmp_path, fake_tty):
        before = get_mode(fake_tty)
        config = RecorderConfig(
            output_path=str(tmp_path / "session.jsonl"),
            shell="/nonexistent/shell-for-test",
        )
        with pytest.raises(RecorderSetupError):
            TerminalRecorder(config).record(stdin_fd=fake_tty, display=io.BytesIO())
        assert get_mode(fake_tty) == before

    def test_stdin_not_a_terminal(self, tmp_path):
        """stdin 不是终端时已有日志保持不变，shell 不会启动"""
        path = tmp_path / "session.jsonl"
        previous = '{"time_ms":0,"type":"output","data":"aGk="}\n'
        path.write_text(previous, encoding="utf-8")
        marker = tmp_path / "shell-started"

        read_fd, write_fd = os.pipe()
        try:
            config = RecorderConfig(
                output_path=str(path), shell=f"sh -c 'touch {marker}'"
            )
            with pytest.raises(TerminalModeError):
                TerminalRecorder(config).record(stdin_fd=read_fd, display=io.BytesIO())
        finally:
            os.close(read_fd)
            os.close(write_fd)

        assert path.read_text(encoding="utf-8") == previous
        time.sleep(0.1)
        assert not marker.exists()

    def test_end_to_end(self, tmp_path, fake_tty):
        """在真实 PTY 上录制一个立即退出的命令"""
        path = tmp_path / "session.jsonl"
        before = get_mode(fake_tty)
        display = io.BytesIO()
        config = RecorderConfig(output_path=str(path), shell="sh -c 'printf hello'")

        recorder = TerminalRecorder(config)
        stats = recorder.record(stdin_fd=fake_tty, display=display)

        # 没有按键时输入线程也已退出
        assert not recorder._input_thread.is_alive()
        assert stats.exit_code == 0
        assert b"hello" in display.getvalue()
        events = read_events(path)
        recorded = b"".join(e.data for e in events if e.kind == EventKind.OUTPUT)
        assert recorded == display.getvalue()
        assert stats.output_events == len(events)
        # raw 模式已恢复
        assert get_mode(fake_tty) == before
