"""
Tests for session summary / loading - 会话摘要与加载测试
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from termreplay.replay.codec import encode_event
from termreplay.replay.errors import (
    InvalidEncodingError,
    InvalidTimestampError,
    SessionNotFoundError,
)
from termreplay.replay.event import EventKind, TerminalEvent
from termreplay.replay.session import TerminalSession, load_session
from termreplay.replay.summary import SessionSummary, format_summary, summarize


FIXTURES = Path(__file__).parent / "fixtures"


class TestSummarize:
    """summarize 测试"""

    def test_basic_counts(self):
        """[0, 500, 1200] / [output, input, output]"""
        events = [
            TerminalEvent.output(0, b"$ "),
            TerminalEvent.input(500, b"l"),
            TerminalEvent.output(1200, b"l"),
        ]
        summary = summarize(events)
        assert summary.duration_ms == 1200
        assert summary.input_events == 1
        assert summary.output_events == 2
        assert summary.total_events == 3
        assert summary.first_event_ms == 0

    def test_empty(self):
        summary = summarize([])
        assert summary.is_empty
        assert summary.total_events == 0
        assert summary.duration_ms == 0
        assert summary.first_event_ms is None

    def test_duration_relative_to_first(self):
        events = [TerminalEvent.output(300, b"a"), TerminalEvent.output(800, b"b")]
        summary = summarize(events)
        assert summary.duration_ms == 500
        assert summary.first_event_ms == 300

    def test_single_pass_over_generator(self):
        """可直接作用于惰性序列"""
        events = (TerminalEvent.output(i * 10, b"x" * i) for i in range(5))
        summary = summarize(events)
        assert summary.output_events == 5
        assert summary.output_bytes == 0 + 1 + 2 + 3 + 4
        assert summary.duration_ms == 40

    def test_interleaved_tail(self):
        """末尾事件略早于首个事件时时长记为 0"""
        events = [TerminalEvent.output(20, b"a"), TerminalEvent.input(19, b"b")]
        assert summarize(events).duration_ms == 0

    def test_byte_counts(self):
        events = [TerminalEvent.input(0, b"abc"), TerminalEvent.output(1, b"defgh")]
        summary = summarize(events)
        assert summary.input_bytes == 3
        assert summary.output_bytes == 5

    def test_duration_seconds(self):
        summary = SessionSummary(total_events=1, output_events=1, duration_ms=125_500)
        assert summary.duration_seconds == pytest.approx(125.5)


class TestFormatSummary:
    """format_summary 测试"""

    def test_empty(self):
        assert format_summary(SessionSummary()) == "No events found."

    def test_lines(self):
        events = [
            TerminalEvent.output(0, b"$ "),
            TerminalEvent.input(500, b"l"),
            TerminalEvent.output(1200, b"l"),
        ]
        text = format_summary(summarize(events))
        assert "Duration: 1.20 seconds" in text
        assert "Total events: 3" in text
        assert "Input events: 1" in text
        assert "Output events: 2" in text
        assert "First event: 0 ms" in text


class TestLoadSession:
    """load_session 测试"""

    def test_load_fixture(self):
        session = load_session(FIXTURES / "sample_session.jsonl")
        assert len(session) == 5
        assert not session.is_empty
        assert session.path == FIXTURES / "sample_session.jsonl"
        assert sum(1 for e in session if e.kind == EventKind.INPUT) == 2
        assert sum(1 for e in session if e.kind == EventKind.OUTPUT) == 3

    def test_summary_property(self):
        session = load_session(FIXTURES / "sample_session.jsonl")
        summary = session.summary
        assert summary.duration_ms == 1230
        assert summary.input_events == 2
        assert summary.output_events == 3
        assert session.summary is summary

    def test_session_is_immutable(self):
        session = load_session(FIXTURES / "sample_session.jsonl")
        assert isinstance(session.events, tuple)
        with pytest.raises(Exception):
            session.events = ()

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.jsonl"
        path.write_text("", encoding="utf-8")
        session = load_session(path)
        assert session.is_empty
        assert session.summary.is_empty

    def test_missing_file(self, tmp_path):
        with pytest.raises(SessionNotFoundError):
            load_session(tmp_path / "nope.jsonl")

    def test_missing_time_ms_rejects_session(self, tmp_path):
        """缺少 time_ms 的行导致整个会话加载失败"""
        path = tmp_path / "bad.jsonl"
        path.write_text(
            encode_event(TerminalEvent.output(0, b"ok"))
            + "\n"
            + '{"type": "output", "data": "aGk="}\n',
            encoding="utf-8",
        )
        with pytest.raises(InvalidTimestampError) as exc_info:
            load_session(path)
        assert exc_info.value.line_number == 2

    def test_bad_base64_rejects_session(self, tmp_path):
        path = tmp_path / "bad.jsonl"
        path.write_text(
            '{"time_ms": 0, "type": "output", "data": "@@@"}\n'
            + encode_event(TerminalEvent.output(10, b"ok"))
            + "\n",
            encoding="utf-8",
        )
        with pytest.raises(InvalidEncodingError) as exc_info:
            load_session(path)
        assert exc_info.value.line_number == 1

    def test_session_from_events(self):
        events = (TerminalEvent.output(0, b"a"), TerminalEvent.output(5, b"b"))
        session = TerminalSession(events=events)
        assert list(session) == list(events)
        assert session.events[1].data == b"b"
