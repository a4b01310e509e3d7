"""Tests for the stderr trace helpers."""
from __future__ import annotations

import pytest

import debug_trace
from debug_trace import trace, trace_call


@pytest.fixture()
def tracing(monkeypatch):
    monkeypatch.setattr(debug_trace, "DEBUG_TRACE", True)
    monkeypatch.setattr(debug_trace, "TRACE_DRAG_FRAMES", False)


class TestTrace:
    def test_silent_when_off(self, monkeypatch, capsys):
        monkeypatch.setattr(debug_trace, "DEBUG_TRACE", False)
        trace("hello", "NODE")
        assert capsys.readouterr().err == ""

    def test_line_format(self, tracing, capsys):
        trace("created click", "NODE")
        err = capsys.readouterr().err
        assert err.endswith("[NODE] created click\n")
        assert err.startswith("[")

    def test_drag_frames_need_their_own_switch(self, tracing, monkeypatch, capsys):
        trace("drag -> (1, 2)", "FRAME")
        assert capsys.readouterr().err == ""
        monkeypatch.setattr(debug_trace, "TRACE_DRAG_FRAMES", True)
        trace("drag -> (1, 2)", "FRAME")
        assert "[FRAME]" in capsys.readouterr().err


class TestTraceCall:
    def test_off_returns_function_unchanged(self, monkeypatch):
        monkeypatch.setattr(debug_trace, "DEBUG_TRACE", False)

        def load():
            return 1

        assert trace_call("CODEC")(load) is load

    def test_entry_and_exit(self, tracing, capsys):
        @trace_call("CODEC")
        def load():
            return 42

        assert load() == 42
        err = capsys.readouterr().err
        assert ">>> TestTraceCall.test_entry_and_exit.<locals>.load" in err
        assert "<<< TestTraceCall.test_entry_and_exit.<locals>.load" in err

    def test_exception_traced_and_reraised(self, tracing, capsys):
        @trace_call("CODEC")
        def load():
            raise ValueError("bad document")

        with pytest.raises(ValueError):
            load()
        err = capsys.readouterr().err
        assert "[ERROR]" in err
        assert "ValueError: bad document" in err
        assert "<<<" not in err
