"""Tests for erlboot.core.streaming."""

from __future__ import annotations

import io

from erlboot.core.streaming import CLIStreamHandler, NullStreamHandler, StreamEvent, StreamType


class TestCLIStreamHandler:
    """Tests for CLIStreamHandler."""

    def test_prefixes_output_lines_with_tool_name(self) -> None:
        out = io.StringIO()
        handler = CLIStreamHandler(output=out)
        handler.emit(StreamEvent(tool_name="rebar", stream_type=StreamType.OUTPUT, content="Recompile: src/rebar"))
        assert out.getvalue() == "  rebar: Recompile: src/rebar\n"

    def test_status_events(self) -> None:
        out = io.StringIO()
        handler = CLIStreamHandler(output=out)
        handler.start_tool("rebar")
        handler.emit(StreamEvent(tool_name="rebar", stream_type=StreamType.STATUS, content="halfway"))
        handler.end_tool("rebar", success=False)
        assert out.getvalue().splitlines() == ["[rebar] Starting...", "[rebar] halfway", "[rebar] Failed"]

    def test_hidden_output(self) -> None:
        out = io.StringIO()
        handler = CLIStreamHandler(output=out, show_output=False)
        handler.emit(StreamEvent(tool_name="rebar", stream_type=StreamType.OUTPUT, content="noise"))
        assert out.getvalue() == ""


def test_null_handler_accepts_everything() -> None:
    handler = NullStreamHandler()
    handler.start_tool("x")
    handler.emit(StreamEvent(tool_name="x", stream_type=StreamType.OUTPUT, content="y"))
    handler.end_tool("x", True)
