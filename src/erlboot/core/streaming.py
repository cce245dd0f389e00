"""Live output of child processes.

The command runner reports every line it reads from a child process to a
stream handler. The CLI echoes lines to the terminal; library callers that do
not care use the null handler.
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TextIO


class StreamType(str, Enum):
    """Type of stream output."""

    OUTPUT = "output"
    STATUS = "status"


@dataclass
class StreamEvent:
    """A single line of output (or a status note) from a running tool."""

    tool_name: str
    stream_type: StreamType
    content: str
    line_number: Optional[int] = None


class StreamHandler(ABC):
    """Receives events from a running child process."""

    @abstractmethod
    def emit(self, event: StreamEvent) -> None:
        """Emit a stream event.

        Args:
            event: The stream event to emit.
        """

    @abstractmethod
    def start_tool(self, tool_name: str) -> None:
        """Signal that a tool has started execution.

        Args:
            tool_name: Name of the tool that started.
        """

    @abstractmethod
    def end_tool(self, tool_name: str, success: bool) -> None:
        """Signal that a tool has finished execution.

        Args:
            tool_name: Name of the tool that finished.
            success: Whether the tool exited with status 0.
        """


class NullStreamHandler(StreamHandler):
    """Discards everything."""

    def emit(self, event: StreamEvent) -> None:
        pass

    def start_tool(self, tool_name: str) -> None:
        pass

    def end_tool(self, tool_name: str, success: bool) -> None:
        pass


class CLIStreamHandler(StreamHandler):
    """Echoes tool output to the console, prefixed with the tool name."""

    def __init__(self, output: Optional[TextIO] = None, show_output: bool = True):
        """Initialize CLIStreamHandler.

        Args:
            output: Output stream to write to (default: stderr).
            show_output: Whether to show raw tool output lines.
        """
        self._output = output or sys.stderr
        self._show_output = show_output

    def emit(self, event: StreamEvent) -> None:
        if not self._show_output:
            return
        if event.stream_type == StreamType.STATUS:
            self._print(f"[{event.tool_name}] {event.content}")
        else:
            self._print(f"  {event.tool_name}: {event.content}")

    def start_tool(self, tool_name: str) -> None:
        self._print(f"[{tool_name}] Starting...")

    def end_tool(self, tool_name: str, success: bool) -> None:
        self._print(f"[{tool_name}] {'Done' if success else 'Failed'}")

    def _print(self, message: str) -> None:
        print(message, file=self._output, flush=True)


class CallbackStreamHandler(StreamHandler):
    """Forwards events to plain callables."""

    def __init__(
        self,
        on_event: Optional[Callable[[StreamEvent], None]] = None,
        on_start: Optional[Callable[[str], None]] = None,
        on_end: Optional[Callable[[str, bool], None]] = None,
    ):
        self._on_event = on_event
        self._on_start = on_start
        self._on_end = on_end

    def emit(self, event: StreamEvent) -> None:
        if self._on_event:
            self._on_event(event)

    def start_tool(self, tool_name: str) -> None:
        if self._on_start:
            self._on_start(tool_name)

    def end_tool(self, tool_name: str, success: bool) -> None:
        if self._on_end:
            self._on_end(tool_name, success)
