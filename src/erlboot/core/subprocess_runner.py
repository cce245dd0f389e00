"""Run external commands while streaming their output.

stderr is merged into stdout so the captured text reads exactly like a
terminal session. The call blocks until the child exits; no timeout is
applied here.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from erlboot.core.logging import get_logger
from erlboot.core.streaming import NullStreamHandler, StreamEvent, StreamHandler, StreamType

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a finished child process."""

    cmd: List[str]
    exit_code: int
    output: str
    lines: List[str] = field(default_factory=list, compare=False, repr=False)

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def run_with_streaming(
    cmd: Sequence[Union[str, Path]],
    cwd: Optional[Path] = None,
    tool_name: Optional[str] = None,
    stream_handler: Optional[StreamHandler] = None,
    env: Optional[Dict[str, str]] = None,
) -> CommandResult:
    """Run a command, reporting each output line as it arrives.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child.
        tool_name: Label used for stream events (default: program name).
        stream_handler: Receives one event per output line.
        env: Environment for the child (default: inherited).

    Returns:
        CommandResult with the exit code and all output lines joined in
        arrival order, line terminators included.

    Raises:
        OSError: If the program cannot be started.
    """
    argv = [str(part) for part in cmd]
    handler = stream_handler or NullStreamHandler()
    name = tool_name or Path(argv[0]).name

    LOGGER.debug(f"Running: {' '.join(argv)} (cwd={cwd})")

    lines: List[str] = []
    handler.start_tool(name)
    with subprocess.Popen(
        argv,
        cwd=str(cwd) if cwd else None,
        env=env,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        stdin=subprocess.DEVNULL,
        text=True,
        encoding="utf-8",
        errors="replace",
    ) as process:
        assert process.stdout is not None
        for line in process.stdout:
            lines.append(line)
            handler.emit(
                StreamEvent(
                    tool_name=name,
                    stream_type=StreamType.OUTPUT,
                    content=line.rstrip("\r\n"),
                    line_number=len(lines),
                )
            )
        exit_code = process.wait()

    handler.end_tool(name, exit_code == 0)
    LOGGER.debug(f"{name} exited with status {exit_code}")
    return CommandResult(cmd=argv, exit_code=exit_code, output="".join(lines), lines=lines)
