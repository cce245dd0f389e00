"""Exception hierarchy for erlboot.

Every fatal condition in the bootstrap flow is a subclass of
:class:`BootstrapError`; the CLI catches that base class, prints the message
and exits non-zero.
"""

from __future__ import annotations

from typing import Optional


class BootstrapError(Exception):
    """Base class for all erlboot failures."""


class ConfigError(BootstrapError):
    """Configuration file missing, unparsable or invalid.

    Attributes:
        line: 1-based line of the offending statement, if known.
        category: Short machine-readable category (``parse_error``,
            ``evaluation_error``, ``undefined_script``, ...).
        cause: Underlying exception or message.
    """

    def __init__(
        self,
        message: str,
        line: Optional[int] = None,
        category: Optional[str] = None,
        cause: Optional[object] = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.category = category
        self.cause = cause


class UndefinedFunctionError(ConfigError):
    """A configuration script called a function the host does not provide."""

    def __init__(self, name: str) -> None:
        super().__init__(f"undefined function '{name}'", category="evaluation_error")
        self.name = name


class FilesystemError(BootstrapError):
    """A required directory or file could not be created."""


class NetworkError(BootstrapError):
    """Downloading a remote artifact failed."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class ArtifactNotFoundError(NetworkError):
    """The remote server answered 404 for the artifact."""


class TransportFailure(NetworkError):
    """Connection, timeout or protocol failure while downloading."""


class ArchiveError(BootstrapError):
    """A downloaded archive is malformed or cannot be unpacked."""


class ProcessError(BootstrapError):
    """A child process failed.

    Attributes:
        exit_code: Exit status, or None if the process could not be started.
        output: Combined stdout/stderr captured before the failure.
    """

    def __init__(self, message: str, exit_code: Optional[int], output: str = "") -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.output = output

    def __str__(self) -> str:
        base = super().__str__()
        if self.output:
            return f"{base}\n{self.output.rstrip()}"
        return base


class ToolNotFoundError(BootstrapError):
    """A tool build finished but the expected executable is missing."""
