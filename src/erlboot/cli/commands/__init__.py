"""CLI commands package.

This module provides the base Command class and exports all command implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from argparse import Namespace


class Command(ABC):
    """Base class for CLI commands."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Command identifier."""

    @abstractmethod
    def execute(self, args: Namespace) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments.

        Returns:
            Exit code (0 for success, non-zero for error).
        """


# ruff: noqa: E402
from erlboot.cli.commands.bootstrap import BootstrapCommand
from erlboot.cli.commands.help import HelpCommand

__all__ = [
    "Command",
    "BootstrapCommand",
    "HelpCommand",
]
