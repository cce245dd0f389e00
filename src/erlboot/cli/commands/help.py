"""Help command implementation."""

from __future__ import annotations

from argparse import Namespace

from erlboot.cli.commands import Command
from erlboot.cli.exit_codes import EXIT_SUCCESS


def get_help_content() -> str:
    """Return the usage banner, the leading docstring of :mod:`erlboot.cli`."""
    from erlboot import cli

    return (cli.__doc__ or "").strip()


class HelpCommand(Command):
    """Prints the usage banner."""

    def __init__(self, version: str):
        self._version = version

    @property
    def name(self) -> str:
        return "help"

    def execute(self, args: Namespace) -> int:
        print(get_help_content())
        print()
        print(f"Version: {self._version}")
        return EXIT_SUCCESS
