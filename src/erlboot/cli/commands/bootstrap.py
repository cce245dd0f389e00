"""Bootstrap command: load config, prepare directories, ensure rebar."""

from __future__ import annotations

import sys
from argparse import Namespace
from typing import Optional, TextIO

import yaml

from erlboot.cli.commands import Command
from erlboot.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS
from erlboot.config.loader import load_config
from erlboot.core.exceptions import BootstrapError
from erlboot.core.logging import get_logger
from erlboot.core.streaming import CLIStreamHandler
from erlboot.pipeline.setup import ProjectSetup

LOGGER = get_logger(__name__)


class BootstrapCommand(Command):
    """Runs the full bootstrap and prints the resulting project descriptor."""

    def __init__(self, output: Optional[TextIO] = None) -> None:
        self._output = output

    @property
    def name(self) -> str:
        return "bootstrap"

    def execute(self, args: Namespace) -> int:
        """Execute the bootstrap.

        Args:
            args: Parsed command-line arguments.

        Returns:
            EXIT_SUCCESS, or EXIT_FAILURE after printing the error.
        """
        output = self._output or sys.stdout
        try:
            config = load_config(config_path=getattr(args, "config", None))
            show_output = not getattr(args, "quiet", False)
            setup = ProjectSetup(config, stream_handler=CLIStreamHandler(show_output=show_output))
            result = setup.run()
        except BootstrapError as e:
            LOGGER.debug(f"Bootstrap failed: {e!r}")
            print(f"error: {e}", file=sys.stderr)
            return EXIT_FAILURE

        yaml.safe_dump(result.to_dict(), output, sort_keys=False, default_flow_style=False)
        return EXIT_SUCCESS
