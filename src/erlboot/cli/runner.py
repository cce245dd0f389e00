"""CLI runner: parses arguments and dispatches to commands."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from typing import Iterable, Optional

from erlboot.cli.arguments import build_parser
from erlboot.cli.commands import BootstrapCommand, HelpCommand
from erlboot.cli.exit_codes import EXIT_SUCCESS
from erlboot.core.logging import configure_logging, get_logger

LOGGER = get_logger(__name__)


def get_version() -> str:
    try:
        return version("erlboot")
    except PackageNotFoundError:
        # Fallback for editable installs that have not yet built metadata.
        from erlboot import __version__

        return __version__


class CLIRunner:
    """Runs one erlboot invocation."""

    def run(self, argv: Optional[Iterable[str]] = None) -> int:
        """Parse ``argv`` and execute the selected command.

        Args:
            argv: Command-line arguments (defaults to sys.argv).

        Returns:
            Exit code.
        """
        parser = build_parser()
        args, extra = parser.parse_known_args(list(argv) if argv is not None else None)

        configure_logging(debug=args.debug, verbose=args.verbose, quiet=args.quiet)
        if extra:
            LOGGER.debug(f"Ignoring extra arguments: {extra}")

        if args.help:
            return HelpCommand(get_version()).execute(args)

        if args.version:
            print(f"erlboot {get_version()}")
            return EXIT_SUCCESS

        return BootstrapCommand().execute(args)
