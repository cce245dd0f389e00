"""Argument parser for the erlboot CLI."""

from __future__ import annotations

import argparse
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    # --help is handled by HelpCommand so it can print the usage banner.
    parser = argparse.ArgumentParser(
        prog="erlboot",
        description="erlboot - prepare a local Erlang build environment.",
        add_help=False,
    )

    parser.add_argument(
        "--help",
        action="store_true",
        help="Show usage and exit.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show erlboot version and exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (info-level) logging.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce logging output to errors only.",
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        type=Path,
        default=None,
        help="Configuration script (default: ./erlboot.config).",
    )
    parser.add_argument(
        "mode",
        nargs="?",
        default=None,
        help="Ignored; any mode other than --help runs the bootstrap.",
    )

    return parser
