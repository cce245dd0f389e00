"""erlboot - prepare a local Erlang build environment.

Usage:
    erlboot [MODE] [--config PATH] [--debug | --verbose | --quiet]
    erlboot --help
    erlboot --version

Reads erlboot.config from the current directory, creates the build, deps
and temp directories, and makes sure rebar is available: the rebar on PATH
is used if there is one, then a copy previously built under the deps
directory, and otherwise rebar is downloaded, unpacked and built there.
The resulting project layout is printed as YAML.

Settings (all optional):
    build_dir               root of the working area (default: current directory)
    rebar_config.deps_dir   where tools are installed (default: <build_dir>/lib)
    remote_net_timeout      download timeout in milliseconds (default: 6000)
    remote_proxy_host       HTTP proxy host
    remote_proxy_port       HTTP proxy port (default: 8080)

Example erlboot.config:
    root = env("ERLBOOT_ROOT", cwd())
    {"build_dir": root, "rebar_config": {"deps_dir": join(root, "deps")}}

Script functions: env, cwd, home, join, abspath, basename, dirname,
platform, str, int, len.

Exit status is 0 on success and 1 on any error.
"""

from __future__ import annotations

from typing import Iterable, Optional

from erlboot.cli.arguments import build_parser
from erlboot.cli.exit_codes import EXIT_FAILURE, EXIT_SUCCESS
from erlboot.cli.runner import CLIRunner, get_version


def main(argv: Optional[Iterable[str]] = None) -> int:
    """CLI entrypoint.

    Args:
        argv: Command-line arguments (defaults to sys.argv).

    Returns:
        Exit code.
    """
    runner = CLIRunner()
    return runner.run(argv)


__all__ = [
    "main",
    "build_parser",
    "get_version",
    "CLIRunner",
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
]


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
