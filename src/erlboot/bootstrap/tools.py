"""Build tools erlboot knows how to install."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ToolSpec:
    """Where to fetch a tool's source and how to build it.

    ``build_command`` runs inside the unpacked source tree and must leave an
    executable named ``name`` at its top level.
    """

    name: str
    url: str
    build_command: Tuple[str, ...]


REBAR = ToolSpec(
    name="rebar",
    url="https://github.com/rebar/rebar/archive/master.zip",
    build_command=("./bootstrap",),
)
