"""Functions callable from configuration scripts.

Scripts cannot reach arbitrary Python objects; a call such as ``env("HOME")``
is routed to a :class:`FunctionHandler`, which only knows the functions the
host registered up front.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional

from erlboot.core.exceptions import UndefinedFunctionError


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(name, default)


def _join(*parts: Any) -> str:
    if not parts:
        raise TypeError("join() needs at least one argument")
    return os.path.join(*(str(part) for part in parts))


DEFAULT_FUNCTIONS: Dict[str, Callable[..., Any]] = {
    "env": _env,
    "cwd": os.getcwd,
    "home": lambda: str(Path.home()),
    "join": _join,
    "abspath": lambda path: os.path.abspath(str(path)),
    "basename": lambda path: os.path.basename(str(path)),
    "dirname": lambda path: os.path.dirname(str(path)),
    "platform": lambda: sys.platform,
    "str": str,
    "int": int,
    "len": len,
}


class FunctionHandler:
    """Dispatches script calls to a fixed set of host functions."""

    def __init__(self, functions: Optional[Dict[str, Callable[..., Any]]] = None) -> None:
        self._functions: Dict[str, Callable[..., Any]] = dict(
            DEFAULT_FUNCTIONS if functions is None else functions
        )

    @property
    def names(self) -> Iterable[str]:
        return sorted(self._functions)

    def register(self, name: str, function: Callable[..., Any]) -> None:
        """Make ``function`` callable from scripts as ``name``."""
        if not name.isidentifier():
            raise ValueError(f"Invalid function name: {name!r}")
        self._functions[name] = function

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __call__(self, name: str, args: List[Any]) -> Any:
        try:
            function = self._functions[name]
        except KeyError:
            raise UndefinedFunctionError(name) from None
        return function(*args)
