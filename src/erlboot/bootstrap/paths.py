"""Path helpers for the bootstrap working area.

Layout produced under a project::

    <build_dir>/
        .temp/<tool>.zip       - downloaded archives
    <deps_dir>/                - defaults to <build_dir>/lib
        <tool>/<tool>          - built tool executable
"""

from __future__ import annotations

from pathlib import Path

from erlboot.core.exceptions import FilesystemError
from erlboot.core.logging import get_logger

LOGGER = get_logger(__name__)


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents; an existing directory is fine.

    Args:
        path: Directory to create.

    Returns:
        The same path.

    Raises:
        FilesystemError: If the directory cannot be created, including when a
            non-directory already occupies the path.
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FilesystemError(f"Cannot create directory {path}: {e}") from e
    LOGGER.debug(f"Directory ready: {path}")
    return path


def tool_dir(deps_dir: Path, tool_name: str) -> Path:
    """Directory a tool is unpacked and built in."""
    return deps_dir / tool_name


def tool_executable(deps_dir: Path, tool_name: str) -> Path:
    """Expected location of a tool's built executable."""
    return tool_dir(deps_dir, tool_name) / tool_name
