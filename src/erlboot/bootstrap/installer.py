"""Installing build tools from source archives.

:func:`ensure_tool` returns a usable executable for a tool, in order of
preference:

1. the tool found on ``PATH``;
2. a previously built copy at ``<deps_dir>/<tool>/<tool>``;
3. a fresh build: the source zip is downloaded to the staging path,
   unpacked into ``<deps_dir>/<tool>/`` with the archive's top-level
   directory stripped, and the tool's own build command is run there.
"""

from __future__ import annotations

import io
import shutil
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import List, Optional

from erlboot.bootstrap.download import FetchSettings, HttpClient, NotFound, Saved, fetch
from erlboot.bootstrap.paths import ensure_directory, tool_dir, tool_executable
from erlboot.bootstrap.tools import REBAR, ToolSpec
from erlboot.bootstrap.validation import ToolStatus, validate_binary
from erlboot.core.exceptions import (
    ArchiveError,
    ArtifactNotFoundError,
    FilesystemError,
    ProcessError,
    ToolNotFoundError,
    TransportFailure,
)
from erlboot.core.logging import get_logger
from erlboot.core.streaming import StreamEvent, StreamHandler, StreamType
from erlboot.core.subprocess_runner import run_with_streaming

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class ExtractedEntry:
    """One file read from an archive."""

    path: str
    content: bytes
    mode: Optional[int] = None

    @property
    def relative_path(self) -> str:
        """Archive path without its first segment (the synthetic top-level directory)."""
        return "/".join(PurePosixPath(self.path).parts[1:])


def extract_archive(archive_path: Path) -> List[ExtractedEntry]:
    """Read every file of a zip archive into memory.

    Args:
        archive_path: Zip file on disk.

    Returns:
        Entries in archive order; directories are omitted.

    Raises:
        ArchiveError: If the file cannot be read or is not a valid zip.
    """
    entries: List[ExtractedEntry] = []
    try:
        data = archive_path.read_bytes()
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                mode = (info.external_attr >> 16) & 0o777
                entries.append(ExtractedEntry(path=info.filename, content=zf.read(info), mode=mode or None))
    except (zipfile.BadZipFile, zlib.error, NotImplementedError, EOFError, OSError) as e:
        raise ArchiveError(f"Cannot extract {archive_path}: {e}") from e

    LOGGER.debug(f"Extracted {len(entries)} file(s) from {archive_path}")
    return entries


def install_entries(entries: List[ExtractedEntry], target_dir: Path) -> List[Path]:
    """Write extracted entries under ``target_dir``.

    The first path segment of every entry is dropped. Existing files are
    overwritten.

    Args:
        entries: Files produced by :func:`extract_archive`.
        target_dir: Install root.

    Returns:
        Paths of the written files.

    Raises:
        ArchiveError: If an entry would land outside ``target_dir``.
        FilesystemError: If a file cannot be written.
    """
    root = ensure_directory(target_dir).resolve()
    written: List[Path] = []

    for entry in entries:
        relative = entry.relative_path
        if not relative:
            continue
        destination = (root / relative).resolve()
        if not destination.is_relative_to(root):
            raise ArchiveError(f"Path traversal detected: {entry.path}")
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(entry.content)
            if entry.mode:
                destination.chmod(entry.mode)
        except OSError as e:
            raise FilesystemError(f"Cannot write {destination}: {e}") from e
        written.append(destination)

    LOGGER.debug(f"Installed {len(written)} file(s) into {root}")
    return written


def ensure_tool(
    destination_dir: Path,
    settings: FetchSettings,
    staging_path: Path,
    tool: ToolSpec = REBAR,
    client: Optional[HttpClient] = None,
    stream_handler: Optional[StreamHandler] = None,
) -> Path:
    """Make sure ``tool`` is available and return its executable.

    Args:
        destination_dir: Deps directory the tool is built under.
        settings: Network options for the download.
        staging_path: Where the source archive is downloaded to.
        tool: Tool to ensure.
        client: HTTP client (default: the shared instance).
        stream_handler: Receives the build output.

    Returns:
        Path to the executable.

    Raises:
        NetworkError: If the archive cannot be downloaded.
        ArchiveError: If the archive cannot be unpacked.
        ProcessError: If the build command fails.
        ToolNotFoundError: If the build does not produce the executable.
    """
    system_path = shutil.which(tool.name)
    if system_path:
        LOGGER.info(f"Using system {tool.name} at {system_path}")
        return Path(system_path)

    executable = tool_executable(destination_dir, tool.name)
    if validate_binary(executable) == ToolStatus.PRESENT:
        LOGGER.debug(f"{tool.name} binary found at {executable}")
        return executable

    LOGGER.info(f"{tool.name} not found, installing from {tool.url}")
    result = fetch(tool.url, staging_path, settings, client=client)
    if isinstance(result, NotFound):
        raise ArtifactNotFoundError(f"{tool.name} archive not found at {result.url}", tool.url)
    if not isinstance(result, Saved):
        raise TransportFailure(f"Failed to download {tool.name}: {result.detail}", tool.url)

    source_dir = tool_dir(destination_dir, tool.name)
    install_entries(extract_archive(result.path), source_dir)
    _build(tool, source_dir, stream_handler)

    status = validate_binary(executable)
    if status == ToolStatus.NOT_EXECUTABLE:
        executable.chmod(0o755)
    elif status == ToolStatus.MISSING:
        raise ToolNotFoundError(f"Build of {tool.name} finished but {executable} does not exist")

    LOGGER.info(f"{tool.name} installed to {executable}")
    return executable


def _build(tool: ToolSpec, source_dir: Path, stream_handler: Optional[StreamHandler]) -> None:
    command = " ".join(tool.build_command)
    if stream_handler is not None:
        stream_handler.emit(
            StreamEvent(
                tool_name=tool.name,
                stream_type=StreamType.STATUS,
                content=f"Building in {source_dir}",
            )
        )
    try:
        result = run_with_streaming(
            cmd=list(tool.build_command),
            cwd=source_dir,
            tool_name=tool.name,
            stream_handler=stream_handler,
        )
    except OSError as e:
        raise ProcessError(f"Cannot run '{command}' in {source_dir}: {e}", exit_code=None) from e

    if not result.success:
        raise ProcessError(
            f"'{command}' failed in {source_dir} with exit code {result.exit_code}",
            exit_code=result.exit_code,
            output=result.output,
        )
