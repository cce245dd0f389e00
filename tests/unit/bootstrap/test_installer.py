"""Tests for erlboot.bootstrap.installer."""

from __future__ import annotations

import shutil
import sys
from pathlib import Path
from typing import Callable, List
from unittest.mock import MagicMock, patch

import pytest

from erlboot.bootstrap.download import FetchSettings, NotFound, Saved, TransportError
from erlboot.bootstrap.installer import ExtractedEntry, ensure_tool, extract_archive, install_entries
from erlboot.bootstrap.tools import REBAR, ToolSpec
from erlboot.core.exceptions import (
    ArchiveError,
    ArtifactNotFoundError,
    ProcessError,
    ToolNotFoundError,
    TransportFailure,
)
from erlboot.core.streaming import CallbackStreamHandler, StreamEvent, StreamType

TOOL = ToolSpec(
    name="tool",
    url="https://example.invalid/tool/archive/master.zip",
    build_command=(sys.executable, "build.py"),
)

BUILD_SCRIPT = """\
import os
print("compiling")
with open("tool", "w") as f:
    f.write("#!/bin/sh\\necho tool\\n")
os.chmod("tool", 0o755)
print("built")
"""


def serve_archive(archive: Path) -> Callable[..., Saved]:
    def _fetch(url: str, destination: Path, settings: FetchSettings, client: object = None) -> Saved:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(archive, destination)
        return Saved(destination)

    return _fetch


@pytest.fixture
def no_system_tool():
    with patch("erlboot.bootstrap.installer.shutil.which", return_value=None) as mock_which:
        yield mock_which


class TestExtractedEntry:
    def test_strips_first_segment(self) -> None:
        assert ExtractedEntry("project-master/bin/tool", b"").relative_path == "bin/tool"

    def test_top_level_only(self) -> None:
        assert ExtractedEntry("project-master", b"").relative_path == ""


class TestExtractArchive:
    def test_reads_files_in_memory(self, make_zip) -> None:
        archive = make_zip(
            {"project-master/README": "hello", "project-master/bootstrap": ("#!/bin/sh\n", 0o755)},
            top="project-master",
        )
        entries = extract_archive(archive)
        assert [e.path for e in entries] == ["project-master/README", "project-master/bootstrap"]
        assert entries[0].content == b"hello"
        assert entries[1].mode == 0o755

    def test_corrupt_archive(self, tmp_path: Path) -> None:
        archive = tmp_path / "bad.zip"
        archive.write_bytes(b"this is not a zip file")
        with pytest.raises(ArchiveError):
            extract_archive(archive)

    def test_missing_archive(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveError):
            extract_archive(tmp_path / "absent.zip")


class TestInstallEntries:
    def test_prefix_is_stripped(self, tmp_path: Path) -> None:
        entries = [
            ExtractedEntry("project-master/bin/tool", b"binary"),
            ExtractedEntry("project-master/src/deep/mod.erl", b"-module(mod)."),
            ExtractedEntry("project-master/README", b"readme"),
        ]
        target = tmp_path / "lib" / "tool"

        written = install_entries(entries, target)

        assert (target / "bin" / "tool").read_bytes() == b"binary"
        assert (target / "src" / "deep" / "mod.erl").read_bytes() == b"-module(mod)."
        assert (target / "README").read_bytes() == b"readme"
        assert not (target / "project-master").exists()
        assert len(written) == 3

    def test_overwrites_existing_files(self, tmp_path: Path) -> None:
        target = tmp_path / "tool"
        (target / "bin").mkdir(parents=True)
        (target / "bin" / "tool").write_bytes(b"old")
        install_entries([ExtractedEntry("x-master/bin/tool", b"new")], target)
        assert (target / "bin" / "tool").read_bytes() == b"new"

    def test_keeps_permission_bits(self, tmp_path: Path) -> None:
        install_entries([ExtractedEntry("x-master/bootstrap", b"#!/bin/sh\n", mode=0o755)], tmp_path)
        assert (tmp_path / "bootstrap").stat().st_mode & 0o777 == 0o755

    def test_rejects_path_traversal(self, tmp_path: Path) -> None:
        with pytest.raises(ArchiveError):
            install_entries([ExtractedEntry("x-master/../../evil", b"")], tmp_path / "tool")
        assert not (tmp_path / "evil").exists()


class TestEnsureTool:
    def test_prefers_system_tool(self, tmp_path: Path) -> None:
        with patch("erlboot.bootstrap.installer.shutil.which", return_value="/usr/bin/rebar"):
            with patch("erlboot.bootstrap.installer.fetch") as mock_fetch:
                result = ensure_tool(tmp_path, FetchSettings(), tmp_path / ".temp" / "rebar.zip")
        assert result == Path("/usr/bin/rebar")
        mock_fetch.assert_not_called()

    def test_cached_executable_skips_network(self, tmp_path: Path, no_system_tool: MagicMock) -> None:
        cached = tmp_path / "rebar" / "rebar"
        cached.parent.mkdir()
        cached.write_text("#!/bin/sh\n")
        cached.chmod(0o755)

        with patch("erlboot.bootstrap.installer.fetch") as mock_fetch:
            first = ensure_tool(tmp_path, FetchSettings(), tmp_path / "rebar.zip", tool=REBAR)
            second = ensure_tool(tmp_path, FetchSettings(), tmp_path / "rebar.zip", tool=REBAR)

        assert first == second == cached
        mock_fetch.assert_not_called()
        no_system_tool.assert_called_with("rebar")

    def test_downloads_unpacks_and_builds(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        archive = make_zip(
            {"tool-master/build.py": BUILD_SCRIPT, "tool-master/src/tool.erl": "-module(tool)."},
            top="tool-master",
        )
        deps = tmp_path / "lib"
        staging = tmp_path / ".temp" / "tool.zip"
        events: List[StreamEvent] = []

        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)) as mock_fetch:
            result = ensure_tool(
                deps,
                FetchSettings(),
                staging,
                tool=TOOL,
                stream_handler=CallbackStreamHandler(on_event=events.append),
            )

        assert result == deps / "tool" / "tool"
        assert (deps / "tool" / "src" / "tool.erl").exists()
        assert staging.exists()
        assert mock_fetch.call_args[0][:2] == (TOOL.url, staging)
        assert [e.content for e in events if e.stream_type == StreamType.OUTPUT] == ["compiling", "built"]
        assert events[0].stream_type == StreamType.STATUS
        assert events[0].content == f"Building in {deps / 'tool'}"

    def test_second_run_uses_cache(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        archive = make_zip({"tool-master/build.py": BUILD_SCRIPT})
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)) as mock_fetch:
            ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)
            ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)
        assert mock_fetch.call_count == 1

    def test_not_found_is_fatal(self, tmp_path: Path, no_system_tool: MagicMock) -> None:
        with patch("erlboot.bootstrap.installer.fetch", return_value=NotFound(TOOL.url)):
            with pytest.raises(ArtifactNotFoundError) as exc_info:
                ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)
        assert exc_info.value.url == TOOL.url

    def test_transport_error_is_fatal(self, tmp_path: Path, no_system_tool: MagicMock) -> None:
        with patch("erlboot.bootstrap.installer.fetch", return_value=TransportError("timed out")):
            with pytest.raises(TransportFailure, match="timed out"):
                ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)

    def test_corrupt_download_is_fatal(self, tmp_path: Path, no_system_tool: MagicMock) -> None:
        bad = tmp_path / "bad.zip"
        bad.write_bytes(b"<html>rate limited</html>")
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(bad)):
            with pytest.raises(ArchiveError):
                ensure_tool(tmp_path / "lib", FetchSettings(), tmp_path / "tool.zip", tool=TOOL)

    def test_failed_build_carries_output(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        archive = make_zip({"tool-master/build.py": "print('no compiler')\nraise SystemExit(3)\n"})
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)):
            with pytest.raises(ProcessError) as exc_info:
                ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)
        assert exc_info.value.exit_code == 3
        assert exc_info.value.output == "no compiler\n"
        assert "no compiler" in str(exc_info.value)

    def test_unrunnable_build_command(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        archive = make_zip({"tool-master/README": "x"})
        tool = ToolSpec(name="tool", url=TOOL.url, build_command=("./does-not-exist",))
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)):
            with pytest.raises(ProcessError) as exc_info:
                ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=tool)
        assert exc_info.value.exit_code is None

    def test_build_without_executable(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        archive = make_zip({"tool-master/build.py": "print('did nothing')\n"})
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)):
            with pytest.raises(ToolNotFoundError):
                ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)

    def test_built_file_is_made_executable(self, tmp_path: Path, make_zip, no_system_tool: MagicMock) -> None:
        script = "open('tool', 'w').write('#!/bin/sh\\n')\n"
        archive = make_zip({"tool-master/build.py": script})
        with patch("erlboot.bootstrap.installer.fetch", side_effect=serve_archive(archive)):
            result = ensure_tool(tmp_path, FetchSettings(), tmp_path / "tool.zip", tool=TOOL)
        assert result.stat().st_mode & 0o111
