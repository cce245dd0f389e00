"""Project setup orchestration.

Takes a resolved :class:`~erlboot.config.models.ProjectConfig`, creates the
working directories and makes sure the build tool is installed. The result
is handed to the downstream build.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from erlboot.bootstrap.download import FetchSettings, HttpClient
from erlboot.bootstrap.installer import ensure_tool
from erlboot.bootstrap.paths import ensure_directory
from erlboot.bootstrap.tools import REBAR, ToolSpec
from erlboot.config.models import ProjectConfig
from erlboot.core.logging import get_logger
from erlboot.core.streaming import StreamHandler

LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class SetupResult:
    """What the downstream build needs: the layout and the tool to run."""

    config: ProjectConfig
    tool_name: str
    tool_path: Path

    def to_dict(self) -> Dict[str, Any]:
        data = self.config.to_dict()
        data[self.tool_name] = str(self.tool_path)
        return data


class ProjectSetup:
    """Prepares a project's working area."""

    def __init__(
        self,
        config: ProjectConfig,
        tool: ToolSpec = REBAR,
        client: Optional[HttpClient] = None,
        stream_handler: Optional[StreamHandler] = None,
    ) -> None:
        self._config = config
        self._tool = tool
        self._client = client
        self._stream_handler = stream_handler

    @property
    def directories(self) -> List[Path]:
        return [self._config.build_dir, self._config.deps_dir, self._config.temp_dir]

    def ensure_directories(self) -> None:
        """Create the build, deps and temp directories.

        Raises:
            FilesystemError: If any of them cannot be created.
        """
        for directory in self.directories:
            ensure_directory(directory)

    def run(self) -> SetupResult:
        """Create directories, then verify or install the tool.

        Raises:
            BootstrapError: On the first failure of any step.
        """
        self.ensure_directories()
        settings = FetchSettings.from_config(self._config)
        tool_path = ensure_tool(
            self._config.deps_dir,
            settings,
            self._config.staging_path(self._tool.name),
            tool=self._tool,
            client=self._client,
            stream_handler=self._stream_handler,
        )
        LOGGER.info(f"Project ready in {self._config.build_dir}")
        return SetupResult(config=self._config, tool_name=self._tool.name, tool_path=tool_path)
