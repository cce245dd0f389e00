"""Configuration data models for erlboot."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

TEMP_DIR_NAME = ".temp"
DEFAULT_DEPS_DIR_NAME = "lib"


@dataclass(frozen=True)
class ProjectConfig:
    """Resolved project layout plus the raw evaluated settings.

    ``temp_dir`` always lives directly under ``build_dir``; ``deps_dir`` may
    point anywhere.
    """

    build_dir: Path
    deps_dir: Path
    temp_dir: Path
    raw_settings: Mapping[str, Any] = field(default_factory=dict)
    config_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if not isinstance(self.raw_settings, MappingProxyType):
            object.__setattr__(self, "raw_settings", MappingProxyType(dict(self.raw_settings)))

    def get(self, name: str, default: Any = None) -> Any:
        """Return a top-level setting or ``default``."""
        return self.raw_settings.get(name, default)

    def lookup(self, *keys: str, default: Any = None) -> Any:
        """Walk nested mappings, e.g. ``lookup("rebar_config", "deps_dir")``."""
        current: Any = self.raw_settings
        for key in keys:
            if not isinstance(current, Mapping) or key not in current:
                return default
            current = current[key]
        return current

    def staging_path(self, tool_name: str) -> Path:
        """Where the downloaded archive for ``tool_name`` is kept."""
        return self.temp_dir / f"{tool_name}.zip"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "build_dir": str(self.build_dir),
            "deps_dir": str(self.deps_dir),
            "temp_dir": str(self.temp_dir),
            "config_path": str(self.config_path) if self.config_path else None,
            "settings": _plain(self.raw_settings),
        }


def _plain(value: Any) -> Any:
    """Convert evaluated values to YAML/JSON friendly builtins."""
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [_plain(v) for v in value]
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    return str(value)
