"""Configuration file loading.

The configuration lives in ``erlboot.config`` in the directory erlboot runs
from. The file is a script (see :mod:`erlboot.config.evaluator`) whose final
value is the settings mapping. A list of ``(key, value)`` pairs is accepted
as well and converted to a mapping.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from erlboot.config.evaluator import PARSE_ERROR, ScriptEvaluator
from erlboot.config.functions import FunctionHandler
from erlboot.config.models import DEFAULT_DEPS_DIR_NAME, TEMP_DIR_NAME, ProjectConfig
from erlboot.config.validation import validate_settings
from erlboot.core.exceptions import ConfigError
from erlboot.core.logging import get_logger

LOGGER = get_logger(__name__)

CONFIG_FILE_NAME = "erlboot.config"


def find_project_config(search_dir: Path) -> Optional[Path]:
    """Return the config file in ``search_dir`` if there is one."""
    config_path = search_dir / CONFIG_FILE_NAME
    if config_path.is_file():
        return config_path
    return None


def load_config(
    search_dir: Optional[Path] = None,
    config_path: Optional[Path] = None,
    handler: Optional[FunctionHandler] = None,
) -> ProjectConfig:
    """Find, evaluate and resolve the project configuration.

    Args:
        search_dir: Directory searched for ``erlboot.config`` and base for
            relative paths (default: current working directory).
        config_path: Explicit config file; skips the search.
        handler: Functions available to the script.

    Returns:
        Resolved ProjectConfig.

    Raises:
        ConfigError: If the file is missing, fails to evaluate, or does not
            produce a usable settings mapping.
    """
    base_dir = Path(os.path.abspath(search_dir or Path.cwd()))

    if config_path is None:
        config_path = find_project_config(base_dir)
        if config_path is None:
            raise ConfigError(
                f"Config file not found: {base_dir / CONFIG_FILE_NAME}",
                category="missing_config",
            )
    elif not config_path.is_file():
        raise ConfigError(f"Config file not found: {config_path}", category="missing_config")

    LOGGER.debug(f"Loading config from {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            value = ScriptEvaluator(handler or FunctionHandler()).evaluate(f, name=str(config_path))
    except OSError as e:
        raise ConfigError(f"Cannot read {config_path}: {e}", category="missing_config", cause=e) from e
    except UnicodeDecodeError as e:
        raise ConfigError(
            f"{config_path}: not valid UTF-8 text: {e}", category=PARSE_ERROR, cause=e
        ) from e

    settings = to_settings(value, source=str(config_path))
    validate_settings(settings, source=str(config_path))
    return project_config_from_settings(settings, base_dir, config_path=config_path)


def to_settings(value: Any, source: str = "<script>") -> Dict[str, Any]:
    """Normalize a script result into an ordered settings mapping.

    Mappings are copied; lists of ``(key, value)`` pairs become mappings.
    Nested values are normalized the same way wherever they look like one of
    those shapes.
    """
    if isinstance(value, Mapping):
        items = list(value.items())
    elif isinstance(value, (list, tuple)) and all(_is_pair(item) for item in value):
        items = [tuple(item) for item in value]
    else:
        raise ConfigError(
            f"{source}: configuration must evaluate to a mapping, got {type(value).__name__}",
            category="invalid_config",
        )

    settings: Dict[str, Any] = {}
    for key, item in items:
        if not isinstance(key, str):
            raise ConfigError(
                f"{source}: setting names must be strings, got {key!r}",
                category="invalid_config",
            )
        settings[key] = _normalize(item)
    return settings


def _is_pair(item: Any) -> bool:
    return isinstance(item, (list, tuple)) and len(item) == 2 and isinstance(item[0], str)


def _normalize(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {k: _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)) and value and all(_is_pair(item) for item in value):
        return {item[0]: _normalize(item[1]) for item in value}
    return value


def project_config_from_settings(
    settings: Mapping[str, Any],
    base_dir: Path,
    config_path: Optional[Path] = None,
) -> ProjectConfig:
    """Derive the project layout from evaluated settings.

    Args:
        settings: Settings mapping.
        base_dir: Default build directory and base for relative paths.
        config_path: Where the settings came from.

    Returns:
        ProjectConfig with absolute build, deps and temp directories.

    Raises:
        ConfigError: If a directory setting is not a path.
    """
    build_dir = _absolute(_path_setting(settings.get("build_dir"), "build_dir") or base_dir, base_dir)

    rebar_config = settings.get("rebar_config")
    deps_setting = None
    if isinstance(rebar_config, Mapping):
        deps_setting = _path_setting(rebar_config.get("deps_dir"), "rebar_config.deps_dir")
    deps_dir = _absolute(deps_setting, build_dir) if deps_setting else build_dir / DEFAULT_DEPS_DIR_NAME

    return ProjectConfig(
        build_dir=build_dir,
        deps_dir=deps_dir,
        temp_dir=build_dir / TEMP_DIR_NAME,
        raw_settings=settings,
        config_path=config_path,
    )


def _path_setting(value: Any, key: str) -> Optional[Path]:
    if value is None:
        return None
    if isinstance(value, (str, Path)) and str(value):
        return Path(os.path.expanduser(str(value)))
    raise ConfigError(
        f"'{key}' must be a non-empty path, got {value!r}",
        category="invalid_config",
    )


def _absolute(path: Path, base_dir: Path) -> Path:
    if not path.is_absolute():
        path = base_dir / path
    return Path(os.path.abspath(path))
