"""Settings validation for erlboot.

Settings are an open mapping: anything the script returns is kept and handed
to later lookups. Validation only warns about keys that look like typos of
known keys and about known keys with the wrong type. It never raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from difflib import get_close_matches
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple

from erlboot.core.logging import get_logger

LOGGER = get_logger(__name__)

# Known top-level settings and their accepted types
KNOWN_SETTINGS: Dict[str, Tuple[type, ...]] = {
    "build_dir": (str, Path),
    "rebar_config": (dict,),
    "remote_net_timeout": (int,),
    "remote_proxy_host": (str,),
    "remote_proxy_port": (str, int),
}

# Known keys under rebar_config
KNOWN_REBAR_CONFIG_KEYS: Set[str] = {
    "deps_dir",
}


@dataclass
class ConfigValidationWarning:
    """A validation warning for configuration."""

    message: str
    source: str
    key: Optional[str] = None
    suggestion: Optional[str] = None


def validate_settings(
    settings: Mapping[str, Any],
    source: str,
) -> List[ConfigValidationWarning]:
    """Check evaluated settings and log a warning for each problem.

    Args:
        settings: Mapping produced by the configuration script.
        source: Config file path for warning messages.

    Returns:
        List of validation warnings.
    """
    warnings: List[ConfigValidationWarning] = []

    for key, value in settings.items():
        expected = KNOWN_SETTINGS.get(key)
        if expected is None:
            suggestion = _suggest_key(key, set(KNOWN_SETTINGS))
            if suggestion:
                warnings.append(ConfigValidationWarning(
                    message=f"Unknown setting '{key}'",
                    source=source,
                    key=key,
                    suggestion=suggestion,
                ))
            continue
        # bool is an int subclass but never a valid timeout or port
        if isinstance(value, bool) or not isinstance(value, expected):
            warnings.append(ConfigValidationWarning(
                message=(
                    f"'{key}' must be {' or '.join(t.__name__ for t in expected)}, "
                    f"got {type(value).__name__}"
                ),
                source=source,
                key=key,
            ))

    rebar_config = settings.get("rebar_config")
    if isinstance(rebar_config, dict):
        for key in rebar_config:
            if key not in KNOWN_REBAR_CONFIG_KEYS:
                suggestion = _suggest_key(str(key), KNOWN_REBAR_CONFIG_KEYS)
                if suggestion:
                    warnings.append(ConfigValidationWarning(
                        message=f"Unknown setting 'rebar_config.{key}'",
                        source=source,
                        key=f"rebar_config.{key}",
                        suggestion=f"rebar_config.{suggestion}",
                    ))

    timeout = settings.get("remote_net_timeout")
    if isinstance(timeout, int) and not isinstance(timeout, bool) and timeout <= 0:
        warnings.append(ConfigValidationWarning(
            message="'remote_net_timeout' must be positive",
            source=source,
            key="remote_net_timeout",
        ))

    for warning in warnings:
        _log_warning(warning)
    return warnings


def _suggest_key(key: str, valid_keys: Set[str]) -> Optional[str]:
    matches = get_close_matches(key, sorted(valid_keys), n=1, cutoff=0.7)
    return matches[0] if matches else None


def _log_warning(warning: ConfigValidationWarning) -> None:
    message = f"{warning.source}: {warning.message}"
    if warning.suggestion:
        message += f" (did you mean '{warning.suggestion}'?)"
    LOGGER.warning(message)
