"""
Bootstrap module for erlboot build tool management.

This module handles:
- Working directory creation (build, deps and temp directories)
- Downloading tool source archives
- Unpacking and building tools into the deps directory
- Binary validation utilities
"""

from erlboot.bootstrap.download import FetchSettings, HttpClient, NotFound, Saved, TransportError, fetch
from erlboot.bootstrap.installer import ensure_tool
from erlboot.bootstrap.paths import ensure_directory
from erlboot.bootstrap.tools import REBAR, ToolSpec
from erlboot.bootstrap.validation import ToolStatus, validate_binary

__all__ = [
    "FetchSettings",
    "HttpClient",
    "NotFound",
    "REBAR",
    "Saved",
    "ToolSpec",
    "ToolStatus",
    "TransportError",
    "ensure_directory",
    "ensure_tool",
    "fetch",
    "validate_binary",
]
