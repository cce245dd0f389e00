"""Bootstrap pipeline orchestration."""

from erlboot.pipeline.setup import ProjectSetup, SetupResult

__all__ = ["ProjectSetup", "SetupResult"]
