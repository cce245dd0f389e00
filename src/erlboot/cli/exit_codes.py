"""Exit codes for the erlboot CLI.

- 0: Success (project prepared, help or version shown)
- 1: Failure (missing config, download, unpack or build error)
"""

from __future__ import annotations

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
