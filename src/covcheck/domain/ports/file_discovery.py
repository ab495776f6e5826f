"""File discovery port (interface).

The engine never globs itself: candidate files for zero-coverage
discovery come from this collaborator.
"""

from __future__ import annotations

from typing import Protocol


class FileDiscoveryPort(Protocol):
    """Contract for the file-system discovery collaborator."""

    def glob(self, directory: str, pattern: str) -> list[str]:
        """List files under directory matching pattern.

        Args:
            directory: Root directory
            pattern: Glob pattern relative to directory

        Returns:
            Matching file paths (order unspecified)
        """
        ...

    def matches_pattern(self, path: str, pattern: str) -> bool:
        """Check if path matches glob pattern."""
        ...
