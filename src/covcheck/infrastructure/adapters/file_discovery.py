"""File-system discovery adapter.

Implements FileDiscoveryPort with pathlib globbing and fnmatch matching.
"""

from __future__ import annotations

from pathlib import Path

from covcheck.infrastructure.filters.path import matches_pattern


class PathFileDiscovery:
    """Discovery collaborator backed by the local file system.

    Stateless. Missing directories yield no files rather than an error:
    source_dirs often lists optional locations.
    """

    def glob(self, directory: str, pattern: str) -> list[str]:
        """List regular files under directory matching pattern.

        Args:
            directory: Root directory
            pattern: pathlib glob pattern ("*.py", "**/*.py")

        Returns:
            Sorted file paths, __pycache__ skipped
        """
        root = Path(directory)
        if not root.is_dir():
            return []

        found: list[str] = []
        for path in root.glob(pattern):
            if "__pycache__" in path.parts or not path.is_file():
                continue
            found.append(str(path))
        return sorted(found)

    def matches_pattern(self, path: str, pattern: str) -> bool:
        """Check if path matches glob pattern."""
        return matches_pattern(path, pattern)
