"""Discovery of source files that never executed."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covcheck.infrastructure.filters.path import normalize_path, relative_to_root

if TYPE_CHECKING:
    from covcheck.domain.model.configuration import CoverageConfig
    from covcheck.domain.ports.file_discovery import FileDiscoveryPort


def find_candidates(config: CoverageConfig, discovery: FileDiscoveryPort) -> list[str]:
    """Tracked files under the configured source directories.

    Globs every include pattern in every source directory, then drops
    paths matching an exclude pattern. Excludes are matched against the
    part below the source directory, so a parent named "tests" does not
    hide the project.

    Args:
        config: Supplies source_dirs, include and exclude
        discovery: File-system collaborator

    Returns:
        Sorted unique normalized paths

    Example:
        >>> find_candidates(CoverageConfig(source_dirs=("src",)), PathFileDiscovery())
        ['/work/src/pkg/__init__.py', '/work/src/pkg/core.py']
    """
    found: set[str] = set()
    for directory in config.source_dirs:
        root = normalize_path(directory)
        for pattern in config.include:
            for path in discovery.glob(directory, pattern):
                normalized = normalize_path(path)
                if normalized in found:
                    continue
                relative = relative_to_root(normalized, (root,))
                anchored = normalized if relative is None else "/" + relative
                if any(discovery.matches_pattern(anchored, p) for p in config.exclude):
                    continue
                found.add(normalized)
    return sorted(found)
