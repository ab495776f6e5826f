"""Path filtering for tracked files."""

from covcheck.infrastructure.filters.path import (
    PathFilter,
    looks_like_test_file,
    matches_pattern,
    normalize_path,
    relative_to_root,
)

__all__ = [
    "PathFilter",
    "looks_like_test_file",
    "matches_pattern",
    "normalize_path",
    "relative_to_root",
]
