"""Path filters.

Decide which files are tracked by include/exclude glob patterns.
Uses fnmatch for glob matching (* matches any character including /).
Patterns without a "/" match the file name only, so "test_*.py"
excludes test modules at any depth.
"""

from __future__ import annotations

import fnmatch
import os
import re
from collections.abc import Iterable
from dataclasses import dataclass

_TEST_FILE_RE = re.compile(r"(^test_.*\.py$)|(_test\.py$)")
_TEST_DIRS = frozenset({"tests", "test"})


def normalize_path(path: str) -> str:
    """Absolute, normalized, case-normalized path used as File Data key."""
    return os.path.normcase(os.path.abspath(path))


def matches_pattern(path: str, pattern: str) -> bool:
    """Check if path matches a glob pattern.

    "**/" is accepted as "*/" (fnmatch "*" already crosses directories).
    Patterns without "/" are matched against the basename as well.
    """
    normalized = path.replace(os.sep, "/")
    glob = pattern.replace("**/", "*/")
    if fnmatch.fnmatch(normalized, glob):
        return True
    if "/" not in glob:
        return fnmatch.fnmatch(normalized.rsplit("/", 1)[-1], glob)
    return fnmatch.fnmatch(normalized, "*/" + glob)


def looks_like_test_file(path: str) -> bool:
    """Test-file naming conventions: test_*.py, *_test.py, tests/ or test/ dirs.

    Pass the path relative to its project root: every directory part
    is checked, so an absolute path under /home/me/tests/ would match.
    """
    parts = path.replace(os.sep, "/").split("/")
    if _TEST_FILE_RE.search(parts[-1]):
        return True
    return any(part in _TEST_DIRS for part in parts[:-1])


def relative_to_root(path: str, roots: Iterable[str]) -> str | None:
    """Part of path below the deepest root containing it, "/"-separated.

    Returns:
        Relative path, None when path lies under none of the roots
    """
    deepest: str | None = None
    for root in roots:
        if _is_under(path, root) and (deepest is None or len(root) > len(deepest)):
            deepest = root
    if deepest is None:
        return None
    return path[len(deepest) :].replace(os.sep, "/").lstrip("/")


@dataclass(frozen=True, slots=True)
class PathFilter:
    """Include/exclude filter over file paths.

    A path is tracked when it lies under one of the roots (any path
    when roots is empty), matches any include pattern and no exclude
    pattern. With roots, patterns see the part below the root as
    "/pkg/mod.py", so directories above a root never match "*/tests/*".

    Attributes:
        include: Glob patterns (e.g., "*.py", "src/*").
        exclude: Glob patterns to exclude (e.g., "*/.venv/*", "test_*.py").
        roots: Normalized directories tracked files must live under.
    """

    include: tuple[str, ...]
    exclude: tuple[str, ...] = ()
    roots: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not self.include:
            raise ValueError("include must contain at least one pattern")

    def __call__(self, path: str) -> bool:
        """Check if path should be tracked."""
        if self.roots:
            relative = relative_to_root(path, self.roots)
            if relative is None:
                return False
            path = "/" + relative
        if not any(matches_pattern(path, p) for p in self.include):
            return False
        return not any(matches_pattern(path, p) for p in self.exclude)


def _is_under(path: str, root: str) -> bool:
    prefix = root.rstrip(os.sep) + os.sep
    return path == root or path.startswith(prefix)
