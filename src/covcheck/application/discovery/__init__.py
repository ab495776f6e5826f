"""Discovery of never-executed source files."""

from covcheck.application.discovery.uncovered import find_candidates

__all__ = ["find_candidates"]
