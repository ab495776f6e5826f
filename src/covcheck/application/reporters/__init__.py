"""Diagnostic reporters.

Report rendering (HTML, JSON, LCOV) belongs to downstream formatters
consuming CoverageStatistics.original_files; only the debug dump lives here.
"""

from covcheck.application.reporters.console import DebugDumpReporter, DumpConfig

__all__ = [
    "DebugDumpReporter",
    "DumpConfig",
]
