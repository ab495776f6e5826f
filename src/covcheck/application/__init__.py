"""Application layer for coverage collection.

Components:
- discovery: Never-executed source file discovery
- services: Tracking, reconciliation, aggregation, merging, engine facade
- reporters: Debug dump
"""

from covcheck.application.discovery import find_candidates
from covcheck.application.reporters import DebugDumpReporter, DumpConfig
from covcheck.application.services import (
    Aggregator,
    CoverageEngine,
    ExecutionTracker,
    ReconcileReport,
    Reconciler,
    TrackingHandle,
    merge_sessions,
)

__all__ = [
    # Discovery
    "find_candidates",
    # Reporters
    "DebugDumpReporter",
    "DumpConfig",
    # Services
    "Aggregator",
    "CoverageEngine",
    "ExecutionTracker",
    "ReconcileReport",
    "Reconciler",
    "TrackingHandle",
    "merge_sessions",
]
