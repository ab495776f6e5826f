"""Application services for coverage collection.

CoverageEngine is the main facade for running a coverage session.
"""

from covcheck.application.services.aggregator import Aggregator
from covcheck.application.services.engine import CoverageEngine, TrackingHandle
from covcheck.application.services.merger import merge_sessions
from covcheck.application.services.reconciler import ReconcileReport, Reconciler
from covcheck.application.services.tracker import ExecutionTracker

__all__ = [
    "Aggregator",
    "CoverageEngine",
    "ExecutionTracker",
    "ReconcileReport",
    "Reconciler",
    "TrackingHandle",
    "merge_sessions",
]
