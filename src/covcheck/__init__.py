"""covcheck - Python source coverage engine with static line classification."""

__version__ = "0.1.0"

from covcheck.application.services import CoverageEngine, merge_sessions
from covcheck.domain.model import CoverageConfig, CoverageStatistics

__all__ = [
    "CoverageConfig",
    "CoverageEngine",
    "CoverageStatistics",
    "__version__",
    "merge_sessions",
]
