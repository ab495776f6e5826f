"""Infrastructure adapters for external interfaces."""

from covcheck.infrastructure.adapters.cached_analyzer import CachedStaticAnalyzer
from covcheck.infrastructure.adapters.file_discovery import PathFileDiscovery
from covcheck.infrastructure.adapters.static_analyzer import (
    StaticAnalyzer,
    heuristic_map_for,
    read_source,
)

__all__ = [
    "CachedStaticAnalyzer",
    "PathFileDiscovery",
    "StaticAnalyzer",
    "heuristic_map_for",
    "read_source",
]
