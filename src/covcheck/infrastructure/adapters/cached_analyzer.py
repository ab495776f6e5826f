"""Cached static analyzer adapter.

Decorator pattern: wraps StaticAnalyzerPort with content-hash based caching.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from covcheck.domain.model.code_map import CodeMap
from covcheck.domain.model.file_data import fingerprint_text
from covcheck.domain.ports.static_analyzer import StaticAnalyzerPort
from covcheck.infrastructure.adapters.static_analyzer import read_source


@dataclass
class CachedStaticAnalyzer(StaticAnalyzerPort):
    """Analyzer with content-hash based caching.

    Decorator pattern: wraps another StaticAnalyzerPort.
    Uses SHA-256 fingerprint of file content for cache invalidation: a
    changed fingerprint replaces the entry whole, entries are never
    patched in place.

    Cache is in-memory only - no persistence between runs.

    Attributes:
        _inner: Wrapped analyzer implementation
        _cache: Path -> (fingerprint, CodeMap) mapping
    """

    _inner: StaticAnalyzerPort
    _cache: dict[str, tuple[str, CodeMap]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if self._inner is None:
            raise TypeError("_inner analyzer must not be None")

    def analyze(self, path: str, source: str | None = None) -> CodeMap:
        """Analyze with cache lookup.

        Cache hit: return cached CodeMap if fingerprint matches.
        Cache miss: analyze with inner analyzer, cache result.

        Raises:
            FileUnreadableError: source is None and path cannot be read
            ParseFailedError: Source is not valid Python (nothing cached)
        """
        if source is None:
            source = read_source(path)
        fingerprint = fingerprint_text(source)

        cached = self._cache.get(path)
        if cached is not None and cached[0] == fingerprint:
            return cached[1]

        code_map = self._inner.analyze(path, source)
        self._cache[path] = (fingerprint, code_map)
        return code_map

    def invalidate(self, path: str) -> None:
        """Explicitly invalidate cache entry.

        Use when you know a file has changed externally.
        """
        self._cache.pop(path, None)

    def clear(self) -> None:
        """Clear entire cache."""
        self._cache.clear()

    @property
    def cache_size(self) -> int:
        """Number of cached code maps."""
        return len(self._cache)

    @property
    def cached_paths(self) -> frozenset[str]:
        """Paths currently in cache."""
        return frozenset(self._cache)
