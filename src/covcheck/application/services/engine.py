"""Coverage engine facade: lifecycle of one coverage session.

Wires the tracker, event source, analyzer, reconciler and aggregator
around an explicit Session. Test runners drive it:

    engine = CoverageEngine(CoverageConfig(enabled=True, source_dirs=("src",)))
    engine.start()
    # ... run tests ...
    stats = engine.stop()
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass

from covcheck.application.discovery.uncovered import find_candidates
from covcheck.application.reporters.console import DebugDumpReporter, DumpConfig
from covcheck.application.services.aggregator import Aggregator
from covcheck.application.services.reconciler import Reconciler
from covcheck.application.services.tracker import ExecutionTracker, SourceReader
from covcheck.domain.events import Event
from covcheck.domain.exceptions import CovCheckError, NotExitedError, ToolIdUnavailableError
from covcheck.domain.model.configuration import CoverageConfig
from covcheck.domain.model.session import Session
from covcheck.domain.model.statistics import CoverageStatistics
from covcheck.domain.ports.event_source import EventSourceProtocol
from covcheck.domain.ports.file_discovery import FileDiscoveryPort
from covcheck.domain.ports.static_analyzer import StaticAnalyzerPort
from covcheck.infrastructure.adapters.cached_analyzer import CachedStaticAnalyzer
from covcheck.infrastructure.adapters.file_discovery import PathFileDiscovery
from covcheck.infrastructure.adapters.static_analyzer import StaticAnalyzer, read_source
from covcheck.infrastructure.monitoring import EventSink, FileFilter, MonitoringEventSource
from covcheck.logging_config import setup_logging

logger = logging.getLogger(__name__)

type EventSourceFactory = Callable[[EventSink, FileFilter], EventSourceProtocol]


@dataclass(frozen=True, slots=True)
class TrackingHandle:
    """Handle to coverage statistics. Externally immutable, single-write internal.

    Result available after context exit via .result property.
    Raises NotExitedError if accessed before context exit.
    """

    _result_value: CoverageStatistics | None = None

    @property
    def result(self) -> CoverageStatistics:
        """Get coverage statistics. Available only after context exit.

        Raises:
            NotExitedError: Context not exited yet.
        """
        if self._result_value is None:
            raise NotExitedError
        return self._result_value


class CoverageEngine:
    """Coverage engine facade.

    Contracts:
        - start() is a no-op when disabled or already active
        - stop() and get_report_data() always return statistics
        - Per-file failures never escape (logged, file skipped)
        - The code-map cache survives reset(), not full_reset()
    """

    def __init__(
        self,
        config: CoverageConfig | None = None,
        *,
        discovery: FileDiscoveryPort | None = None,
        analyzer: StaticAnalyzerPort | None = None,
        event_source_factory: EventSourceFactory | None = None,
        reader: SourceReader = read_source,
    ) -> None:
        """Initialize engine.

        Args:
            config: Configuration. Uses defaults (disabled) if None.
            discovery: File-system collaborator. PathFileDiscovery if None.
            analyzer: Static analyzer. Built from config if None.
            event_source_factory: (sink, filter) -> event source.
                MonitoringEventSource if None.
            reader: Path -> source text
        """
        self._discovery = discovery if discovery is not None else PathFileDiscovery()
        self._custom_analyzer = analyzer
        self._event_source_factory = event_source_factory or MonitoringEventSource
        self._reader = reader
        self._event_source: EventSourceProtocol | None = None
        self._configure(config or CoverageConfig())

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def config(self) -> CoverageConfig:
        """Active configuration."""
        return self._session.config

    @property
    def session(self) -> Session:
        """Current session."""
        return self._session

    @property
    def analyzer(self) -> StaticAnalyzerPort:
        """Analyzer used by reconciliation (cached unless disabled)."""
        return self._analyzer

    @property
    def is_active(self) -> bool:
        """Event source attached."""
        return self._session.active

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def init(self, options: Mapping[str, object] | CoverageConfig | None = None) -> None:
        """Re-apply configuration and reset collected data.

        Options are merged over the defaults. Warms the code-map cache
        when pre_analyze_files is set.

        Raises:
            ValueError: Unknown option or invalid value
        """
        if isinstance(options, CoverageConfig):
            config = options
        else:
            config = CoverageConfig.from_mapping(options)
        self._detach()
        self._configure(config)
        if config.pre_analyze_files:
            self._pre_analyze()

    def start(self) -> None:
        """Begin collecting. No-op when disabled or already active.

        Modules already imported and tracked are seeded as preloaded.
        A taken sys.monitoring slot is logged; the engine stays inactive.
        """
        session = self._session
        if not session.enabled or session.active:
            return

        self._seed_preloaded()
        if self._event_source is None:
            self._event_source = self._event_source_factory(
                self._tracker.handle, self._tracker.is_tracked
            )
        try:
            self._event_source.start()
        except ToolIdUnavailableError as e:
            logger.warning("%s; coverage stays inactive", e)
            return
        session.active = True
        logger.debug("coverage started")

    def stop(self) -> CoverageStatistics:
        """Stop collecting, reconcile and aggregate."""
        self._detach()
        return self._aggregator.aggregate(self._session)

    def reset(self) -> None:
        """Drop collected data. Tracking state and cache are kept.

        An attached event source is re-armed so lines already reported
        are recorded again.
        """
        self._session.reset()
        if self._event_source is not None and self._event_source.is_started:
            self._event_source.restart()

    def full_reset(self) -> None:
        """Stop tracking, drop collected data and the code-map cache."""
        self._detach()
        self._session.reset()
        if isinstance(self._analyzer, CachedStaticAnalyzer):
            self._analyzer.clear()

    # =========================================================================
    # Events and reports
    # =========================================================================

    def track_line(self, file: str, line: int) -> None:
        """Record a line hit from an external instrumenter."""
        self._tracker.track_line(file, line)

    def handle(self, event: Event) -> None:
        """Record an event from an external instrumenter."""
        self._tracker.handle(event)

    def get_report_data(self) -> CoverageStatistics:
        """Statistics for the data collected so far. Tracking continues."""
        return self._aggregator.aggregate(self._session)

    def debug_dump(self, config: DumpConfig | None = None) -> str:
        """Rich-rendered dump of the raw session state."""
        return DebugDumpReporter(config).report(self._session)

    def track[T](self, target: Callable[[], T]) -> tuple[T, CoverageStatistics]:
        """Run target under coverage, return its result and statistics.

        Args:
            target: Zero-argument callable to track.

        Returns:
            (target_result, statistics)
        """
        self.start()
        try:
            result = target()
        finally:
            statistics = self.stop()
        return result, statistics

    @contextmanager
    def track_context(self) -> Iterator[TrackingHandle]:
        """Context manager for tracking code blocks.

        Usage:
            with engine.track_context() as handle:
                do_work()
            print(handle.result.summary.overall_percent)
        """
        handle = TrackingHandle()
        self.start()
        try:
            yield handle
        finally:
            object.__setattr__(handle, "_result_value", self.stop())

    # =========================================================================
    # Internals
    # =========================================================================

    def _configure(self, config: CoverageConfig) -> None:
        if config.debug:
            setup_logging()

        self._session = Session.create(config)
        self._event_source = None
        if self._custom_analyzer is not None:
            self._analyzer = self._custom_analyzer
        elif config.cache_parsed_files:
            self._analyzer = CachedStaticAnalyzer(StaticAnalyzer.from_config(config))
        else:
            self._analyzer = StaticAnalyzer.from_config(config)
        self._tracker = ExecutionTracker(self._session, reader=self._reader)
        self._reconciler = Reconciler(self._analyzer, self._discovery, reader=self._reader)
        self._aggregator = Aggregator(self._reconciler)

    def _detach(self) -> None:
        if self._event_source is not None and self._event_source.is_started:
            self._event_source.stop()
            logger.debug("coverage stopped")
        self._session.active = False

    def _seed_preloaded(self) -> None:
        for module in list(sys.modules.values()):
            file = getattr(module, "__file__", None)
            if isinstance(file, str) and file.endswith(".py"):
                self._tracker.ensure_file(file, preloaded=True)

    def _pre_analyze(self) -> None:
        if not self._session.config.use_static_analysis:
            return
        for path in find_candidates(self._session.config, self._discovery):
            try:
                self._analyzer.analyze(path, self._reader(path))
            except CovCheckError as e:
                logger.debug("pre-analysis of %s skipped: %s", path, e)
