"""Reconciliation service: align runtime hits with static classification.

Runtime line events can land on lines the static model calls
non-executable (a multi-line literal, a continuation line). Coverage
must never overstate execution, so such hits are cleared here, and
functions and blocks are credited from the lines that did count.

Algorithm (per file, in order):
    1. Discovery: seed never-executed candidate files
    2. Analyze PENDING code maps (heuristics on parse failure)
    3. Build the executable map, literal spans forced non-executable
    4. Setup credit for heuristic or preloaded files with any execution
    5. Clear hits on non-executable lines, set hits on executed ones
    6. Functions: call recorded, or a covered line inside the body
    7. Blocks: a covered line inside the range

Running reconcile() twice leaves the session unchanged.
"""

from __future__ import annotations

import logging
from bisect import bisect_left
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covcheck.application.discovery.uncovered import find_candidates
from covcheck.application.services.tracker import SourceReader
from covcheck.domain.exceptions import CovCheckError, FileUnreadableError, ParseFailedError
from covcheck.domain.model.code_map import AnalysisOrigin
from covcheck.domain.model.file_data import FileData
from covcheck.infrastructure.adapters.static_analyzer import heuristic_map_for, read_source
from covcheck.infrastructure.analyzers.literals import literal_lines, scan_literal_spans

if TYPE_CHECKING:
    from covcheck.domain.model.configuration import CoverageConfig
    from covcheck.domain.model.session import Session
    from covcheck.domain.ports.file_discovery import FileDiscoveryPort
    from covcheck.domain.ports.static_analyzer import StaticAnalyzerPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ReconcileReport:
    """What one reconciliation pass changed.

    Attributes:
        files_analyzed: Code maps built in this pass
        lines_cleared: Hits removed from non-executable lines
        functions_backfilled: Functions credited from line hits without a call
        blocks_executed: Blocks with at least one covered line
        files_discovered: Never-executed files added by discovery
    """

    files_analyzed: int = 0
    lines_cleared: int = 0
    functions_backfilled: int = 0
    blocks_executed: int = 0
    files_discovered: int = 0


class Reconciler:
    """Aligns FileData hits with Code Maps.

    Per-file failures (CovCheckError) are logged and skip that file only.
    """

    def __init__(
        self,
        analyzer: StaticAnalyzerPort,
        discovery: FileDiscoveryPort | None = None,
        *,
        reader: SourceReader = read_source,
    ) -> None:
        """Initialize reconciler.

        Args:
            analyzer: Builds code maps (usually the cached analyzer)
            discovery: File-system collaborator, None disables discovery
            reader: Path -> source text for discovered files
        """
        self._analyzer = analyzer
        self._discovery = discovery
        self._reader = reader

    def reconcile(self, session: Session) -> ReconcileReport:
        """Reconcile every file of session in place."""
        config = session.config
        discovered = 0
        if config.discover_uncovered and self._discovery is not None:
            discovered = self._discover(session)

        analyzed = cleared = backfilled = blocks = 0
        for path in sorted(session.files):
            data = session.files[path]
            try:
                analyzed += self._ensure_code_map(data, config)
                cleared += self._reconcile_lines(data)
                backfilled += self._reconcile_functions(data)
                blocks += self._reconcile_blocks(data)
            except CovCheckError as e:
                logger.warning("reconciliation of %s skipped: %s", path, e)

        return ReconcileReport(
            files_analyzed=analyzed,
            lines_cleared=cleared,
            functions_backfilled=backfilled,
            blocks_executed=blocks,
            files_discovered=discovered,
        )

    # =========================================================================
    # Step 1: Discovery
    # =========================================================================

    def _discover(self, session: Session) -> int:
        if self._discovery is None:
            return 0
        added = 0
        for path in find_candidates(session.config, self._discovery):
            if path in session.files or path in session.unreadable:
                continue
            try:
                source = self._reader(path)
            except FileUnreadableError as e:
                logger.warning("cannot read %s, excluded from coverage: %s", path, e.reason)
                session.unreadable.add(path)
                continue
            session.files[path] = FileData.from_source(path, source, discovered=True)
            added += 1
        if added:
            logger.debug("discovered %d never-executed file(s)", added)
        return added

    # =========================================================================
    # Step 2: Code map
    # =========================================================================

    def _ensure_code_map(self, data: FileData, config: CoverageConfig) -> int:
        if not data.needs_static_analysis:
            return 0
        if not config.use_static_analysis:
            data.code_map = heuristic_map_for(
                data.path, data.source_text, reason="static analysis disabled"
            )
            return 1
        try:
            data.code_map = self._analyzer.analyze(data.path, data.source_text)
        except ParseFailedError as e:
            logger.debug("%s, using heuristics", e)
            data.code_map = heuristic_map_for(data.path, data.source_text, reason=e.reason)
        return 1

    # =========================================================================
    # Steps 3-5: Lines
    # =========================================================================

    def _reconcile_lines(self, data: FileData) -> int:
        code_map = data.code_map
        literal = literal_lines(scan_literal_spans(data.source_lines))
        data.executable = {
            line: code_map.is_line_executable(line) and line not in literal
            for line in range(1, data.line_count + 1)
        }

        credit_setup = code_map.origin is AnalysisOrigin.HEURISTIC or data.preloaded
        if credit_setup and data.has_execution:
            for line in code_map.setup_lines:
                data.executed[line] = True

        cleared = 0
        for line, hit in data.covered.items():
            if hit and not data.executable.get(line, False):
                data.covered[line] = False
                cleared += 1
        if cleared:
            logger.debug("%s: cleared %d hit(s) on non-executable lines", data.path, cleared)

        for line, ran in data.executed.items():
            if ran and data.executable.get(line, False):
                data.covered[line] = True
        return cleared

    # =========================================================================
    # Steps 6-7: Functions and blocks
    # =========================================================================

    def _reconcile_functions(self, data: FileData) -> int:
        covered = sorted(data.covered_lines())
        backfilled = 0
        executed: dict[tuple[int, str], bool] = {}
        for func in data.code_map.functions:
            called = data.function_calls.get(func.key, 0) > 0
            body = func.body_range
            ran = called or _any_in_range(covered, body.start, body.stop - 1)
            executed[func.key] = ran
            if ran and not called:
                backfilled += 1
        data.functions_executed = executed
        return backfilled

    def _reconcile_blocks(self, data: FileData) -> int:
        covered = sorted(data.covered_lines())
        data.blocks_executed = {
            block.id: _any_in_range(covered, block.start_line, block.end_line)
            for block in data.code_map.blocks
        }
        return sum(data.blocks_executed.values())


def _any_in_range(sorted_lines: Sequence[int], first: int, last: int) -> bool:
    """Check if any line lies in [first, last]. O(log n)."""
    index = bisect_left(sorted_lines, first)
    return index < len(sorted_lines) and sorted_lines[index] <= last
