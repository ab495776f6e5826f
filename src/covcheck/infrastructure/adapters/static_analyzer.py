"""AST-based static analyzer adapter.

Implements StaticAnalyzerPort in three budgeted phases:

    PARSE    ast.parse of the whole text
    EXTRACT  source-ordered walk collecting statements, functions, blocks
    MARK     literal spans applied, lines marked executable in batches

A phase that runs out of time keeps what it produced. Lines the AST
never reached are classified by heuristics and the map is PARTIAL.
"""

from __future__ import annotations

import ast
import logging
import os
import time
import tokenize
from collections.abc import Collection, Iterable

from covcheck.domain.exceptions import (
    AnalysisTimeoutError,
    FileUnreadableError,
    ParseFailedError,
)
from covcheck.domain.model.code_map import (
    AnalysisOrigin,
    AnalysisPhase,
    CodeMap,
    main_chunk,
)
from covcheck.domain.model.configuration import CoverageConfig
from covcheck.domain.model.file_data import fingerprint_text, split_source_lines
from covcheck.domain.ports.static_analyzer import StaticAnalyzerPort
from covcheck.infrastructure.analyzers.budget import AnalysisBudget, Clock
from covcheck.infrastructure.analyzers.code_map_builder import CodeMapExtractor, Extraction
from covcheck.infrastructure.analyzers.heuristics import (
    build_heuristic_map,
    classify_lines,
    find_functions,
    setup_region,
)
from covcheck.infrastructure.analyzers.literals import literal_lines, scan_literal_spans
from covcheck.infrastructure.filters.path import (
    looks_like_test_file,
    normalize_path,
    relative_to_root,
)

logger = logging.getLogger(__name__)


def read_source(path: str) -> str:
    """Read a Python source file honouring its coding cookie.

    Raises:
        FileUnreadableError: Missing, not permitted, or not decodable
    """
    try:
        with tokenize.open(path) as handle:
            return handle.read()
    except FileNotFoundError as e:
        raise FileUnreadableError(path=path, reason="file not found") from e
    except PermissionError as e:
        raise FileUnreadableError(path=path, reason="permission denied") from e
    except (UnicodeDecodeError, SyntaxError) as e:
        raise FileUnreadableError(path=path, reason=f"encoding error: {e}") from e
    except OSError as e:
        raise FileUnreadableError(path=path, reason=str(e) or type(e).__name__) from e


class StaticAnalyzer(StaticAnalyzerPort):
    """Builds Code Maps from Python source.

    Stateless between analyze() calls. The clock is injectable so tests
    can trip the budget at an exact check.
    """

    def __init__(
        self,
        *,
        budget_seconds: float = 3.0,
        batch_size: int = 100,
        max_bytes: int = 250_000,
        clock: Clock = time.monotonic,
        roots: Iterable[str] = (),
    ) -> None:
        """Initialize analyzer limits.

        Args:
            budget_seconds: Wall-clock ceiling per file
            batch_size: Lines between budget checks
            max_bytes: Larger files skip the AST
            clock: Monotonic time source
            roots: Project directories test-file naming is judged below.
                The working directory when empty.

        Raises:
            ValueError: Non-positive budget or batch size, negative max_bytes
        """
        if budget_seconds <= 0:
            raise ValueError(f"budget_seconds must be > 0, got {budget_seconds}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        self._budget_seconds = budget_seconds
        self._batch_size = batch_size
        self._max_bytes = max_bytes
        self._clock = clock
        self._roots = tuple(normalize_path(root) for root in roots)

    @classmethod
    def from_config(cls, config: CoverageConfig, clock: Clock = time.monotonic) -> StaticAnalyzer:
        """Analyzer with the limits of a coverage configuration."""
        return cls(
            budget_seconds=config.analysis_budget_seconds,
            batch_size=config.analysis_batch_size,
            max_bytes=config.max_analysis_bytes,
            clock=clock,
            roots=config.source_dirs,
        )

    def analyze(self, path: str, source: str | None = None) -> CodeMap:
        """Classify every line of a file.

        Args:
            path: Normalized file path
            source: Source text, read from path when None

        Returns:
            STATIC map, PARTIAL map on timeout, HEURISTIC map for large
            files, test files and parse-phase timeouts

        Raises:
            FileUnreadableError: source is None and path cannot be read
            ParseFailedError: Source is not valid Python
        """
        if source is None:
            source = read_source(path)

        lines = split_source_lines(source)
        fingerprint = fingerprint_text(source)

        size = len(source.encode("utf-8", "surrogatepass"))
        if size > self._max_bytes:
            logger.debug("%s: %d bytes exceeds %d, using heuristics", path, size, self._max_bytes)
            return build_heuristic_map(
                path, lines, fingerprint, reason=f"file size {size} exceeds {self._max_bytes} bytes"
            )
        if self._is_test_file(path):
            return build_heuristic_map(path, lines, fingerprint, reason="test file")

        budget = AnalysisBudget(path, self._budget_seconds, self._clock)

        # Phase 1: PARSE
        try:
            budget.check(AnalysisPhase.PARSE, 0)
            tree = _parse(path, source)
        except AnalysisTimeoutError as exc:
            logger.debug("%s", exc)
            return build_heuristic_map(
                path, lines, fingerprint, reason=exc.reason, timed_out_phase=AnalysisPhase.PARSE
            )

        # Phase 2: EXTRACT
        extraction = CodeMapExtractor(budget, self._batch_size, lines).extract(tree)

        # Phase 3: MARK
        spans = scan_literal_spans(lines)
        literal = literal_lines(spans)
        marked, through, timeout = self._mark(
            budget, extraction, literal, skip_budget=extraction.timeout is not None
        )
        timeout = extraction.timeout or timeout
        if timeout is not None:
            logger.debug("%s", timeout)

        executable = set(marked)
        functions = list(extraction.functions)
        if through < len(lines):
            end_columns = {s.end_line: s.end_column for s in spans if s.end_column >= 0}
            executable.update(
                classify_lines(lines, literal, first_line=through + 1, end_columns=end_columns)
            )
            known = {func.start_line for func in functions}
            functions.extend(
                func
                for func in find_functions(lines, literal, first_line=through + 1)
                if func.start_line not in known
            )
            functions.sort(key=lambda func: func.start_line)

        if not functions and lines:
            functions.append(main_chunk(len(lines)))

        return CodeMap(
            path=path,
            fingerprint=fingerprint,
            line_count=len(lines),
            executable_lines=tuple(sorted(executable)),
            functions=tuple(functions),
            blocks=extraction.blocks,
            setup_lines=setup_region(lines, literal),
            origin=AnalysisOrigin.PARTIAL if timeout is not None else AnalysisOrigin.STATIC,
            timed_out_phase=timeout.phase if timeout is not None else None,
            analyzed_through=through,
            reason=timeout.reason if timeout is not None else None,
        )

    def _is_test_file(self, path: str) -> bool:
        roots = self._roots or (normalize_path(os.curdir),)
        relative = relative_to_root(normalize_path(path), roots)
        if relative is None:
            return looks_like_test_file(os.path.basename(path))
        return looks_like_test_file(relative)

    def _mark(
        self,
        budget: AnalysisBudget,
        extraction: Extraction,
        literal: Collection[int],
        *,
        skip_budget: bool,
    ) -> tuple[list[int], int, AnalysisTimeoutError | None]:
        """Mark statement lines outside literals, batch by batch.

        After an extraction timeout the budget is already spent; the
        extracted lines are marked without further checks.

        Returns:
            (marked lines, last line marked through, timeout or None)
        """
        through = extraction.complete_through
        statements = extraction.statement_lines
        marked: list[int] = []
        for batch_start in range(1, through + 1, self._batch_size):
            if not skip_budget:
                try:
                    budget.check(AnalysisPhase.MARK, batch_start - 1)
                except AnalysisTimeoutError as exc:
                    return marked, batch_start - 1, exc
            batch_end = min(batch_start + self._batch_size - 1, through)
            marked.extend(
                line
                for line in range(batch_start, batch_end + 1)
                if line in statements and line not in literal
            )
        return marked, through, None


def _parse(path: str, source: str) -> ast.Module:
    try:
        return ast.parse(source, filename=path)
    except SyntaxError as e:
        raise ParseFailedError(path=path, reason=f"syntax error: {e}") from e
    except ValueError as e:
        raise ParseFailedError(path=path, reason=f"invalid source: {e}") from e
    except RecursionError as e:
        raise ParseFailedError(path=path, reason="nesting too deep") from e


def heuristic_map_for(path: str, source: str, reason: str) -> CodeMap:
    """Heuristic map for source text, used when static analysis is off or failed."""
    return build_heuristic_map(
        path, split_source_lines(source), fingerprint_text(source), reason=reason
    )
