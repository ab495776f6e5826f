"""Report aggregation: reconciled session -> immutable CoverageStatistics."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covcheck.domain.model.code_map import AnalysisOrigin, main_chunk
from covcheck.domain.model.statistics import (
    BlockInfo,
    CoverageCount,
    CoverageStatistics,
    CoverageSummary,
    FileStatistics,
    FunctionInfo,
    OriginalFile,
    compute_overall,
)

if TYPE_CHECKING:
    from covcheck.application.services.reconciler import Reconciler
    from covcheck.domain.model.configuration import CoverageConfig
    from covcheck.domain.model.file_data import FileData
    from covcheck.domain.model.session import Session


class Aggregator:
    """Computes per-file and global coverage.

    Reconciles first, then counts; never reads raw hits directly.
    Files whose reconciliation failed (code map still PENDING) are left
    out of the totals.
    """

    def __init__(self, reconciler: Reconciler) -> None:
        self._reconciler = reconciler

    def aggregate(self, session: Session) -> CoverageStatistics:
        """Reconcile session and build a statistics snapshot."""
        self._reconciler.reconcile(session)
        config = session.config

        files: dict[str, FileStatistics] = {}
        originals: dict[str, OriginalFile] = {}
        lines = CoverageCount.empty()
        functions = CoverageCount.empty()
        blocks = CoverageCount.empty()
        files_hit = 0

        for path in sorted(session.files):
            data = session.files[path]
            if data.needs_static_analysis:
                continue
            stats = _file_statistics(data, config)
            files[path] = stats
            originals[path] = _original_file(data)
            lines += stats.lines
            functions += stats.functions
            blocks += stats.blocks
            if stats.lines.covered:
                files_hit += 1

        use_blocks = config.blocks_enabled and blocks.total > 0
        overall = compute_overall(
            lines.percent,
            functions.percent,
            blocks.percent,
            use_blocks=use_blocks,
            weights=config.weights,
            fallback_weights=config.fallback_weights,
        )
        summary = CoverageSummary(
            files=CoverageCount(files_hit, len(files)),
            lines=lines,
            functions=functions,
            blocks=blocks,
            overall_percent=overall,
            threshold=config.threshold,
            passes_threshold=overall >= config.threshold,
            using_static_analysis=config.use_static_analysis,
            tracking_blocks=config.blocks_enabled,
        )
        return CoverageStatistics(summary=summary, files=files, original_files=originals)


def _file_statistics(data: FileData, config: CoverageConfig) -> FileStatistics:
    code_map = data.code_map
    covered = data.covered_lines()
    executable = sum(1 for flag in data.executable.values() if flag)
    line_count = CoverageCount(len(covered), executable)

    # Empty files still count one function
    records = code_map.functions or (main_chunk(data.line_count),)
    function_details = tuple(
        sorted(
            (
                FunctionInfo(
                    name=func.name,
                    start_line=func.start_line,
                    end_line=func.end_line,
                    calls=data.function_calls.get(func.key, 0),
                    executed=(
                        data.functions_executed.get(func.key, False)
                        or data.function_calls.get(func.key, 0) > 0
                    ),
                    params=func.params,
                )
                for func in records
            ),
            key=lambda info: (info.start_line, info.name),
        )
    )

    block_details: tuple[BlockInfo, ...] = ()
    if config.blocks_enabled:
        block_details = tuple(
            sorted(
                (
                    BlockInfo(
                        id=block.id,
                        kind=block.kind,
                        start_line=block.start_line,
                        end_line=block.end_line,
                        executed=data.blocks_executed.get(block.id, False),
                        parent_id=block.parent_id,
                    )
                    for block in code_map.blocks
                ),
                key=lambda info: (info.start_line, info.id),
            )
        )

    return FileStatistics(
        path=data.path,
        lines=line_count,
        functions=CoverageCount(
            sum(1 for info in function_details if info.executed), len(function_details)
        ),
        blocks=CoverageCount(
            sum(1 for info in block_details if info.executed), len(block_details)
        ),
        function_details=function_details,
        block_details=block_details,
        discovered=data.discovered,
        passes_threshold=line_count.percent >= config.threshold,
        uses_static_analysis=code_map.origin in (AnalysisOrigin.STATIC, AnalysisOrigin.PARTIAL),
        partially_analyzed=code_map.is_partial,
    )


def _original_file(data: FileData) -> OriginalFile:
    return OriginalFile(
        path=data.path,
        source_text=data.source_text,
        source_lines=data.source_lines,
        covered=data.covered_lines(),
        executed=frozenset(line for line, ran in data.executed.items() if ran),
        executable=frozenset(line for line, flag in data.executable.items() if flag),
    )
