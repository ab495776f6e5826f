"""Domain model entities."""

from covcheck.domain.model.code_map import (
    MAIN_CHUNK_NAME,
    AnalysisOrigin,
    AnalysisPhase,
    BlockKind,
    BlockRecord,
    CodeMap,
    FunctionRecord,
    main_chunk,
)
from covcheck.domain.model.configuration import (
    BLOCK_WEIGHTS,
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    LINE_WEIGHTS,
    CoverageConfig,
    OverallWeights,
)
from covcheck.domain.model.file_data import FileData, fingerprint_text, split_source_lines
from covcheck.domain.model.session import Session
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

__all__ = [
    # Code map
    "MAIN_CHUNK_NAME",
    "AnalysisOrigin",
    "AnalysisPhase",
    "BlockKind",
    "BlockRecord",
    "CodeMap",
    "FunctionRecord",
    "main_chunk",
    # Configuration
    "BLOCK_WEIGHTS",
    "DEFAULT_EXCLUDE",
    "DEFAULT_INCLUDE",
    "LINE_WEIGHTS",
    "CoverageConfig",
    "OverallWeights",
    # Runtime state
    "FileData",
    "Session",
    "fingerprint_text",
    "split_source_lines",
    # Statistics
    "BlockInfo",
    "CoverageCount",
    "CoverageStatistics",
    "CoverageSummary",
    "FileStatistics",
    "FunctionInfo",
    "OriginalFile",
    "compute_overall",
]
