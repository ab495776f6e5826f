"""Coverage statistics: frozen snapshot consumed by report renderers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from covcheck.domain.exceptions import InvariantViolationError
from covcheck.domain.model.code_map import BlockKind
from covcheck.domain.model.configuration import OverallWeights


@dataclass(frozen=True, slots=True)
class CoverageCount:
    """Covered/total pair.

    Attributes:
        covered: Items observed executing
        total: Items that could execute
    """

    covered: int
    total: int

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if self.covered < 0:
            raise ValueError(f"covered must be >= 0, got {self.covered}")
        if self.covered > self.total:
            raise InvariantViolationError(f"covered ({self.covered}) exceeds total ({self.total})")

    @property
    def percent(self) -> float:
        """Coverage percentage (0-100). 0.0 when there is nothing to cover."""
        if self.total == 0:
            return 0.0
        return self.covered / self.total * 100.0

    def __add__(self, other: CoverageCount) -> CoverageCount:
        return CoverageCount(self.covered + other.covered, self.total + other.total)

    @classmethod
    def empty(cls) -> CoverageCount:
        """Zero count."""
        return cls(covered=0, total=0)


@dataclass(frozen=True, slots=True)
class FunctionInfo:
    """Per-function coverage detail."""

    name: str
    start_line: int
    end_line: int
    calls: int
    executed: bool
    params: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class BlockInfo:
    """Per-block coverage detail."""

    id: str
    kind: BlockKind
    start_line: int
    end_line: int
    executed: bool
    parent_id: str | None = None


@dataclass(frozen=True, slots=True)
class FileStatistics:
    """Coverage breakdown of one file.

    Attributes:
        path: Normalized file path
        lines: Covered/executable lines
        functions: Executed/total functions
        blocks: Executed/total blocks
        function_details: Functions sorted by start line
        block_details: Blocks sorted by start line
        discovered: Found by directory scan only
        passes_threshold: Line percent >= configured threshold
        uses_static_analysis: Classification came from the AST (fully or partly)
        partially_analyzed: Some lines were classified by heuristics
    """

    path: str
    lines: CoverageCount
    functions: CoverageCount
    blocks: CoverageCount
    function_details: tuple[FunctionInfo, ...] = ()
    block_details: tuple[BlockInfo, ...] = ()
    discovered: bool = False
    passes_threshold: bool = False
    uses_static_analysis: bool = False
    partially_analyzed: bool = False

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if len(self.function_details) != self.functions.total:
            raise ValueError(
                f"{self.path}: {len(self.function_details)} function details "
                f"for {self.functions.total} functions"
            )
        if len(self.block_details) != self.blocks.total:
            raise ValueError(
                f"{self.path}: {len(self.block_details)} block details for {self.blocks.total} blocks"
            )


@dataclass(frozen=True, slots=True)
class CoverageSummary:
    """Project-wide totals.

    Attributes:
        files: Files with at least one covered line / all files
        lines: Covered/executable lines over all files
        functions: Executed/total functions over all files
        blocks: Executed/total blocks over all files
        overall_percent: Weighted score, see compute_overall()
        threshold: Configured threshold
        passes_threshold: overall_percent >= threshold
        using_static_analysis: Static analysis enabled
        tracking_blocks: Block tracking enabled
    """

    files: CoverageCount
    lines: CoverageCount
    functions: CoverageCount
    blocks: CoverageCount
    overall_percent: float
    threshold: float
    passes_threshold: bool
    using_static_analysis: bool
    tracking_blocks: bool


@dataclass(frozen=True, slots=True)
class OriginalFile:
    """Source text plus line markers for downstream rendering."""

    path: str
    source_text: str
    source_lines: tuple[str, ...]
    covered: frozenset[int]
    executed: frozenset[int]
    executable: frozenset[int]

    @property
    def line_count(self) -> int:
        """Number of physical lines."""
        return len(self.source_lines)


@dataclass(frozen=True, slots=True)
class CoverageStatistics:
    """Immutable coverage snapshot.

    Attributes:
        files: Path -> per-file breakdown (read-only mapping)
        summary: Global totals
        original_files: Path -> source and markers (read-only mapping)
    """

    summary: CoverageSummary
    files: Mapping[str, FileStatistics] = field(default_factory=lambda: MappingProxyType({}))
    original_files: Mapping[str, OriginalFile] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def __post_init__(self) -> None:
        """Freeze mappings."""
        object.__setattr__(self, "files", MappingProxyType(dict(self.files)))
        object.__setattr__(self, "original_files", MappingProxyType(dict(self.original_files)))


def compute_overall(
    line_percent: float,
    function_percent: float,
    block_percent: float,
    *,
    use_blocks: bool,
    weights: OverallWeights,
    fallback_weights: OverallWeights,
) -> float:
    """Weighted overall coverage score.

    With blocks: weights apply to all three percentages (blocks weighted
    highest by default, they capture branch-level execution). Without:
    fallback_weights apply to line and function percentages.
    """
    if use_blocks:
        return (
            line_percent * weights.line
            + function_percent * weights.function
            + block_percent * weights.block
        )
    return line_percent * fallback_weights.line + function_percent * fallback_weights.function
