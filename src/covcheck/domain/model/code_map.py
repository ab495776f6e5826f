"""Code Map: static-analysis output for one source file."""

from __future__ import annotations

from bisect import bisect_left
from dataclasses import dataclass
from enum import Enum

# Name of the synthetic function covering a file without function definitions.
# Matches co_name of CPython module code objects.
MAIN_CHUNK_NAME = "<module>"


class AnalysisOrigin(Enum):
    """How the executable-line classification was produced."""

    PENDING = "pending"
    STATIC = "static"
    PARTIAL = "partial"
    HEURISTIC = "heuristic"


class AnalysisPhase(Enum):
    """Budgeted phases of static analysis, in execution order."""

    PARSE = "parse"
    EXTRACT = "extract"
    MARK = "mark"


class BlockKind(Enum):
    """Control-flow constructs tracked as blocks."""

    IF = "if"
    ELSE = "else"
    LOOP = "loop"
    TRY = "try"
    EXCEPT = "except"
    FINALLY = "finally"
    WITH = "with"
    MATCH = "match"
    CASE = "case"


@dataclass(frozen=True, slots=True)
class FunctionRecord:
    """Function definition found in source.

    Attributes:
        name: Function name (MAIN_CHUNK_NAME for the synthetic chunk)
        start_line: First line (first decorator when decorated)
        end_line: Last line of the body
        params: Parameter names, "*args"/"**kwargs" style for varargs
        body_start_line: First line of the body (start_line for the main chunk)
    """

    name: str
    start_line: int
    end_line: int
    params: tuple[str, ...] = ()
    body_start_line: int | None = None

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not self.name:
            raise ValueError("function name must not be empty")
        if self.start_line <= 0:
            raise ValueError(f"start_line must be > 0, got {self.start_line}")
        if self.end_line < self.start_line:
            raise ValueError(f"end_line ({self.end_line}) must be >= start_line ({self.start_line})")
        body = self.body_start_line
        if body is not None and not self.start_line <= body <= self.end_line:
            raise ValueError(
                f"body_start_line ({body}) must be within {self.start_line}..{self.end_line}"
            )

    @property
    def key(self) -> tuple[int, str]:
        """Identity used to match runtime call records."""
        return (self.start_line, self.name)

    @property
    def body_range(self) -> range:
        """Lines scanned when backfilling execution from line hits."""
        first = self.body_start_line if self.body_start_line is not None else self.start_line
        return range(first, self.end_line + 1)


@dataclass(frozen=True, slots=True)
class BlockRecord:
    """Control-flow block.

    Attributes:
        id: Stable identifier, "<kind>_<n>" in source order
        kind: Construct kind
        start_line: First line
        end_line: Last line
        parent_id: Enclosing block id, None at top level
    """

    id: str
    kind: BlockKind
    start_line: int
    end_line: int
    parent_id: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not self.id:
            raise ValueError("block id must not be empty")
        if self.start_line <= 0:
            raise ValueError(f"start_line must be > 0, got {self.start_line}")
        if self.end_line < self.start_line:
            raise ValueError(f"end_line ({self.end_line}) must be >= start_line ({self.start_line})")
        if self.parent_id == self.id:
            raise ValueError(f"block {self.id} cannot be its own parent")


@dataclass(frozen=True, slots=True)
class CodeMap:
    """Static classification of one file.

    Immutable: the analyzer cache replaces entries, never mutates them.

    Attributes:
        path: Normalized file path
        fingerprint: SHA-256 hex digest of the analyzed text
        line_count: Number of physical lines
        executable_lines: Sorted executable line numbers
        functions: Function records (never empty unless PENDING)
        blocks: Block records in source order
        setup_lines: Import setup region lines
        origin: How classification was produced
        timed_out_phase: Phase that exceeded the budget, None if none did
        analyzed_through: Last line classified from the AST
        reason: Why heuristics were used, None for complete static analysis
    """

    path: str
    fingerprint: str
    line_count: int
    executable_lines: tuple[int, ...] = ()
    functions: tuple[FunctionRecord, ...] = ()
    blocks: tuple[BlockRecord, ...] = ()
    setup_lines: tuple[int, ...] = ()
    origin: AnalysisOrigin = AnalysisOrigin.STATIC
    timed_out_phase: AnalysisPhase | None = None
    analyzed_through: int = 0
    reason: str | None = None

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if self.line_count < 0:
            raise ValueError(f"line_count must be >= 0, got {self.line_count}")
        if list(self.executable_lines) != sorted(set(self.executable_lines)):
            raise ValueError("executable_lines must be sorted and unique")
        if not 0 <= self.analyzed_through <= self.line_count:
            raise ValueError(
                f"analyzed_through must be within 0..{self.line_count}, got {self.analyzed_through}"
            )

        self._check_lines("executable_lines", self.executable_lines)
        self._check_lines("setup_lines", self.setup_lines)
        for func in self.functions:
            self._check_lines(f"function {func.name}", (func.start_line, func.end_line))
        for block in self.blocks:
            self._check_lines(f"block {block.id}", (block.start_line, block.end_line))

        block_ids = {block.id for block in self.blocks}
        if len(block_ids) != len(self.blocks):
            raise ValueError("block ids must be unique")
        for block in self.blocks:
            if block.parent_id is not None and block.parent_id not in block_ids:
                raise ValueError(f"block {block.id} has unknown parent {block.parent_id}")

    def _check_lines(self, what: str, lines: tuple[int, ...]) -> None:
        for line in lines:
            if not 1 <= line <= self.line_count:
                raise ValueError(f"{what}: line {line} outside 1..{self.line_count}")

    @property
    def is_pending(self) -> bool:
        """Static analysis not yet run for this file."""
        return self.origin is AnalysisOrigin.PENDING

    @property
    def is_partial(self) -> bool:
        """Analysis was cut short or never reached the AST."""
        return self.origin in (AnalysisOrigin.PARTIAL, AnalysisOrigin.HEURISTIC)

    def is_line_executable(self, line: int) -> bool:
        """Check if line holds executable code. O(log n)."""
        index = bisect_left(self.executable_lines, line)
        return index < len(self.executable_lines) and self.executable_lines[index] == line

    @classmethod
    def placeholder(cls, path: str, fingerprint: str, line_count: int) -> CodeMap:
        """Empty map for a file seen at runtime before analysis."""
        return cls(
            path=path,
            fingerprint=fingerprint,
            line_count=line_count,
            origin=AnalysisOrigin.PENDING,
        )


def main_chunk(line_count: int) -> FunctionRecord:
    """Synthetic function spanning a whole file."""
    last = max(line_count, 1)
    return FunctionRecord(name=MAIN_CHUNK_NAME, start_line=1, end_line=last)
