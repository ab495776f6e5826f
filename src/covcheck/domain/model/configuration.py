"""Coverage configuration supplied by the CLI/config collaborator.

Immutable configuration object with FAIL-FIRST validation.
Defaults mirror a typical project layout: track everything under the
source directories except tests, virtualenvs and build output.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace

DEFAULT_INCLUDE: tuple[str, ...] = ("*.py", "**/*.py")

DEFAULT_EXCLUDE: tuple[str, ...] = (
    "test_*.py",
    "*_test.py",
    "conftest.py",
    "*/tests/*",
    "*/test/*",
    "*/.venv/*",
    "*/venv/*",
    "*/site-packages/*",
    "*/__pycache__/*",
    "*/build/*",
)


@dataclass(frozen=True, slots=True)
class OverallWeights:
    """Weights combining line/function/block percentages into one score.

    A product policy, not a derived quantity: override via config.

    Attributes:
        line: Weight of line coverage
        function: Weight of function coverage
        block: Weight of block coverage
    """

    line: float
    function: float
    block: float = 0.0

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        for name in ("line", "function", "block"):
            value = getattr(self, name)
            if value < 0.0:
                raise ValueError(f"{name} weight must be >= 0, got {value}")
        total = self.line + self.function + self.block
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"weights must sum to 1.0, got {total}")


BLOCK_WEIGHTS = OverallWeights(line=0.35, function=0.15, block=0.5)
LINE_WEIGHTS = OverallWeights(line=0.8, function=0.2)


@dataclass(frozen=True, slots=True)
class CoverageConfig:
    """Coverage engine configuration.

    Attributes:
        # Collection
        enabled: Master switch, start() is a no-op when False
        source_dirs: Directories scanned for uncovered files
        include: Glob patterns of files to track
        exclude: Glob patterns of files never tracked
        discover_uncovered: Report never-executed files found by scan
        debug: Configure covcheck logging at DEBUG level

        # Static analysis
        use_static_analysis: Classify lines from the AST (else heuristics)
        cache_parsed_files: Cache code maps by content fingerprint
        pre_analyze_files: Analyze discovered files at init()
        analysis_budget_seconds: Wall-clock ceiling per file
        analysis_batch_size: Lines processed between budget checks
        max_analysis_bytes: Larger files use heuristics directly

        # Reporting
        threshold: Minimum line percent for a file to pass (0-100)
        track_blocks: Report block coverage
        branch_coverage: Report branch (block) coverage
        weights: Overall score weights when blocks are tracked
        fallback_weights: Overall score weights without blocks
    """

    # Collection
    enabled: bool = False
    source_dirs: tuple[str, ...] = (".",)
    include: tuple[str, ...] = DEFAULT_INCLUDE
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    discover_uncovered: bool = True
    debug: bool = False

    # Static analysis
    use_static_analysis: bool = True
    cache_parsed_files: bool = True
    pre_analyze_files: bool = False
    analysis_budget_seconds: float = 3.0
    analysis_batch_size: int = 100
    max_analysis_bytes: int = 250_000

    # Reporting
    threshold: float = 90.0
    track_blocks: bool = True
    branch_coverage: bool = False
    weights: OverallWeights = field(default=BLOCK_WEIGHTS)
    fallback_weights: OverallWeights = field(default=LINE_WEIGHTS)

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not 0.0 <= self.threshold <= 100.0:
            raise ValueError(f"threshold must be 0-100, got {self.threshold}")
        if self.analysis_budget_seconds <= 0:
            raise ValueError(
                f"analysis_budget_seconds must be > 0, got {self.analysis_budget_seconds}"
            )
        if self.analysis_batch_size < 1:
            raise ValueError(f"analysis_batch_size must be >= 1, got {self.analysis_batch_size}")
        if self.max_analysis_bytes < 0:
            raise ValueError(f"max_analysis_bytes must be >= 0, got {self.max_analysis_bytes}")
        if not self.include:
            raise ValueError("include must contain at least one pattern")

    @property
    def blocks_enabled(self) -> bool:
        """Block data is collected and reported."""
        return self.track_blocks or self.branch_coverage

    def with_options(self, options: Mapping[str, object]) -> CoverageConfig:
        """Return copy with options applied over this config.

        Sequences are stored as tuples; include/exclude replace the defaults
        wholesale rather than extending them.

        Raises:
            ValueError: Unknown option name.
        """
        known = {f.name for f in fields(self)}
        unknown = set(options) - known
        if unknown:
            raise ValueError(f"unknown coverage options: {sorted(unknown)}")

        changes: dict[str, object] = {}
        for name, value in options.items():
            if name in ("source_dirs", "include", "exclude"):
                if isinstance(value, str):
                    value = (value,)
                elif isinstance(value, (list, tuple)):
                    value = tuple(value)
                else:
                    raise ValueError(f"{name} must be a sequence of patterns")
            changes[name] = value
        return replace(self, **changes)  # type: ignore[arg-type]

    @classmethod
    def from_mapping(cls, options: Mapping[str, object] | None = None) -> CoverageConfig:
        """Build config from defaults plus a user mapping."""
        return cls().with_options(options or {})
