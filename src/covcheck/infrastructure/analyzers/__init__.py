"""Line classification analyzers: AST extraction, literal spans, heuristics."""

from covcheck.infrastructure.analyzers.budget import AnalysisBudget, Clock
from covcheck.infrastructure.analyzers.code_map_builder import (
    CodeMapExtractor,
    Extraction,
    is_executable_statement,
)
from covcheck.infrastructure.analyzers.heuristics import (
    build_heuristic_map,
    classify_lines,
    find_functions,
    setup_region,
)
from covcheck.infrastructure.analyzers.literals import (
    LiteralSpan,
    literal_lines,
    scan_literal_spans,
)

__all__ = [
    # Budget
    "AnalysisBudget",
    "Clock",
    # AST
    "CodeMapExtractor",
    "Extraction",
    "is_executable_statement",
    # Heuristics
    "build_heuristic_map",
    "classify_lines",
    "find_functions",
    "setup_region",
    # Literals
    "LiteralSpan",
    "literal_lines",
    "scan_literal_spans",
]
