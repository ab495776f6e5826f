"""Heuristic line classifier.

Fallback when the AST is unavailable: file too large, test module,
parse failure, or the remainder of a file after the time budget ran out.
Works on raw text only; under-approximates executable lines rather than
claiming coverage the runtime could never report.
"""

from __future__ import annotations

import re
from collections.abc import Collection, Sequence

from covcheck.domain.model.code_map import (
    AnalysisOrigin,
    AnalysisPhase,
    CodeMap,
    FunctionRecord,
    main_chunk,
)
from covcheck.infrastructure.analyzers.literals import (
    code_portion,
    literal_lines,
    scan_literal_spans,
)

_IMPORT_RE = re.compile(r"^(import\s+[\w.]+|from\s+[\w.]+\s+import\b)")
_ASSIGN_RE = re.compile(r"^[A-Za-z_]\w*\s*(:[^=]+)?=(?!=)")
_DEF_RE = re.compile(
    r"^(?P<indent>[ \t]*)(async\s+)?def\s+(?P<name>[A-Za-z_]\w*)\s*\((?P<params>[^)]*)"
)
_DELIMITER_RE = re.compile(
    r"^(else|try|finally)\s*:$"
    r"|^[)\]}]+[,:;]?$"
    r"|^(pass|\.\.\.)$"
    r"|^(global|nonlocal)\s"
)

# Lines after the last import still counted as setup
_SETUP_WINDOW = 2

_OPENERS = "([{"
_CLOSERS = ")]}"


def bracket_delta(code: str) -> int:
    """Net bracket depth change of a code portion."""
    return sum(code.count(c) for c in _OPENERS) - sum(code.count(c) for c in _CLOSERS)


def setup_region(lines: Sequence[str], literal: Collection[int]) -> tuple[int, ...]:
    """Import lines plus simple assignments right after them.

    Scans from the top, skipping comments, the module docstring and other
    literal lines. Stops at the first other code line more than two lines
    past the last import. Parenthesized imports count from their opening
    line, their continuation lines extend the window.
    """
    setup: list[int] = []
    import_end = 0
    depth = 0

    for number, text in enumerate(lines, start=1):
        if number in literal:
            continue
        code = code_portion(text)
        if depth > 0:
            depth = max(depth + bracket_delta(code), 0)
            import_end = number
            continue
        if not code:
            continue

        if _IMPORT_RE.match(code):
            setup.append(number)
            import_end = number
            depth = max(bracket_delta(code), 0)
            continue
        if import_end and number <= import_end + _SETUP_WINDOW:
            if _ASSIGN_RE.match(code):
                setup.append(number)
            continue
        if number > import_end + _SETUP_WINDOW:
            break

    return tuple(setup)


def classify_lines(
    lines: Sequence[str],
    literal: Collection[int],
    *,
    first_line: int = 1,
    end_columns: dict[int, int] | None = None,
) -> tuple[int, ...]:
    """Executable lines at or after first_line.

    Bracket depth and backslash continuation are tracked from line 1 so a
    classification starting mid-file knows whether it starts inside an
    open expression.

    Args:
        lines: Physical source lines
        literal: Non-executable literal lines
        first_line: First line to report
        end_columns: Closing line -> column after the closing delimiter,
            so brackets after a literal are still counted

    Returns:
        Sorted executable line numbers
    """
    closing = end_columns or {}
    executable: list[int] = []
    depth = 0
    continued = False

    for number, text in enumerate(lines, start=1):
        in_continuation = depth > 0 or continued
        if number in literal:
            column = closing.get(number, -1)
            code = code_portion(text[column:]) if column >= 0 else ""
            line_code = ""
        else:
            code = code_portion(text)
            line_code = code
        depth = max(depth + bracket_delta(code), 0)
        continued = code.endswith("\\")

        if number < first_line or number in literal or in_continuation:
            continue
        if not line_code or _DELIMITER_RE.match(line_code):
            continue
        executable.append(number)

    return tuple(executable)


def find_functions(
    lines: Sequence[str],
    literal: Collection[int],
    *,
    first_line: int = 1,
) -> tuple[FunctionRecord, ...]:
    """Function records for every def/async def line at or after first_line.

    A function ends on the last non-blank line before the next code line
    indented at or left of its def. Decorators directly above the def
    move its start line up.
    """
    records: list[FunctionRecord] = []
    for number, text in enumerate(lines, start=1):
        if number < first_line or number in literal:
            continue
        match = _DEF_RE.match(text)
        if match is None:
            continue

        indent = len(match.group("indent").expandtabs())
        signature_end = _signature_end(lines, number)
        end = _block_end(lines, literal, signature_end, indent)
        body_start = _first_code_line(lines, signature_end + 1, end)
        records.append(
            FunctionRecord(
                name=match.group("name"),
                start_line=_decorated_start(lines, number, indent),
                end_line=end,
                params=_parameters(match.group("params")),
                body_start_line=body_start if body_start is not None else number,
            )
        )
    return tuple(records)


def build_heuristic_map(
    path: str,
    lines: Sequence[str],
    fingerprint: str,
    *,
    reason: str,
    timed_out_phase: AnalysisPhase | None = None,
) -> CodeMap:
    """Code map produced by heuristics alone."""
    spans = scan_literal_spans(lines)
    literal = literal_lines(spans)
    end_columns = {span.end_line: span.end_column for span in spans if span.end_column >= 0}
    functions = find_functions(lines, literal)
    if not functions and lines:
        functions = (main_chunk(len(lines)),)

    return CodeMap(
        path=path,
        fingerprint=fingerprint,
        line_count=len(lines),
        executable_lines=classify_lines(lines, literal, end_columns=end_columns),
        functions=functions,
        setup_lines=setup_region(lines, literal),
        origin=AnalysisOrigin.HEURISTIC,
        timed_out_phase=timed_out_phase,
        analyzed_through=0,
        reason=reason,
    )


def _signature_end(lines: Sequence[str], def_line: int) -> int:
    depth = 0
    for number in range(def_line, len(lines) + 1):
        depth += bracket_delta(code_portion(lines[number - 1]))
        if depth <= 0:
            return number
    return len(lines)


def _block_end(
    lines: Sequence[str],
    literal: Collection[int],
    signature_end: int,
    indent: int,
) -> int:
    last_code = signature_end
    for number in range(signature_end + 1, len(lines) + 1):
        text = lines[number - 1]
        if number in literal:
            last_code = number
            continue
        stripped = text.strip()
        if not stripped:
            continue
        expanded = text.expandtabs()
        line_indent = len(expanded) - len(expanded.lstrip())
        if line_indent <= indent and not stripped.startswith("#"):
            return last_code
        if not stripped.startswith("#"):
            last_code = number
    return last_code


def _first_code_line(lines: Sequence[str], start: int, end: int) -> int | None:
    for number in range(start, end + 1):
        stripped = lines[number - 1].strip()
        if stripped and not stripped.startswith("#"):
            return number
    return None


def _decorated_start(lines: Sequence[str], def_line: int, indent: int) -> int:
    start = def_line
    for number in range(def_line - 1, 0, -1):
        text = lines[number - 1]
        stripped = text.strip()
        if not stripped.startswith("@"):
            break
        if len(text.expandtabs()) - len(text.expandtabs().lstrip()) != indent:
            break
        start = number
    return start


def _parameters(raw: str) -> tuple[str, ...]:
    names: list[str] = []
    for part in raw.split(","):
        name = part.split(":", 1)[0].split("=", 1)[0].strip()
        if name and name not in ("*", "/"):
            names.append(name)
    return tuple(names)
