"""Multi-line string literal scanner.

Triple-quoted strings can span many physical lines without producing a
statement per line, so their spans are found from raw text rather than
the AST. State runs across the whole file: a line's classification
depends on every delimiter before it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

# String prefix characters (r, b, u, f, t and combinations like rb, Rf)
_PREFIX_CHARS = frozenset("rRbBuUfFtT")
_MAX_PREFIX = 2


@dataclass(frozen=True, slots=True)
class LiteralSpan:
    """Triple-quoted literal spanning more than one line.

    Attributes:
        start_line: Line holding the opening delimiter
        end_line: Line holding the closing delimiter (last line if unterminated)
        leading: Opening line starts with the literal (only whitespace/prefix before it)
        end_column: Column right after the closing delimiter, -1 if unterminated
    """

    start_line: int
    end_line: int
    leading: bool
    end_column: int

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if self.start_line <= 0:
            raise ValueError(f"start_line must be > 0, got {self.start_line}")
        if self.end_line <= self.start_line:
            raise ValueError(
                f"end_line ({self.end_line}) must be > start_line ({self.start_line})"
            )

    @property
    def non_executable_lines(self) -> range:
        """Lines inside the literal.

        The opening line counts only when the literal begins it: in
        `x = \"\"\"...` the assignment still starts there.
        """
        first = self.start_line if self.leading else self.start_line + 1
        return range(first, self.end_line + 1)


def scan_literal_spans(lines: Sequence[str]) -> tuple[LiteralSpan, ...]:
    """Find every multi-line triple-quoted literal.

    Skips "#" comments and single-line strings outside literals, honours
    backslash escapes inside them. Literals opened and closed on one line
    are not spans.

    Args:
        lines: Physical source lines without terminators

    Returns:
        Spans in source order
    """
    spans: list[LiteralSpan] = []
    delimiter: str | None = None
    open_line = 0
    leading = False

    for number, text in enumerate(lines, start=1):
        column = 0
        length = len(text)
        while column < length:
            if delimiter is not None:
                close = find_closing(text, column, delimiter)
                if close < 0:
                    break
                column = close + len(delimiter)
                if number > open_line:
                    spans.append(LiteralSpan(open_line, number, leading, column))
                delimiter = None
                continue

            char = text[column]
            if char == "#":
                break
            if char in "\"'":
                if text.startswith(char * 3, column):
                    delimiter = char * 3
                    open_line = number
                    leading = _only_prefix_before(text, column)
                    column += 3
                    continue
                column = skip_short_string(text, column)
                continue
            column += 1

    if delimiter is not None and open_line < len(lines):
        spans.append(LiteralSpan(open_line, len(lines), leading, -1))

    return tuple(spans)


def literal_lines(spans: Sequence[LiteralSpan]) -> frozenset[int]:
    """Union of non-executable lines of all spans."""
    result: set[int] = set()
    for span in spans:
        result.update(span.non_executable_lines)
    return frozenset(result)


def code_portion(text: str) -> str:
    """Line text with strings and trailing comment removed.

    An unclosed triple quote drops the rest of the line.
    """
    parts: list[str] = []
    column = 0
    length = len(text)
    while column < length:
        char = text[column]
        if char == "#":
            break
        if char in "\"'":
            if text.startswith(char * 3, column):
                close = find_closing(text, column + 3, char * 3)
                if close < 0:
                    break
                column = close + 3
                continue
            column = skip_short_string(text, column)
            continue
        parts.append(char)
        column += 1
    return "".join(parts).strip()


def find_closing(text: str, start: int, delimiter: str) -> int:
    """Index of the closing delimiter at or after start, -1 if none."""
    column = start
    length = len(text)
    while column < length:
        if text[column] == "\\":
            column += 2
            continue
        if text.startswith(delimiter, column):
            return column
        column += 1
    return -1


def skip_short_string(text: str, start: int) -> int:
    """Index right after a single-quoted string opening at start.

    Unterminated strings run to the end of the line.
    """
    quote = text[start]
    column = start + 1
    length = len(text)
    while column < length:
        char = text[column]
        if char == "\\":
            column += 2
            continue
        if char == quote:
            return column + 1
        column += 1
    return length


def _only_prefix_before(text: str, column: int) -> bool:
    before = text[:column].lstrip()
    return len(before) <= _MAX_PREFIX and all(char in _PREFIX_CHARS for char in before)
