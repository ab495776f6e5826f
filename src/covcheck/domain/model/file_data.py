"""Per-file runtime coverage state."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field

from covcheck.domain.model.code_map import CodeMap


def fingerprint_text(text: str) -> str:
    """Content fingerprint used for cache invalidation (SHA-256 hex)."""
    return hashlib.sha256(text.encode("utf-8", "surrogatepass")).hexdigest()


def split_source_lines(text: str) -> tuple[str, ...]:
    """Split source into physical lines without line terminators.

    Only \\n, \\r\\n and \\r end a line, as for the Python tokenizer
    (str.splitlines also splits on form feeds and other separators).
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return tuple(lines)


@dataclass(slots=True)
class FileData:
    """Mutable coverage state of one file, owned by Session.

    covered and executed are deliberately separate: a line can run yet turn
    out non-executable (e.g. inside a triple-quoted literal), in which case
    reconciliation clears covered but keeps executed.

    Attributes:
        path: Normalized absolute path
        source_text: Full source text
        source_lines: Physical lines
        code_map: Static classification (PENDING placeholder until analyzed)
        covered: line -> hit mark, valid only after reconciliation
        executed: line -> raw execution mark
        executable: line -> authoritative executability after reconciliation
        function_calls: (start_line, name) -> runtime call count
        functions_executed: (start_line, name) -> reconciled execution flag
        blocks_executed: block id -> reconciled execution flag
        discovered: Found only by directory scan, never executed
        preloaded: Imported before tracking started
    """

    path: str
    source_text: str
    source_lines: tuple[str, ...]
    code_map: CodeMap
    covered: dict[int, bool] = field(default_factory=dict)
    executed: dict[int, bool] = field(default_factory=dict)
    executable: dict[int, bool] = field(default_factory=dict)
    function_calls: dict[tuple[int, str], int] = field(default_factory=dict)
    functions_executed: dict[tuple[int, str], bool] = field(default_factory=dict)
    blocks_executed: dict[str, bool] = field(default_factory=dict)
    discovered: bool = False
    preloaded: bool = False

    @classmethod
    def from_source(
        cls,
        path: str,
        source_text: str,
        *,
        discovered: bool = False,
        preloaded: bool = False,
    ) -> FileData:
        """Seed file data with a pending code map."""
        lines = split_source_lines(source_text)
        return cls(
            path=path,
            source_text=source_text,
            source_lines=lines,
            code_map=CodeMap.placeholder(path, fingerprint_text(source_text), len(lines)),
            discovered=discovered,
            preloaded=preloaded,
        )

    @property
    def line_count(self) -> int:
        """Number of physical lines."""
        return len(self.source_lines)

    @property
    def fingerprint(self) -> str:
        """Fingerprint of the stored source text."""
        return self.code_map.fingerprint

    @property
    def needs_static_analysis(self) -> bool:
        """Code map is still a placeholder."""
        return self.code_map.is_pending

    @property
    def has_execution(self) -> bool:
        """Any line or call was recorded for this file."""
        return any(self.executed.values()) or any(self.function_calls.values())

    def record_line(self, line: int) -> None:
        """Mark line hit and executed. O(1)."""
        self.covered[line] = True
        self.executed[line] = True

    def record_call(self, line: int, name: str) -> None:
        """Count a function entry. O(1)."""
        key = (line, name)
        self.function_calls[key] = self.function_calls.get(key, 0) + 1

    def covered_lines(self) -> frozenset[int]:
        """Lines hit and executable."""
        return frozenset(
            line
            for line, hit in self.covered.items()
            if hit and self.executable.get(line, False)
        )
