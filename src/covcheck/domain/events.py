"""Domain layer: immutable execution events pushed by the host runtime.

The tracker consumes these without knowing how they were produced:
sys.monitoring callbacks, a source-rewriting instrumenter, or tests.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LineEvent:
    """LINE event: execution entered a source line.

    Attributes:
        file: Path of the executing file, as reported by the runtime.
        line: 1-based line number.
    """

    file: str
    line: int

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not self.file:
            raise ValueError("file must not be empty")
        if self.line <= 0:
            raise ValueError(f"line must be > 0, got {self.line}")


@dataclass(frozen=True, slots=True)
class CallEvent:
    """CALL event: a function (or module body) started executing.

    Attributes:
        file: Path of the file defining the function.
        line: First line of the function (co_firstlineno).
        name: Function name (co_name), "<module>" for module code.
    """

    file: str
    line: int
    name: str

    def __post_init__(self) -> None:
        """Validate invariants. FAIL-FIRST."""
        if not self.file:
            raise ValueError("file must not be empty")
        if self.line <= 0:
            raise ValueError(f"line must be > 0, got {self.line}")
        if not self.name:
            raise ValueError("name must not be empty")


Event = LineEvent | CallEvent
