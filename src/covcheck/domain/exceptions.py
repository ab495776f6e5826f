"""Domain exceptions: all public errors of covcheck.

Hexagonal architecture: all exceptions visible to users defined in domain.
Infrastructure/Application use these, not define their own public exceptions.

Per-file errors (AnalysisError family) never escape the engine facade:
reconciliation isolates them and degrades to heuristic classification.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from covcheck.domain.model.code_map import AnalysisPhase


class CovCheckError(Exception):
    """Base for all covcheck error exceptions.

    Allows: except CovCheckError to catch all library errors.
    """


class AnalysisError(CovCheckError):
    """Static analysis of one file failed.

    Attributes:
        path: File being analyzed.
        reason: Error description.
    """

    def __init__(self, *, path: str, reason: str) -> None:
        """Initialize with file path and error reason."""
        if not reason:
            raise ValueError("reason must be non-empty string")
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ParseFailedError(AnalysisError, SyntaxError):
    """Source could not be parsed into an AST.

    Inherits SyntaxError for semantic correctness.
    Triggers heuristic fallback, never fatal.
    """


class FileUnreadableError(AnalysisError, OSError):
    """Source file missing, not permitted, or not decodable.

    Inherits OSError for semantic correctness.
    File is skipped and excluded from totals.
    """


class AnalysisTimeoutError(AnalysisError, TimeoutError):
    """Analysis phase exceeded its wall-clock budget.

    Raised by AnalysisBudget, caught at the phase boundary.
    Partial results computed before the timeout are kept.

    Attributes:
        phase: Phase that ran out of time.
        line: Last line fully processed before the timeout (0 = none).
    """

    def __init__(self, *, path: str, phase: AnalysisPhase, line: int) -> None:
        """Initialize with phase and progress position."""
        self.phase = phase
        self.line = line
        super().__init__(path=path, reason=f"budget exceeded in {phase.value} phase after line {line}")


class InvariantViolationError(CovCheckError, AssertionError):
    """Coverage data contradicts the static model.

    A defect in the engine itself, not user error. Reconciliation
    self-heals these cases before statistics are built; value objects
    raise this only if a caller bypasses reconciliation.
    """


class NotExitedError(CovCheckError, RuntimeError):
    """Context not exited, result not available.

    Raised when accessing TrackingHandle.result before context exit.
    """

    def __init__(self) -> None:
        """Initialize with fixed message."""
        super().__init__("Context not exited, result not available")


class ToolIdUnavailableError(CovCheckError, RuntimeError):
    """sys.monitoring tool ID is already in use.

    Attributes:
        tool_id: Requested tool ID.
    """

    def __init__(self, tool_id: int) -> None:
        """Initialize with tool ID."""
        self.tool_id = tool_id
        super().__init__(f"sys.monitoring tool ID {tool_id} is already in use")
