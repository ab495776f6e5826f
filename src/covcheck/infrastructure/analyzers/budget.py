"""Wall-clock budget for analyzing one file."""

from __future__ import annotations

import time
from collections.abc import Callable

from covcheck.domain.exceptions import AnalysisTimeoutError
from covcheck.domain.model.code_map import AnalysisPhase

type Clock = Callable[[], float]


class AnalysisBudget:
    """Elapsed-time ceiling shared by all phases of one analysis.

    The clock is read once at construction and once per check(), so a
    fake clock in tests controls exactly where the budget trips.
    """

    __slots__ = ("_clock", "_path", "_seconds", "_started")

    def __init__(self, path: str, seconds: float, clock: Clock = time.monotonic) -> None:
        if seconds <= 0:
            raise ValueError(f"seconds must be > 0, got {seconds}")
        self._path = path
        self._seconds = seconds
        self._clock = clock
        self._started = clock()

    def check(self, phase: AnalysisPhase, line: int) -> None:
        """Raise when the budget is spent.

        Args:
            phase: Phase about to continue
            line: Last line fully processed so far

        Raises:
            AnalysisTimeoutError: Elapsed time exceeds the budget.
        """
        if self._clock() - self._started > self._seconds:
            raise AnalysisTimeoutError(path=self._path, phase=phase, line=line)
