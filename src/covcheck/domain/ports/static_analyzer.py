"""Static analyzer port (interface)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from covcheck.domain.model.code_map import CodeMap


class StaticAnalyzerPort(ABC):
    """Port for building Code Maps from source text.

    Infrastructure layer must provide implementation.
    """

    @abstractmethod
    def analyze(self, path: str, source: str | None = None) -> CodeMap:
        """Classify every line of a file.

        Args:
            path: Normalized file path
            source: Source text, read from path when None

        Returns:
            CodeMap (STATIC, PARTIAL or HEURISTIC)

        Raises:
            FileUnreadableError: source is None and path cannot be read
            ParseFailedError: Source is not valid Python
        """
        ...
