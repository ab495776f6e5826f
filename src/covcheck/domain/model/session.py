"""Session state: everything one coverage run owns."""

from __future__ import annotations

from dataclasses import dataclass, field

from covcheck.domain.model.configuration import CoverageConfig
from covcheck.domain.model.file_data import FileData


@dataclass(slots=True)
class Session:
    """Coverage session passed explicitly into every engine call.

    No process-wide singleton: parallel workers each own one Session,
    merged afterwards by merge_sessions().

    Attributes:
        config: Active configuration
        enabled: Collection allowed (config.enabled at creation)
        active: Event source currently attached
        files: Normalized path -> FileData (exclusively owned)
        unreadable: Paths that could not be read, excluded from totals
    """

    config: CoverageConfig = field(default_factory=CoverageConfig)
    enabled: bool = False
    active: bool = False
    files: dict[str, FileData] = field(default_factory=dict)
    unreadable: set[str] = field(default_factory=set)

    @classmethod
    def create(cls, config: CoverageConfig | None = None) -> Session:
        """New empty session for config."""
        config = config or CoverageConfig()
        return cls(config=config, enabled=config.enabled)

    @property
    def is_recording(self) -> bool:
        """Events should be recorded."""
        return self.enabled and self.active

    def reset(self) -> None:
        """Drop all file data. Configuration and activity are kept."""
        self.files.clear()
        self.unreadable.clear()
