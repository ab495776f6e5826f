"""Execution tracker: pure consumer of runtime line and call events."""

from __future__ import annotations

import logging
from collections.abc import Callable

from covcheck.domain.events import CallEvent, Event, LineEvent
from covcheck.domain.exceptions import FileUnreadableError
from covcheck.domain.model.file_data import FileData
from covcheck.domain.model.session import Session
from covcheck.infrastructure.adapters.static_analyzer import read_source
from covcheck.infrastructure.filters.path import PathFilter, normalize_path

logger = logging.getLogger(__name__)

type SourceReader = Callable[[str], str]


class ExecutionTracker:
    """Records line hits and function calls into a Session.

    Contracts:
        - O(1) per event once a file is seeded (path lookups cached)
        - Events ignored unless the session is enabled and active
        - Unseen file: read once, seeded with a PENDING code map
        - Unreadable file: logged once, remembered, ignored afterwards
        - Out-of-range lines ignored
    """

    def __init__(self, session: Session, *, reader: SourceReader = read_source) -> None:
        """Initialize tracker for session.

        Args:
            session: Session receiving the hits
            reader: Path -> source text, raises FileUnreadableError
        """
        self._session = session
        self._reader = reader
        config = session.config
        self._filter = PathFilter(
            config.include,
            config.exclude,
            roots=tuple(normalize_path(directory) for directory in config.source_dirs),
        )
        # raw path -> normalized path, None when untracked
        self._paths: dict[str, str | None] = {}

    @property
    def session(self) -> Session:
        """Session receiving events."""
        return self._session

    def is_tracked(self, path: str) -> bool:
        """Check if path passes the include/exclude filter."""
        return self._resolve(path) is not None

    def handle(self, event: Event) -> None:
        """Dispatch an event. Exhaustive match on Event union."""
        match event:
            case LineEvent(file=file, line=line):
                self.track_line(file, line)
            case CallEvent(file=file, line=line, name=name):
                self.track_call(file, line, name)

    def track_line(self, file: str, line: int) -> None:
        """Record that line of file executed."""
        if not self._session.is_recording:
            return
        data = self._file_data(file)
        if data is None:
            return
        if not 1 <= line <= data.line_count:
            logger.debug("%s: line %d outside 1..%d ignored", data.path, line, data.line_count)
            return
        data.record_line(line)

    def track_call(self, file: str, line: int, name: str) -> None:
        """Record entry into function name defined at line of file."""
        if not self._session.is_recording:
            return
        data = self._file_data(file)
        if data is None:
            return
        data.record_call(line, name)

    def ensure_file(
        self,
        file: str,
        *,
        discovered: bool = False,
        preloaded: bool = False,
    ) -> FileData | None:
        """Seed FileData for a tracked file, regardless of recording state.

        Args:
            file: Raw or normalized path
            discovered: Found by directory scan
            preloaded: Imported before tracking started

        Returns:
            Existing or new FileData, None if untracked or unreadable
        """
        path = self._resolve(file)
        if path is None:
            return None
        return self._seed(path, discovered=discovered, preloaded=preloaded)

    def _file_data(self, file: str) -> FileData | None:
        path = self._resolve(file)
        if path is None:
            return None
        data = self._session.files.get(path)
        if data is not None:
            return data
        return self._seed(path, discovered=False, preloaded=False)

    def _seed(self, path: str, *, discovered: bool, preloaded: bool) -> FileData | None:
        data = self._session.files.get(path)
        if data is not None:
            return data
        if path in self._session.unreadable:
            return None
        try:
            source = self._reader(path)
        except FileUnreadableError as e:
            logger.warning("cannot read %s, excluded from coverage: %s", path, e.reason)
            self._session.unreadable.add(path)
            return None

        data = FileData.from_source(path, source, discovered=discovered, preloaded=preloaded)
        self._session.files[path] = data
        return data

    def _resolve(self, file: str) -> str | None:
        try:
            return self._paths[file]
        except KeyError:
            path = normalize_path(file)
            tracked = path if self._filter(path) else None
            self._paths[file] = tracked
            return tracked
