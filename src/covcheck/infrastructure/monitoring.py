"""Runtime line/call event source using sys.monitoring (PEP 669).

sys.monitoring provides low-overhead per-line and per-call callbacks.
This source turns them into LineEvent and CallEvent records for the
execution tracker.

Design decisions:
- LINE for line hits, PY_START for function entry (co_firstlineno, co_name)
- DISABLE returned for untracked files: the location stops firing
- DISABLE returned after a tracked line is recorded: hits are boolean,
  so hot loops pay for one callback per line; restart() re-arms them
- Filter decisions cached per co_filename, callbacks stay O(1)
- Callbacks registered before start() are saved and restored by stop()

sys.monitoring tool IDs:
- 0: DEBUGGER_ID, 1: COVERAGE_ID, 2: PROFILER_ID, 5: OPTIMIZER_ID
- 3, 4: available for user tools
"""

from __future__ import annotations

import sys
import types
from collections.abc import Callable
from typing import Final

from covcheck.domain.events import CallEvent, Event, LineEvent
from covcheck.domain.exceptions import ToolIdUnavailableError
from covcheck.infrastructure.filters.path import normalize_path

# sys.monitoring tool ID for covcheck
COVCHECK_TOOL_ID: Final = 4

# Tool name registered with sys.monitoring
COVCHECK_TOOL_NAME: Final = "covcheck"

type EventSink = Callable[[Event], None]
type FileFilter = Callable[[str], bool]


class MonitoringEventSource:
    """Event source backed by sys.monitoring.

    Not thread-aware: events from any thread reach the same sink.

    Lifecycle:
        source = MonitoringEventSource(tracker.handle, path_filter)
        source.start()
        # ... code under test runs ...
        source.stop()
    """

    def __init__(
        self,
        sink: EventSink,
        file_filter: FileFilter,
        *,
        tool_id: int = COVCHECK_TOOL_ID,
    ) -> None:
        """Initialize source.

        Args:
            sink: Receives every event for tracked files
            file_filter: Normalized path -> tracked?
            tool_id: sys.monitoring tool slot to claim
        """
        self._sink = sink
        self._filter = file_filter
        self._tool_id = tool_id
        self._started = False
        # co_filename -> normalized path, None when untracked
        self._paths: dict[str, str | None] = {}
        self._saved: dict[int, object] = {}

    def start(self) -> None:
        """Claim the tool ID, register callbacks and enable events.

        No-op when already started.

        Raises:
            ToolIdUnavailableError: If tool ID is in use
        """
        if self._started:
            return

        # Register tool ID (raises ValueError if in use)
        try:
            sys.monitoring.use_tool_id(self._tool_id, COVCHECK_TOOL_NAME)
        except ValueError as e:
            raise ToolIdUnavailableError(self._tool_id) from e

        self._started = True
        events = sys.monitoring.events

        # register_callback returns the callback it replaces
        self._saved = {
            events.LINE: sys.monitoring.register_callback(
                self._tool_id, events.LINE, self._on_line
            ),
            events.PY_START: sys.monitoring.register_callback(
                self._tool_id, events.PY_START, self._on_py_start
            ),
        }

        sys.monitoring.set_events(self._tool_id, events.LINE | events.PY_START)
        # Locations disabled by an earlier session must fire again
        sys.monitoring.restart_events()

    def stop(self) -> None:
        """Disable events, restore saved callbacks, free the tool ID.

        No-op when not started.
        """
        if not self._started:
            return

        sys.monitoring.set_events(self._tool_id, 0)
        for event, previous in self._saved.items():
            sys.monitoring.register_callback(self._tool_id, event, previous)
        self._saved = {}
        sys.monitoring.free_tool_id(self._tool_id)
        self._started = False

    def restart(self) -> None:
        """Re-arm line locations disabled after their first hit.

        No-op when not started.
        """
        if self._started:
            sys.monitoring.restart_events()

    @property
    def is_started(self) -> bool:
        """Check if source is currently installed."""
        return self._started

    def _tracked_path(self, filename: str) -> str | None:
        try:
            return self._paths[filename]
        except KeyError:
            path = normalize_path(filename)
            tracked = path if self._filter(path) else None
            self._paths[filename] = tracked
            return tracked

    def _on_line(self, code: types.CodeType, line_number: int) -> object:
        """Callback for line execution (LINE event).

        Returns:
            sys.monitoring.DISABLE: the location is recorded once per arming
        """
        path = self._tracked_path(code.co_filename)
        if path is not None:
            self._sink(LineEvent(file=path, line=line_number))
        return sys.monitoring.DISABLE

    def _on_py_start(self, code: types.CodeType, instruction_offset: int) -> object:
        """Callback for function entry (PY_START event).

        Args:
            code: Code object of called function
            instruction_offset: Bytecode offset (unused)

        Returns:
            sys.monitoring.DISABLE for untracked files, None otherwise
        """
        path = self._tracked_path(code.co_filename)
        if path is None:
            return sys.monitoring.DISABLE
        self._sink(CallEvent(file=path, line=max(code.co_firstlineno, 1), name=code.co_name))
        return None
