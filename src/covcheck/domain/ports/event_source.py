"""Event source protocol.

An event source turns host-runtime instrumentation into LineEvent and
CallEvent records pushed to a sink. The tracker never knows which
source produced an event.
"""

from __future__ import annotations

from typing import Protocol


class EventSourceProtocol(Protocol):
    """Contract for runtime event sources.

    Lifecycle:
        source.start()   # install hook, save the previous one
        # ... code under test runs, events reach the sink ...
        source.stop()    # restore the previous hook
    """

    def start(self) -> None:
        """Install the instrumentation hook. No-op when already started.

        Raises:
            ToolIdUnavailableError: Hook slot is taken by another tool
        """
        ...

    def stop(self) -> None:
        """Remove the hook and restore the previous one. No-op when stopped."""
        ...

    def restart(self) -> None:
        """Deliver locations already reported once again. No-op when stopped."""
        ...

    @property
    def is_started(self) -> bool:
        """Hook currently installed."""
        ...
