"""Debug dump: Session -> rich formatted diagnostic string."""

from __future__ import annotations

from dataclasses import dataclass
from io import StringIO
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

if TYPE_CHECKING:
    from covcheck.domain.model.file_data import FileData
    from covcheck.domain.model.session import Session


@dataclass(frozen=True, slots=True)
class DumpConfig:
    """Configuration for the debug dump.

    Attributes:
        color: Emit terminal colors.
        width: Console width in characters.
        show_functions: List function records under the file table.
    """

    color: bool = True
    width: int = 120
    show_functions: bool = True


class DebugDumpReporter:
    """Renders raw session state for troubleshooting.

    Shows hits before and after reconciliation side by side, so a dump
    taken between stop() and reconciliation explains cleared lines.
    Output is str, not print(). Caller decides destination.
    """

    def __init__(self, config: DumpConfig | None = None) -> None:
        """Initialize reporter.

        Args:
            config: Dump configuration. Uses defaults if None.
        """
        self._config = config or DumpConfig()

    def report(self, session: Session) -> str:
        """Format session state as rich formatted string."""
        output = StringIO()
        console = Console(
            file=output,
            force_terminal=self._config.color,
            no_color=not self._config.color,
            width=self._config.width,
        )

        self._render_header(console, session)
        self._render_files(console, session)
        if self._config.show_functions:
            self._render_functions(console, session)
        if session.unreadable:
            self._render_unreadable(console, session)

        return output.getvalue()

    def _render_header(self, console: Console, session: Session) -> None:
        config = session.config
        console.print()
        console.rule("[bold]COVCHECK DEBUG DUMP[/bold]")
        console.print()
        console.print(
            f"[bold]Enabled:[/bold] {session.enabled}  "
            f"[bold]Active:[/bold] {session.active}  "
            f"[bold]Files:[/bold] {len(session.files)}  "
            f"[bold]Unreadable:[/bold] {len(session.unreadable)}"
        )
        console.print(
            f"[bold]Static analysis:[/bold] {config.use_static_analysis}  "
            f"[bold]Blocks:[/bold] {config.blocks_enabled}  "
            f"[bold]Threshold:[/bold] {config.threshold:.1f}"
        )
        console.print()

    def _render_files(self, console: Console, session: Session) -> None:
        if not session.files:
            console.print("[dim]No files tracked[/dim]")
            console.print()
            return

        table = Table(title="Files", show_lines=False)
        table.add_column("Path", no_wrap=True)
        table.add_column("Lines", justify="right")
        table.add_column("Executable", justify="right")
        table.add_column("Executed", justify="right")
        table.add_column("Covered", justify="right")
        table.add_column("Calls", justify="right")
        table.add_column("Analysis")
        table.add_column("Flags")

        for path in sorted(session.files):
            data = session.files[path]
            table.add_row(
                path,
                str(data.line_count),
                str(sum(1 for flag in data.executable.values() if flag)),
                str(sum(1 for ran in data.executed.values() if ran)),
                str(len(data.covered_lines())),
                str(sum(data.function_calls.values())),
                _analysis_label(data),
                _flags(data),
            )

        console.print(table)
        console.print()

    def _render_functions(self, console: Console, session: Session) -> None:
        for path in sorted(session.files):
            data = session.files[path]
            if data.needs_static_analysis or not data.code_map.functions:
                continue
            console.print(f"[yellow]{path}[/yellow]")
            for func in data.code_map.functions:
                calls = data.function_calls.get(func.key, 0)
                mark = "+" if data.functions_executed.get(func.key, False) else "-"
                console.print(
                    f"  {mark} {func.name} [dim]{func.start_line}-{func.end_line}[/dim] calls={calls}"
                )
            console.print()

    def _render_unreadable(self, console: Console, session: Session) -> None:
        console.print(f"[bold red]UNREADABLE[/bold red] ({len(session.unreadable)})")
        for path in sorted(session.unreadable):
            console.print(f"  {path}")
        console.print()


def _analysis_label(data: FileData) -> str:
    code_map = data.code_map
    label = code_map.origin.value
    if code_map.timed_out_phase is not None:
        label += f" ({code_map.timed_out_phase.value} timeout @{code_map.analyzed_through})"
    return label


def _flags(data: FileData) -> str:
    flags = []
    if data.discovered:
        flags.append("discovered")
    if data.preloaded:
        flags.append("preloaded")
    return ",".join(flags)
