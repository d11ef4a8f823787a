"""
Output formatting utilities for PortSweep
Leveled, colored reporting of scan events on stdout and stderr
"""

from collections import Counter
from enum import IntEnum
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from portsweep.core.scanner import ConnectionStatus, ScanEvent, ScanResult, TaskFailure


class Verbosity(IntEnum):
    """Message levels; a message is shown when its level <= the configured one"""
    INFO = 0
    WARN = 1
    ERROR = 2
    DEBUG = 3


PREFIXES = {
    Verbosity.INFO: "[white]\\[INFO][/white]",
    Verbosity.WARN: "[yellow]\\[WARN][/yellow]",
    Verbosity.ERROR: "[red]\\[ERROR][/red]",
    Verbosity.DEBUG: "[green]\\[DEBUG][/green]",
}

STATUS_LEVELS = {
    ConnectionStatus.OPEN: Verbosity.INFO,
    ConnectionStatus.REFUSED: Verbosity.WARN,
    ConnectionStatus.TIMEOUT: Verbosity.ERROR,
    ConnectionStatus.UNREACHABLE: Verbosity.ERROR,
}

STATUS_STYLES = {
    ConnectionStatus.OPEN: "green",
    ConnectionStatus.REFUSED: "yellow",
    ConnectionStatus.TIMEOUT: "red",
    ConnectionStatus.UNREACHABLE: "red",
}


class ResultReporter:
    """Print scan events with level prefixes and keep a tally of outcomes"""

    def __init__(self, verbosity: Verbosity = Verbosity.ERROR,
                 console: Optional[Console] = None,
                 err_console: Optional[Console] = None):
        self.verbosity = Verbosity(verbosity)
        self.console = console or Console()
        self.err_console = err_console or Console(stderr=True)
        self.counts: Counter = Counter()
        self.failures = 0

    def emit(self, message: str, level: Verbosity = Verbosity.INFO):
        """Print message if level is enabled; errors go to stderr"""
        level = Verbosity(level)
        if level > self.verbosity:
            return

        target = self.err_console if level == Verbosity.ERROR else self.console
        target.print(f"{PREFIXES[level]} {escape(message)}", highlight=False)

    def report(self, event: ScanEvent):
        """Display a single scan event"""
        if isinstance(event, ScanResult):
            self.counts[event.status] += 1
            self.emit(str(event), STATUS_LEVELS[event.status])
        elif isinstance(event, TaskFailure):
            self.failures += 1
            self.emit(f"An error has occurred: {event}", Verbosity.ERROR)
        else:
            raise TypeError(f"Unknown scan event: {event!r}")

    @property
    def total(self) -> int:
        return sum(self.counts.values()) + self.failures

    def summary(self) -> Table:
        """Build a table of outcome counts"""
        table = Table(title="[bold]Scan Summary[/bold]")
        table.add_column("Status", style="cyan", no_wrap=True)
        table.add_column("Count", justify="right")

        for status in ConnectionStatus:
            style = STATUS_STYLES[status]
            table.add_row(f"[{style}]{status.value}[/{style}]", str(self.counts[status]))
        if self.failures:
            table.add_row("[bold red]task failure[/bold red]", str(self.failures))
        table.add_row("[bold]total[/bold]", f"[bold]{self.total}[/bold]")
        return table

    def print_summary(self):
        self.console.print(self.summary())
