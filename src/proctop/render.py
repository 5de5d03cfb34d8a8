"""Sorting, formatting and terminal rendering of process rows."""

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from proctop.config import CAUTION_CPU_THRESHOLD, DEFAULT_MAX_ROWS, HIGH_CPU_THRESHOLD
from proctop.models import ProcessInfo

if TYPE_CHECKING:
    from proctop.monitor import SystemSnapshot

TITLE = "================ System Monitor Tool ==============="
COMMAND_HELP = "Commands: k <pid>  -> kill PID | r -> refresh now | q -> quit"

PID_WIDTH = 8
NAME_WIDTH = 28
PERCENT_WIDTH = 10


class Severity(Enum):
    """Visual severity band of a CPU reading."""

    NORMAL = ""
    CAUTION = "bold yellow"
    HIGH = "bold red"

    @property
    def style(self) -> str:
        """Rich style string for the band."""
        return self.value


def cpu_severity(cpu_percent: float) -> Severity:
    """Classify a CPU percentage: above 50 is high, above 10 is caution."""
    if cpu_percent > HIGH_CPU_THRESHOLD:
        return Severity.HIGH
    if cpu_percent > CAUTION_CPU_THRESHOLD:
        return Severity.CAUTION
    return Severity.NORMAL


def format_percent(value: float) -> str:
    """Format a percentage with two decimals."""
    return f"{value:.2f}"


def sort_processes(processes: Iterable[ProcessInfo]) -> list[ProcessInfo]:
    """Sort by descending CPU%, breaking ties by descending MEM%."""
    return sorted(processes, key=lambda p: (p.cpu_percent, p.memory_percent), reverse=True)


def top_processes(processes: Iterable[ProcessInfo], limit: int = DEFAULT_MAX_ROWS) -> list[ProcessInfo]:
    """The rows to display: named processes only, sorted, truncated."""
    return sort_processes(p for p in processes if p.name)[: max(0, limit)]


def build_header(snapshot: "SystemSnapshot") -> Text:
    """Title, overall usage line and command help."""
    header = Text(TITLE + "\n", style="bold yellow")
    header.append(
        f"CPU Overall: {format_percent(snapshot.cpu_percent)}% | "
        f"Memory Used: {format_percent(snapshot.memory_used_mb)} MB / "
        f"{format_percent(snapshot.memory_total_mb)} MB\n",
        style="",
    )
    header.append(COMMAND_HELP + "\n", style="dim")
    return header


def build_process_table(processes: Iterable[ProcessInfo], limit: int = DEFAULT_MAX_ROWS) -> Table:
    """Fixed-width process table, each row styled by its CPU severity."""
    table = Table(box=None, show_edge=False, pad_edge=False, header_style="bold")
    table.add_column("PID", width=PID_WIDTH, no_wrap=True)
    table.add_column("NAME", width=NAME_WIDTH, no_wrap=True, overflow="ellipsis")
    table.add_column("CPU(%)", width=PERCENT_WIDTH, justify="right", no_wrap=True)
    table.add_column("MEM(%)", width=PERCENT_WIDTH, justify="right", no_wrap=True)

    for proc in top_processes(processes, limit):
        table.add_row(
            str(proc.pid),
            # Text, so names like "[kworker]" are not read as markup
            Text(proc.name),
            format_percent(proc.cpu_percent),
            format_percent(proc.memory_percent),
            style=cpu_severity(proc.cpu_percent).style or None,
        )
    return table


def render_frame(
    console: Console,
    snapshot: "SystemSnapshot",
    limit: int = DEFAULT_MAX_ROWS,
    message: Text | str | None = None,
    clear: bool = True,
) -> None:
    """Clear the screen and draw one frame."""
    parts: list = [build_header(snapshot), build_process_table(snapshot.processes, limit)]
    if message:
        parts.append(Text("\n") + (message if isinstance(message, Text) else Text(message)))
    if clear:
        console.clear()
    console.print(Group(*parts))
