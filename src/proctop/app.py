"""proctop - Main Textual application."""

import logging
import sys
from collections.abc import Callable

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal
from textual.css.query import NoMatches
from textual.timer import Timer
from textual.widgets import DataTable, Footer, Input, Static

from proctop.commands import (
    EXIT_MESSAGE,
    CommandDispatcher,
    CommandKind,
    Outcome,
    TerminateResult,
    terminate_process,
)
from proctop.config import MonitorConfig, parse_args
from proctop.log_config import setup_logging
from proctop.loop import BASELINE_INTERVAL, CommandLoop
from proctop.models import ProcessInfo
from proctop.monitor import SystemMonitor, SystemSnapshot
from proctop.procfs import ProcFS
from proctop.render import COMMAND_HELP, cpu_severity, format_percent, top_processes

logger = logging.getLogger(__name__)

BAR_WIDTH = 20


def usage_bar(percent: float, color: str) -> str:
    """Render a fixed-width usage bar as Rich markup."""
    filled = min(BAR_WIDTH, max(0, int(percent / 5)))
    return f"[{color}]█[/{color}]" * filled + "[dim]░[/dim]" * (BAR_WIDTH - filled)


class HeaderStats(Static):
    """Header widget showing overall CPU and memory usage."""

    DEFAULT_CSS = """
    HeaderStats {
        height: auto;
        min-height: 3;
        padding: 0 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize HeaderStats."""
        super().__init__(*args, **kwargs)
        self._cpu_percent: float = 0.0
        self._memory_total_kb: int = 0
        self._memory_used_kb: int = 0

    def compose(self) -> ComposeResult:
        """Compose the header stats layout."""
        yield Horizontal(
            Static(self._get_cpu_info(), id="cpu-info"),
            Static(self._get_mem_info(), id="mem-info"),
        )

    def update_stats(self, snapshot: SystemSnapshot) -> None:
        """Update the statistics from a system snapshot."""
        self._cpu_percent = snapshot.cpu_percent
        self._memory_total_kb = snapshot.memory_total_kb
        self._memory_used_kb = snapshot.memory_used_kb
        self._refresh_display()

    @property
    def memory_percent(self) -> float:
        """Share of memory in use."""
        if self._memory_total_kb <= 0:
            return 0.0
        return 100.0 * self._memory_used_kb / self._memory_total_kb

    def _refresh_display(self) -> None:
        """Refresh the display with current data."""
        try:
            self.query_one("#cpu-info", Static).update(self._get_cpu_info())
            self.query_one("#mem-info", Static).update(self._get_mem_info())
        except NoMatches:
            pass  # Not mounted yet

    def _get_cpu_info(self) -> str:
        """Get CPU info display."""
        # Escaped brackets for the bar container
        return f"CPU \\[{usage_bar(self._cpu_percent, 'green')}] {format_percent(self._cpu_percent)}%"

    def _get_mem_info(self) -> str:
        """Get memory info display."""
        used_mb = self._memory_used_kb / 1024
        total_mb = self._memory_total_kb / 1024
        return (
            f"Mem \\[{usage_bar(self.memory_percent, 'cyan')}] "
            f"{format_percent(used_mb)} MB / {format_percent(total_mb)} MB"
        )


class ProcessTable(Container):
    """Container for the process data table."""

    DEFAULT_CSS = """
    ProcessTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, *args, max_rows: int = 20, **kwargs) -> None:
        """Initialize ProcessTable."""
        super().__init__(*args, **kwargs)
        self._max_rows = max_rows
        self._shown_pids: list[int] = []

    @property
    def shown_pids(self) -> list[int]:
        """PIDs currently drawn, in display order."""
        return list(self._shown_pids)

    def compose(self) -> ComposeResult:
        """Compose the process table."""
        table = DataTable(id="process-table", cursor_type="row")

        # Columns exist before the first frame arrives
        table.add_column("PID", key="pid", width=8)
        table.add_column("NAME", key="name", width=28)
        table.add_column("CPU(%)", key="cpu", width=10)
        table.add_column("MEM(%)", key="mem", width=10)
        yield table

    def update_processes(self, processes: list[ProcessInfo]) -> None:
        """
        Redraw the table with the top processes of a frame.

        The rows are cleared and re-added every frame because the ranking
        changes between samples.
        """
        table = self.query_one("#process-table", DataTable)
        rows = top_processes(processes, self._max_rows)

        table.clear()
        for proc in rows:
            style = cpu_severity(proc.cpu_percent).style
            table.add_row(
                str(proc.pid),
                Text(proc.name, style=style),
                Text(format_percent(proc.cpu_percent), style=style, justify="right"),
                Text(format_percent(proc.memory_percent), style=style, justify="right"),
                key=str(proc.pid),
            )
        self._shown_pids = [proc.pid for proc in rows]


class ProctopApp(App):
    """Main proctop application."""

    TITLE = "proctop"
    SUB_TITLE = "Process and Resource Monitor"

    AUTO_FOCUS = "#command"

    CSS = """
    Screen {
        layout: vertical;
    }

    #header-stats {
        dock: top;
        height: auto;
    }

    Horizontal {
        height: auto;
    }

    #cpu-info {
        width: 1fr;
        padding-right: 2;
    }

    #mem-info {
        width: 1fr;
        padding-left: 2;
    }
    """

    BINDINGS = [
        ("f5", "refresh_now", "Refresh"),
        ("f10", "quit", "Quit"),
    ]

    def __init__(
        self,
        config: MonitorConfig | None = None,
        monitor: SystemMonitor | None = None,
        terminate: Callable[[int], TerminateResult] = terminate_process,
    ) -> None:
        """Initialize the ProctopApp."""
        super().__init__()
        self._config = config if config is not None else MonitorConfig()
        self._monitor = (
            monitor
            if monitor is not None
            else SystemMonitor(ProcFS(self._config.proc_root), poll_rate=self._config.refresh_interval)
        )
        self._commands = CommandDispatcher(terminate, self._config.kill_grace)
        self._timer: Timer | None = None
        self._last_snapshot: SystemSnapshot | None = None

    @property
    def last_snapshot(self) -> SystemSnapshot | None:
        """The most recently drawn frame."""
        return self._last_snapshot

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield HeaderStats(id="header-stats")
        yield ProcessTable(max_rows=self._config.max_rows)
        yield Input(placeholder=COMMAND_HELP, id="command")
        yield Footer()

    def on_mount(self) -> None:
        """Record a baseline and schedule the first frame one short interval later."""
        self._monitor.prime()
        self.set_timer(min(BASELINE_INTERVAL, self._monitor.poll_rate), self._start_refreshing)

    def _start_refreshing(self) -> None:
        """Draw the first frame and start the refresh timer."""
        self.refresh_snapshot()
        self._timer = self.set_interval(self._monitor.poll_rate, self.refresh_snapshot)

    def refresh_snapshot(self) -> None:
        """Sample the system and redraw."""
        snapshot = self._monitor.sample()
        self._last_snapshot = snapshot
        self._update_ui(snapshot)

    def _update_ui(self, snapshot: SystemSnapshot) -> None:
        """Update the UI with the new system snapshot."""
        try:
            self.query_one("#header-stats", HeaderStats).update_stats(snapshot)
            self.query_one(ProcessTable).update_processes(snapshot.processes)
        except NoMatches:
            pass  # Shutting down

    def _restart_timer(self) -> None:
        if self._timer is not None:
            self._timer.reset()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Dispatch a command line typed into the command input."""
        event.input.value = ""
        self.handle_outcome(self._commands.dispatch(event.value))

    def handle_outcome(self, outcome: Outcome) -> None:
        """Report a command outcome and schedule the next sample."""
        if outcome.kind is CommandKind.QUIT:
            self.action_quit()
            return

        if outcome.message:
            self.notify(escape(outcome.message), severity="error" if outcome.is_error else "information")

        # Any complete line ends the wait; a successful kill waits a little first
        if outcome.resample_delay > 0:
            self.set_timer(outcome.resample_delay, self.action_refresh_now)
        else:
            self.action_refresh_now()

    def action_refresh_now(self) -> None:
        """Resample at once and restart the refresh interval."""
        self.refresh_snapshot()
        self._restart_timer()

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        if self._timer is not None:
            self._timer.stop()
        self.exit(return_code=0, message=EXIT_MESSAGE)


def main(argv: list[str] | None = None) -> int:
    """Entry point for the proctop application."""
    config = parse_args(argv)
    setup_logging(config.log_level_value, config.log_file)
    logger.info("Starting proctop on %s every %.1fs", config.proc_root, config.refresh_interval)

    monitor = SystemMonitor(ProcFS(config.proc_root), poll_rate=config.refresh_interval)
    if config.once or config.plain:
        loop = CommandLoop(monitor, max_rows=config.max_rows, kill_grace=config.kill_grace)
        return loop.run_once() if config.once else loop.run()

    app = ProctopApp(config, monitor)
    app.run()
    return app.return_code or 0


if __name__ == "__main__":
    sys.exit(main())
