"""Runtime configuration for proctop."""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

DEFAULT_REFRESH_INTERVAL = 2.0  # seconds between samples
MIN_REFRESH_INTERVAL = 0.1
DEFAULT_MAX_ROWS = 20
DEFAULT_KILL_GRACE = 0.3  # seconds to let a terminated process disappear
DEFAULT_PROC_ROOT = Path("/proc")

# Severity bands for the CPU column
HIGH_CPU_THRESHOLD = 50.0
CAUTION_CPU_THRESHOLD = 10.0

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Settings for one proctop session."""

    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    max_rows: int = DEFAULT_MAX_ROWS
    kill_grace: float = DEFAULT_KILL_GRACE
    proc_root: Path = DEFAULT_PROC_ROOT
    plain: bool = False
    once: bool = False
    log_file: Path | None = None
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        # Clamp instead of rejecting, like SystemMonitor.poll_rate
        object.__setattr__(self, "refresh_interval", max(MIN_REFRESH_INTERVAL, self.refresh_interval))
        object.__setattr__(self, "max_rows", max(1, self.max_rows))
        object.__setattr__(self, "kill_grace", max(0.0, self.kill_grace))

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return getattr(logging, self.log_level.upper(), logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="proctop",
        description="Interactive process and resource monitor for Linux /proc.",
        epilog="Commands while running: k <pid> (terminate), r (refresh now), q (quit).",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=float,
        default=DEFAULT_REFRESH_INTERVAL,
        help="seconds between samples (default: %(default)s)",
    )
    parser.add_argument(
        "-n",
        "--rows",
        type=int,
        default=DEFAULT_MAX_ROWS,
        help="number of processes to display (default: %(default)s)",
    )
    parser.add_argument(
        "--proc-root",
        type=Path,
        default=DEFAULT_PROC_ROOT,
        help="process information filesystem mount point (default: %(default)s)",
    )
    parser.add_argument("--plain", action="store_true", help="line-oriented terminal mode instead of the TUI")
    parser.add_argument("--once", action="store_true", help="print a single frame and exit")
    parser.add_argument("--log-file", type=Path, default=None, help="write log records to this file")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=LOG_LEVELS,
        type=str.upper,
        help="log level for --log-file (default: %(default)s)",
    )
    return parser


def parse_args(argv: list[str] | None = None) -> MonitorConfig:
    """Parse command line arguments into a MonitorConfig."""
    args = build_parser().parse_args(argv)
    return MonitorConfig(
        refresh_interval=args.interval,
        max_rows=args.rows,
        proc_root=args.proc_root,
        plain=args.plain,
        once=args.once,
        log_file=args.log_file,
        log_level=args.log_level,
    )
