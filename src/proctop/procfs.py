"""
Readers for the Linux process information filesystem.

Every parse here is attempt-then-default: a missing file, a process that
exited between listing and reading, or a malformed record degrades to a
zero value instead of raising.
"""

import logging
import os
from pathlib import Path

from proctop.models import AggregateCounters, ProcessSample

logger = logging.getLogger(__name__)

CPU_TICK_FIELDS = 8
# Fields after "pid (comm) " that precede utime: state, ppid, pgrp, session,
# tty_nr, tpgid, flags, minflt, cminflt, majflt, cmajflt
STAT_FIELDS_BEFORE_UTIME = 11


def _default_page_size() -> int:
    try:
        return os.sysconf("SC_PAGE_SIZE")
    except (AttributeError, ValueError, OSError):
        return 4096


def split_stat_record(line: str) -> tuple[str, list[str]] | None:
    """
    Split a ``<pid>/stat`` record into the command name and the fields after it.

    The name sits between the first '(' and the LAST ')', and may itself
    contain spaces and parentheses.
    """
    start = line.find("(")
    end = line.rfind(")")
    if start == -1 or end == -1 or end <= start:
        return None
    return line[start + 1 : end], line[end + 1 :].split()


class ProcFS:
    """
    Best-effort reader for system and per-process counters.

    Args:
        root: Mount point of the process filesystem. Default ``/proc``.
        page_size: Memory page size in bytes. Defaults to the system value.
    """

    def __init__(self, root: Path | str = "/proc", page_size: int | None = None) -> None:
        self._root = Path(root)
        self._page_size = page_size if page_size is not None else _default_page_size()

    @property
    def root(self) -> Path:
        """Get the filesystem root being read."""
        return self._root

    @property
    def page_size(self) -> int:
        """Get the memory page size in bytes."""
        return self._page_size

    def _read_text(self, *parts: str) -> str | None:
        """Read a file below the root, returning None if it cannot be read."""
        path = self._root.joinpath(*parts)
        try:
            return path.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            # Covers FileNotFoundError, PermissionError and ProcessLookupError
            logger.debug("Cannot read %s: %s", path, exc)
            return None

    # System counters

    def read_aggregate_counters(self) -> AggregateCounters:
        """Read cumulative CPU ticks and memory totals for the whole system."""
        ticks = self._read_cpu_ticks()
        total_kb, available_kb = self._read_memory_kb()
        return AggregateCounters(
            *ticks,
            memory_total_kb=total_kb,
            memory_available_kb=available_kb,
        )

    def _read_cpu_ticks(self) -> list[int]:
        zeros = [0] * CPU_TICK_FIELDS
        content = self._read_text("stat")
        if not content:
            return zeros

        fields = content.splitlines()[0].split()
        if not fields or not fields[0].startswith("cpu"):
            logger.debug("Unexpected first line in stat: %r", fields[:1])
            return zeros

        try:
            ticks = [int(value) for value in fields[1 : CPU_TICK_FIELDS + 1]]
        except ValueError:
            logger.debug("Malformed cpu line in stat")
            return zeros

        # Older kernels report fewer categories
        return ticks + [0] * (CPU_TICK_FIELDS - len(ticks))

    def _read_memory_kb(self) -> tuple[int, int]:
        content = self._read_text("meminfo")
        if not content:
            return 0, 0

        values: dict[str, int] = {}
        for line in content.splitlines():
            key, _, rest = line.partition(":")
            parts = rest.split()
            if not parts:
                continue
            try:
                values[key.strip()] = int(parts[0])
            except ValueError:
                continue

        total = values.get("MemTotal", 0)
        available = values.get("MemAvailable", values.get("MemFree", 0))
        return total, available

    # Processes

    def list_process_ids(self) -> set[int]:
        """Return the PIDs of live processes: the purely numeric directories."""
        pids = set()
        try:
            with os.scandir(self._root) as entries:
                for entry in entries:
                    name = entry.name
                    if not (name.isascii() and name.isdigit()) or int(name) <= 0:
                        continue
                    try:
                        if entry.is_dir():
                            pids.add(int(name))
                    except OSError:
                        continue  # Vanished while listing
        except OSError as exc:
            logger.warning("Cannot list %s: %s", self._root, exc)
            return set()
        return pids

    def read_process_snapshot(self, pid: int) -> ProcessSample:
        """Read cumulative CPU ticks and resident pages for one process."""
        content = self._read_text(str(pid), "stat")
        if not content:
            return ProcessSample.zero()

        record = split_stat_record(content)
        if record is None:
            return ProcessSample.zero()
        _, fields = record

        try:
            utime = int(fields[STAT_FIELDS_BEFORE_UTIME])
            stime = int(fields[STAT_FIELDS_BEFORE_UTIME + 1])
        except (IndexError, ValueError):
            logger.debug("Short or malformed stat record for pid %d", pid)
            return ProcessSample.zero()

        return ProcessSample(ticks=utime + stime, rss_pages=self.read_resident_pages(pid))

    def read_resident_pages(self, pid: int) -> int:
        """
        Read a process's resident set size in pages.

        ``statm`` is preferred; ``VmRSS`` from ``status`` is the fallback,
        converted from kilobytes to pages rounding up.
        """
        statm = self._read_text(str(pid), "statm")
        if statm:
            parts = statm.split()
            try:
                return int(parts[1])
            except (IndexError, ValueError):
                logger.debug("Malformed statm record for pid %d", pid)

        status = self._read_text(str(pid), "status")
        if status:
            for line in status.splitlines():
                if not line.startswith("VmRSS:"):
                    continue
                parts = line.split()
                try:
                    rss_kb = int(parts[1])
                except (IndexError, ValueError):
                    break
                return (rss_kb * 1024 + self._page_size - 1) // self._page_size

        # Kernel threads have no VmRSS line
        return 0

    def read_process_name(self, pid: int) -> str:
        """
        Read the short name of a process.

        Returns an empty string when the process no longer exists.
        """
        comm = self._read_text(str(pid), "comm")
        if comm is not None:
            return comm.rstrip("\n")

        content = self._read_text(str(pid), "stat")
        if content:
            record = split_stat_record(content)
            if record is not None:
                return record[0]
        return ""

    def sample_processes(self) -> dict[int, ProcessSample]:
        """Take one generation of process samples keyed by PID."""
        return {pid: self.read_process_snapshot(pid) for pid in self.list_process_ids()}
