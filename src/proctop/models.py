"""Data models for proctop."""

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class AggregateCounters:
    """Immutable reading of the system-wide CPU and memory counters."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    memory_total_kb: int = 0
    memory_available_kb: int = 0

    @classmethod
    def zero(cls) -> "AggregateCounters":
        """Counters used when the system sources cannot be read."""
        return cls()

    @property
    def total_ticks(self) -> int:
        """Sum of all eight tick categories."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    @property
    def idle_ticks(self) -> int:
        """Ticks spent idle, including time waiting on I/O."""
        return self.idle + self.iowait


@dataclass(slots=True, frozen=True)
class ProcessSample:
    """Immutable snapshot of one process's cumulative counters."""

    ticks: int = 0  # utime + stime in clock ticks
    rss_pages: int = 0

    @classmethod
    def zero(cls) -> "ProcessSample":
        """Sample used when the process records cannot be read."""
        return cls()


@dataclass(slots=True, frozen=True)
class ProcessInfo:
    """A display row: one process with its computed percentages."""

    pid: int
    name: str
    cpu_percent: float
    memory_percent: float
