"""
Delta-based utilization estimates.

Cumulative counters only grow, so a rate is estimated by comparing two
readings taken one interval apart. Every delta is clamped at zero: a
counter that went backwards (wrap-around, or a reused PID) reports 0%
rather than a negative or absurd value.
"""

from dataclasses import dataclass, field

from proctop.models import AggregateCounters, ProcessSample


def cpu_usage_percent(previous: AggregateCounters, current: AggregateCounters) -> float:
    """System-wide CPU utilization between two aggregate readings."""
    total_delta = current.total_ticks - previous.total_ticks
    if total_delta <= 0:
        return 0.0
    idle_delta = max(0, current.idle_ticks - previous.idle_ticks)
    busy = max(0, total_delta - idle_delta)
    return min(100.0, 100.0 * busy / total_delta)


def tick_delta(previous: AggregateCounters, current: AggregateCounters) -> int:
    """System-wide elapsed ticks, floored at 1 for use as a denominator."""
    return max(1, current.total_ticks - previous.total_ticks)


def process_cpu_percent(previous_ticks: int, current_ticks: int, total_delta: int) -> float:
    """
    CPU share of one process over the interval.

    Normalized against the system-wide tick delta, which accumulates across
    all cores, so a process saturating one core of N reports about 100/N.
    """
    delta = max(0, current_ticks - previous_ticks)
    return 100.0 * delta / max(1, total_delta)


def memory_percent(rss_pages: int, page_size: int, memory_total_kb: int) -> float:
    """Resident memory of a process as a share of physical memory."""
    if rss_pages <= 0 or memory_total_kb <= 0:
        return 0.0
    return 100.0 * (rss_pages * page_size) / (memory_total_kb * 1024)


def used_memory_kb(memory_total_kb: int, memory_available_kb: int) -> int:
    """Memory in use, clamped to zero when available exceeds total."""
    return max(0, memory_total_kb - memory_available_kb)


@dataclass(slots=True)
class Estimate:
    """Result of comparing two samples."""

    cpu_percent: float
    memory_total_kb: int
    memory_used_kb: int
    total_delta: int
    processes: dict[int, tuple[float, float]] = field(default_factory=dict)  # pid -> (cpu%, mem%)


class UtilizationEstimator:
    """
    Stateful estimator keeping its own previous aggregate baseline.

    The baseline is replaced on every call to ``estimate``; process samples
    are passed in by the caller, which owns the previous generation.
    """

    def __init__(self, baseline: AggregateCounters | None = None) -> None:
        self._baseline = baseline if baseline is not None else AggregateCounters.zero()

    @property
    def baseline(self) -> AggregateCounters:
        """Get the aggregate reading the next estimate is compared with."""
        return self._baseline

    def reset(self, baseline: AggregateCounters) -> None:
        """Replace the baseline without producing an estimate."""
        self._baseline = baseline

    def estimate(
        self,
        current: AggregateCounters,
        previous_processes: dict[int, ProcessSample],
        current_processes: dict[int, ProcessSample],
        page_size: int,
    ) -> Estimate:
        """Compute system and per-process utilization, then advance the baseline."""
        previous = self._baseline
        total_delta = tick_delta(previous, current)
        zero = ProcessSample.zero()

        processes: dict[int, tuple[float, float]] = {}
        for pid, sample in current_processes.items():
            before = previous_processes.get(pid, zero)
            processes[pid] = (
                process_cpu_percent(before.ticks, sample.ticks, total_delta),
                memory_percent(sample.rss_pages, page_size, current.memory_total_kb),
            )

        result = Estimate(
            cpu_percent=cpu_usage_percent(previous, current),
            memory_total_kb=current.memory_total_kb,
            memory_used_kb=used_memory_kb(current.memory_total_kb, current.memory_available_kb),
            total_delta=total_delta,
            processes=processes,
        )
        self._baseline = current
        return result
