"""System monitoring engine for proctop."""

import logging
from dataclasses import dataclass

from proctop.config import MIN_REFRESH_INTERVAL
from proctop.estimator import UtilizationEstimator
from proctop.models import ProcessInfo, ProcessSample
from proctop.procfs import ProcFS
from proctop.render import sort_processes

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SystemSnapshot:
    """Snapshot of overall system state, one per rendered frame."""

    cpu_percent: float
    memory_total_kb: int
    memory_used_kb: int
    processes: list[ProcessInfo]

    @property
    def memory_total_mb(self) -> float:
        """Total physical memory in MB."""
        return self.memory_total_kb / 1024

    @property
    def memory_used_mb(self) -> float:
        """Memory in use in MB."""
        return self.memory_used_kb / 1024


class SystemMonitor:
    """
    System monitor that samples /proc and estimates utilization.

    Runs on the caller's thread: each call to ``sample`` reads a fresh
    generation of counters, compares it with the previous one, and keeps
    the fresh generation as the new baseline. Processes that exit while
    being sampled are skipped, never raised.
    """

    def __init__(
        self,
        procfs: ProcFS | None = None,
        poll_rate: float = 2.0,
        estimator: UtilizationEstimator | None = None,
    ) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            procfs: Reader for the process filesystem. Default reads /proc.
            poll_rate: How often the caller should sample (in seconds). Default 2.0s.
            estimator: Utilization estimator; a fresh one by default.
        """
        self._procfs = procfs if procfs is not None else ProcFS()
        self._poll_rate = max(MIN_REFRESH_INTERVAL, poll_rate)
        self._estimator = estimator if estimator is not None else UtilizationEstimator()
        self._previous: dict[int, ProcessSample] = {}
        self._primed = False

    @property
    def procfs(self) -> ProcFS:
        """Get the process filesystem reader."""
        return self._procfs

    @property
    def poll_rate(self) -> float:
        """Get the current poll rate."""
        return self._poll_rate

    @poll_rate.setter
    def poll_rate(self, value: float) -> None:
        """Set the poll rate."""
        self._poll_rate = max(MIN_REFRESH_INTERVAL, value)

    @property
    def previous_processes(self) -> dict[int, ProcessSample]:
        """Get the previous generation of process samples."""
        return self._previous

    def prime(self) -> None:
        """
        Record a baseline without producing a frame.

        Without it, the first frame would compare lifetime counters against
        zero and show every process's average since it started.
        """
        self._estimator.reset(self._procfs.read_aggregate_counters())
        self._previous = self._procfs.sample_processes()
        self._primed = True

    def sample(self) -> SystemSnapshot:
        """Take a fresh sample and compare it with the previous one."""
        if not self._primed:
            self.prime()

        aggregate = self._procfs.read_aggregate_counters()
        current = self._procfs.sample_processes()
        estimate = self._estimator.estimate(aggregate, self._previous, current, self._procfs.page_size)

        processes = self._collect_processes(estimate.processes)

        # Replace wholesale; only one generation of history is kept
        self._previous = current

        logger.debug(
            "Sampled %d processes, cpu=%.2f%% delta=%d ticks",
            len(current),
            estimate.cpu_percent,
            estimate.total_delta,
        )
        return SystemSnapshot(
            cpu_percent=estimate.cpu_percent,
            memory_total_kb=estimate.memory_total_kb,
            memory_used_kb=estimate.memory_used_kb,
            processes=processes,
        )

    def _collect_processes(self, percents: dict[int, tuple[float, float]]) -> list[ProcessInfo]:
        """
        Build display rows for every process that still has a name.

        An empty name means the process exited during the sample.
        """
        processes: list[ProcessInfo] = []
        for pid, (cpu, mem) in percents.items():
            name = self._procfs.read_process_name(pid)
            if not name:
                continue
            processes.append(ProcessInfo(pid=pid, name=name, cpu_percent=cpu, memory_percent=mem))
        return sort_processes(processes)
