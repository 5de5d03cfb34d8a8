"""Shared fixtures: a fake /proc tree under tmp_path."""

import shutil
from pathlib import Path

import pytest

from proctop.procfs import ProcFS

PAGE_SIZE = 4096


class FakeProc:
    """Writes just enough of a /proc layout for the readers."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self._names: dict[int, str] = {}
        self.root.mkdir(parents=True, exist_ok=True)
        self.set_cpu(user=100, nice=0, system=50, idle=800, iowait=50)
        self.set_meminfo(total_kb=1024 * 1024, available_kb=512 * 1024)
        # Kernel pseudo-entries that must be ignored
        (self.root / "self").mkdir(exist_ok=True)
        (self.root / "sys").mkdir(exist_ok=True)

    def set_cpu(self, user=0, nice=0, system=0, idle=0, iowait=0, irq=0, softirq=0, steal=0) -> None:
        line = f"cpu  {user} {nice} {system} {idle} {iowait} {irq} {softirq} {steal} 0 0"
        (self.root / "stat").write_text(f"{line}\ncpu0 {user} {nice} {system} {idle} 0 0 0 0 0 0\nintr 0\n")

    def set_meminfo(self, total_kb: int, available_kb: int | None) -> None:
        lines = [f"MemTotal:       {total_kb} kB", "MemFree:          1000 kB"]
        if available_kb is not None:
            lines.append(f"MemAvailable:   {available_kb} kB")
        lines.append("Buffers:          100 kB")
        (self.root / "meminfo").write_text("\n".join(lines) + "\n")

    def add_process(
        self,
        pid: int,
        name: str,
        utime: int = 0,
        stime: int = 0,
        rss_pages: int | None = 10,
        vmrss_kb: int | None = None,
        comm: bool = True,
    ) -> None:
        base = self.root / str(pid)
        base.mkdir(exist_ok=True)
        self._names[pid] = name
        self.set_ticks(pid, utime, stime, name=name)
        if comm:
            (base / "comm").write_text(name + "\n")
        if rss_pages is not None:
            (base / "statm").write_text(f"5000 {rss_pages} 300 10 0 400 0\n")
        status = [f"Name:\t{name}", "State:\tS (sleeping)"]
        if vmrss_kb is not None:
            status.append(f"VmRSS:\t    {vmrss_kb} kB")
        (base / "status").write_text("\n".join(status) + "\n")

    def set_ticks(self, pid: int, utime: int, stime: int, name: str | None = None) -> None:
        base = self.root / str(pid)
        if name is None:
            name = self._names[pid]
        (base / "stat").write_text(
            f"{pid} ({name}) S 1 {pid} {pid} 0 -1 4194304 100 0 0 0 "
            f"{utime} {stime} 0 0 20 0 1 0 12345 1000000 10 18446744073709551615\n"
        )

    def remove_process(self, pid: int) -> None:
        shutil.rmtree(self.root / str(pid))
        self._names.pop(pid, None)


@pytest.fixture
def fake_proc(tmp_path) -> FakeProc:
    """A fake /proc tree with system counters and no processes."""
    return FakeProc(tmp_path / "proc")


@pytest.fixture
def procfs(fake_proc) -> ProcFS:
    """A ProcFS reading the fake tree with a fixed page size."""
    return ProcFS(fake_proc.root, page_size=PAGE_SIZE)
