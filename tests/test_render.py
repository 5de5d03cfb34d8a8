"""Tests for sorting, formatting and rendering."""

import io
import random

from rich.console import Console

from proctop.models import ProcessInfo
from proctop.monitor import SystemSnapshot
from proctop.render import (
    Severity,
    build_process_table,
    cpu_severity,
    format_percent,
    render_frame,
    sort_processes,
    top_processes,
)


def make_console() -> tuple[Console, io.StringIO]:
    buffer = io.StringIO()
    return Console(file=buffer, width=100, color_system=None, force_terminal=False), buffer


def test_format_percent():
    """Test two decimal places."""
    assert format_percent(0) == "0.00"
    assert format_percent(12.346) == "12.35"
    assert format_percent(100) == "100.00"


class TestSeverity:
    """Tests for CPU severity bands."""

    def test_bands(self):
        """Test the band boundaries."""
        assert cpu_severity(0.0) is Severity.NORMAL
        assert cpu_severity(10.0) is Severity.NORMAL
        assert cpu_severity(10.01) is Severity.CAUTION
        assert cpu_severity(50.0) is Severity.CAUTION
        assert cpu_severity(50.01) is Severity.HIGH

    def test_styles(self):
        """Test each band maps to a Rich style."""
        assert Severity.HIGH.style == "bold red"
        assert Severity.CAUTION.style == "bold yellow"
        assert Severity.NORMAL.style == ""


class TestSorting:
    """Tests for row ordering."""

    def test_sort_order_property(self):
        """Test CPU% never increases, and MEM% never increases among CPU% ties."""
        rng = random.Random(1234)
        rows = [
            ProcessInfo(pid=i, name=f"p{i}", cpu_percent=rng.choice([0.0, 1.5, 20.0, 75.0]), memory_percent=rng.random())
            for i in range(1, 200)
        ]

        ordered = sort_processes(rows)

        for first, second in zip(ordered, ordered[1:]):
            assert first.cpu_percent >= second.cpu_percent
            if first.cpu_percent == second.cpu_percent:
                assert first.memory_percent >= second.memory_percent

    def test_top_processes_truncates(self):
        """Test only the requested number of rows is kept."""
        rows = [ProcessInfo(pid=i, name="x", cpu_percent=float(i), memory_percent=0.0) for i in range(1, 50)]

        top = top_processes(rows)

        assert len(top) == 20
        assert top[0].pid == 49

    def test_top_processes_drops_empty_names(self):
        """Test rows without a name are excluded whatever their usage."""
        rows = [
            ProcessInfo(pid=1, name="", cpu_percent=99.0, memory_percent=99.0),
            ProcessInfo(pid=2, name="bash", cpu_percent=1.0, memory_percent=1.0),
        ]

        assert [p.pid for p in top_processes(rows)] == [2]


class TestRendering:
    """Tests for terminal output."""

    def test_table_excludes_nameless_processes(self):
        """Test a nameless process never reaches the rendered table."""
        console, buffer = make_console()
        rows = [
            ProcessInfo(pid=31337, name="", cpu_percent=99.0, memory_percent=50.0),
            ProcessInfo(pid=42, name="bash", cpu_percent=1.0, memory_percent=0.5),
        ]

        console.print(build_process_table(rows))
        output = buffer.getvalue()

        assert "31337" not in output
        assert "42" in output
        assert "bash" in output

    def test_frame_contents(self):
        """Test header, columns and formatted values are drawn."""
        console, buffer = make_console()
        snapshot = SystemSnapshot(
            cpu_percent=12.5,
            memory_total_kb=2048,
            memory_used_kb=1024,
            processes=[ProcessInfo(pid=7, name="[kworker/0:1]", cpu_percent=60.0, memory_percent=1.25)],
        )

        render_frame(console, snapshot, message="Sent SIGTERM to 7", clear=False)
        output = buffer.getvalue()

        assert "CPU Overall: 12.50%" in output
        assert "Memory Used: 1.00 MB / 2.00 MB" in output
        for column in ("PID", "NAME", "CPU(%)", "MEM(%)"):
            assert column in output
        assert "[kworker/0:1]" in output
        assert "60.00" in output
        assert "1.25" in output
        assert "Sent SIGTERM to 7" in output
