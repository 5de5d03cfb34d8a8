"""Tests for command parsing and process termination."""

import multiprocessing
import time

import psutil
import pytest

from proctop.commands import (
    EXIT_MESSAGE,
    CommandDispatcher,
    CommandKind,
    TerminateResult,
    parse_command,
    parse_pid,
    terminate_process,
)


def sleeper(duration: float = 30.0) -> None:
    """A child process that sleeps for a given duration."""
    try:
        time.sleep(duration)
    except (KeyboardInterrupt, SystemExit):
        pass


class TestParseCommand:
    """Tests for parse_command."""

    @pytest.mark.parametrize("line", ["q", "Q", "  q  ", "quit", "QUIT\n"])
    def test_quit(self, line):
        """Test quit in any case."""
        assert parse_command(line).kind is CommandKind.QUIT

    @pytest.mark.parametrize("line", ["r", "R", "refresh"])
    def test_refresh(self, line):
        """Test refresh in any case."""
        assert parse_command(line).kind is CommandKind.REFRESH

    def test_kill(self):
        """Test 'k 1234' targets PID 1234."""
        command = parse_command("k 1234")
        assert command.kind is CommandKind.KILL
        assert command.pid == 1234

    def test_kill_long_form_and_case(self):
        """Test 'KILL' and 'K' are accepted and extra words ignored."""
        assert parse_command("KILL 77").pid == 77
        assert parse_command("K 5 extra").pid == 5

    @pytest.mark.parametrize("line", ["k -5", "k abc", "k 0", "k", "k 1.5", "k ١٢"])
    def test_invalid_pid(self, line):
        """Test non-positive, non-numeric and missing PIDs are rejected."""
        command = parse_command(line)
        assert command.kind is CommandKind.INVALID_PID
        assert command.pid is None

    @pytest.mark.parametrize("line", ["", "   ", "\n"])
    def test_empty_line(self, line):
        """Test blank input is a no-op."""
        assert parse_command(line).kind is CommandKind.NOOP

    @pytest.mark.parametrize("line", ["x", "hello world", "quitnow", "k1234"])
    def test_unknown(self, line):
        """Test anything else is unknown."""
        command = parse_command(line)
        assert command.kind is CommandKind.UNKNOWN
        assert command.text == line.strip()

    def test_parse_pid(self):
        """Test PID token validation."""
        assert parse_pid("42") == 42
        assert parse_pid("0") is None
        assert parse_pid("-1") is None
        assert parse_pid("+3") is None


class TestCommandDispatcher:
    """Tests for CommandDispatcher, shared by both front-ends."""

    def test_quit_carries_exit_message(self):
        """Test q reports the exit message and signals nothing."""
        calls = []
        dispatcher = CommandDispatcher(lambda pid: calls.append(pid))

        outcome = dispatcher.dispatch("q")

        assert outcome.kind is CommandKind.QUIT
        assert outcome.message == EXIT_MESSAGE
        assert calls == []

    def test_kill_waits_for_grace(self):
        """Test a successful kill asks for the configured pause."""
        def accept(pid: int) -> TerminateResult:
            return TerminateResult(pid, True, f"Sent SIGTERM to {pid}")

        dispatcher = CommandDispatcher(accept, kill_grace=0.5)

        outcome = dispatcher.dispatch("k 42")

        assert outcome.message == "Sent SIGTERM to 42"
        assert outcome.resample_delay == 0.5
        assert not outcome.is_error


class TestTerminateProcess:
    """Tests for terminate_process."""

    def test_terminates_child(self):
        """Test SIGTERM is delivered to a live child."""
        child = multiprocessing.Process(target=sleeper, args=(30.0,))
        child.start()
        try:
            result = terminate_process(child.pid)

            assert result.ok
            assert result.pid == child.pid
            assert str(child.pid) in result.message

            child.join(timeout=5.0)
            assert not child.is_alive()
        finally:
            if child.is_alive():
                child.kill()
                child.join(timeout=1.0)

    def test_no_such_process(self, monkeypatch):
        """Test a missing PID is reported, not raised."""

        def missing(pid):
            raise psutil.NoSuchProcess(pid)

        monkeypatch.setattr(psutil, "Process", missing)

        result = terminate_process(424242)

        assert not result.ok
        assert "no such process" in result.message

    def test_access_denied(self, monkeypatch):
        """Test insufficient privilege is reported, not raised."""

        class Denied:
            def __init__(self, pid):
                self.pid = pid

            def terminate(self):
                raise psutil.AccessDenied(self.pid)

        monkeypatch.setattr(psutil, "Process", Denied)

        result = terminate_process(1)

        assert not result.ok
        assert "permission denied" in result.message
