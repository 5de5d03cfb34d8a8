"""Interactive command parsing and process termination."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import psutil

from proctop.config import DEFAULT_KILL_GRACE

logger = logging.getLogger(__name__)

EXIT_MESSAGE = "Exiting proctop."


class CommandKind(Enum):
    """Kinds of line commands."""

    NOOP = "noop"
    QUIT = "quit"
    REFRESH = "refresh"
    KILL = "kill"
    INVALID_PID = "invalid_pid"
    UNKNOWN = "unknown"


COMMAND_WORDS = {
    "q": CommandKind.QUIT,
    "quit": CommandKind.QUIT,
    "r": CommandKind.REFRESH,
    "refresh": CommandKind.REFRESH,
    "k": CommandKind.KILL,
    "kill": CommandKind.KILL,
}


@dataclass(slots=True, frozen=True)
class Command:
    """A parsed input line."""

    kind: CommandKind
    text: str = ""
    pid: int | None = None


def parse_pid(token: str) -> int | None:
    """Parse a strictly positive decimal PID, or return None."""
    if not (token.isascii() and token.isdigit()):
        return None
    pid = int(token)
    return pid if pid > 0 else None


def parse_command(line: str) -> Command:
    """
    Parse one input line.

    The first word selects the command, case-insensitively:
    ``q``/``quit``, ``r``/``refresh`` or ``k``/``kill <pid>``.
    """
    text = line.strip()
    if not text:
        return Command(CommandKind.NOOP)

    words = text.split()
    kind = COMMAND_WORDS.get(words[0].lower(), CommandKind.UNKNOWN)
    if kind is not CommandKind.KILL:
        return Command(kind, text=text)

    pid = parse_pid(words[1]) if len(words) > 1 else None
    if pid is None:
        return Command(CommandKind.INVALID_PID, text=text)
    return Command(CommandKind.KILL, text=text, pid=pid)


@dataclass(slots=True, frozen=True)
class TerminateResult:
    """Outcome of a termination request."""

    pid: int
    ok: bool
    message: str


def terminate_process(pid: int) -> TerminateResult:
    """
    Send SIGTERM to a process.

    Fire and forget: success means the OS accepted the signal, not that
    the process has exited.
    """
    try:
        psutil.Process(pid).terminate()
    except psutil.NoSuchProcess:
        logger.warning("Terminate failed for %d: no such process", pid)
        return TerminateResult(pid, False, f"kill: no such process {pid}")
    except psutil.AccessDenied:
        logger.warning("Terminate failed for %d: permission denied", pid)
        return TerminateResult(pid, False, f"kill: permission denied for {pid}")
    except OSError as exc:
        logger.warning("Terminate failed for %d: %s", pid, exc)
        return TerminateResult(pid, False, f"kill: {exc.strerror or exc}")

    logger.info("Sent SIGTERM to %d", pid)
    return TerminateResult(pid, True, f"Sent SIGTERM to {pid}")


@dataclass(slots=True, frozen=True)
class Outcome:
    """What a dispatched command did, for the front-end to report."""

    kind: CommandKind
    message: str = ""
    is_error: bool = False
    resample_delay: float = 0.0


class CommandDispatcher:
    """
    Executes parsed command lines.

    Shared by the Textual app and the plain runner. Each front-end decides
    how to report the returned Outcome and when to resample.

    Args:
        terminate: Callable that sends the termination signal.
        kill_grace: Pause after a successful kill before resampling.
    """

    def __init__(
        self,
        terminate: Callable[[int], TerminateResult] = terminate_process,
        kill_grace: float = DEFAULT_KILL_GRACE,
    ) -> None:
        self._terminate = terminate
        self._kill_grace = kill_grace

    def dispatch(self, line: str) -> Outcome:
        """Parse and execute one input line."""
        command = parse_command(line)

        if command.kind is CommandKind.QUIT:
            return Outcome(command.kind, EXIT_MESSAGE)

        if command.kind is CommandKind.KILL:
            result = self._terminate(command.pid)
            if result.ok:
                return Outcome(command.kind, result.message, resample_delay=self._kill_grace)
            return Outcome(command.kind, result.message, is_error=True)

        if command.kind is CommandKind.INVALID_PID:
            return Outcome(command.kind, "Invalid PID", is_error=True)

        if command.kind is CommandKind.UNKNOWN:
            return Outcome(command.kind, f"Unknown command: {command.text}", is_error=True)

        # NOOP and REFRESH just end the wait early
        return Outcome(command.kind)
