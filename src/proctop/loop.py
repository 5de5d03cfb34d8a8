"""
Interactive command loop.

The loop alternates between two states. SAMPLING takes a frame and draws
it; WAITING blocks on standard input for at most the refresh interval. A
complete line or the timeout returns it to SAMPLING. ``q`` moves it to
STOPPED.
"""

import codecs
import logging
import os
import select
import sys
import time
from collections.abc import Callable
from enum import Enum
from typing import TextIO

from rich.console import Console
from rich.text import Text

from proctop.commands import (
    EXIT_MESSAGE,
    CommandDispatcher,
    CommandKind,
    Outcome,
    TerminateResult,
    terminate_process,
)
from proctop.config import DEFAULT_KILL_GRACE, DEFAULT_MAX_ROWS
from proctop.monitor import SystemMonitor
from proctop.render import render_frame

logger = logging.getLogger(__name__)

READ_CHUNK = 4096
BASELINE_INTERVAL = 1.0  # longest wait between the baseline and the first frame


class LoopState(Enum):
    """States of the command loop."""

    SAMPLING = "sampling"
    WAITING = "waiting"
    STOPPED = "stopped"


class CommandLoop:
    """
    Drives sampling, drawing and command input in plain mode.

    Args:
        monitor: Source of frames.
        console: Rich console to draw on. Default writes to stdout.
        stdin: Text stream commands are read from. Default ``sys.stdin``.
        terminate: Callable that sends the termination signal.
        sleep: Callable used for the baseline and post-kill pauses.
        max_rows: Number of process rows to draw.
        kill_grace: Pause after a successful kill before resampling.
    """

    def __init__(
        self,
        monitor: SystemMonitor,
        console: Console | None = None,
        stdin: TextIO | None = None,
        terminate: Callable[[int], TerminateResult] = terminate_process,
        sleep: Callable[[float], None] = time.sleep,
        max_rows: int = DEFAULT_MAX_ROWS,
        kill_grace: float = DEFAULT_KILL_GRACE,
    ) -> None:
        self._monitor = monitor
        self._console = console if console is not None else Console()
        self._stdin = stdin if stdin is not None else sys.stdin
        self._stdin_open = True
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._commands = CommandDispatcher(terminate, kill_grace)
        self._sleep = sleep
        self._max_rows = max_rows
        self._state = LoopState.SAMPLING
        self._message: Text | None = None

    @property
    def state(self) -> LoopState:
        """Get the current loop state."""
        return self._state

    @property
    def running(self) -> bool:
        """Whether the loop has not been stopped."""
        return self._state is not LoopState.STOPPED

    def stop(self) -> None:
        """Stop the loop at the end of the current iteration."""
        self._state = LoopState.STOPPED

    def dispatch(self, line: str) -> Outcome:
        """Parse and execute one input line, stopping on ``q``."""
        outcome = self._commands.dispatch(line)
        if outcome.kind is CommandKind.QUIT:
            self.stop()
        return outcome

    def _pop_line(self) -> str:
        line, _, self._pending = self._pending.partition("\n")
        return line + "\n"

    def wait_for_line(self, timeout: float) -> str | None:
        """
        Block until a line arrives on stdin or the timeout expires.

        Returns None on timeout. Once stdin reaches end of file, input is
        no longer watched and the wait becomes a plain sleep.
        """
        if "\n" in self._pending:
            return self._pop_line()
        if not self._stdin_open:
            self._sleep(timeout)
            return None

        # Raw reads: a buffered readline() would hide queued lines from select()
        fd = self._stdin.fileno()
        deadline = time.monotonic() + timeout
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            ready, _, _ = select.select([fd], [], [], remaining)
            if not ready:
                return None

            chunk = os.read(fd, READ_CHUNK)
            if not chunk:
                logger.info("Standard input closed, refreshing on the timer only")
                self._stdin_open = False
                self._pending += self._decoder.decode(b"", final=True)
                if self._pending:
                    self._pending += "\n"
                    return self._pop_line()
                return None

            self._pending += self._decoder.decode(chunk)
            if "\n" in self._pending:
                return self._pop_line()

    def step(self) -> None:
        """Run one SAMPLING then WAITING cycle."""
        self._state = LoopState.SAMPLING
        snapshot = self._monitor.sample()
        render_frame(self._console, snapshot, self._max_rows, self._message)
        self._message = None

        self._state = LoopState.WAITING
        line = self.wait_for_line(self._monitor.poll_rate)
        if line is None:
            self._state = LoopState.SAMPLING
            return

        outcome = self.dispatch(line)
        if outcome.message and outcome.kind is not CommandKind.QUIT:
            self._message = Text(outcome.message, style="bold red" if outcome.is_error else "green")
        if outcome.resample_delay > 0:
            self._sleep(outcome.resample_delay)
        if self.running:
            self._state = LoopState.SAMPLING

    def settle(self) -> None:
        """Record a baseline and wait one short interval before the first frame."""
        self._monitor.prime()
        self._sleep(min(BASELINE_INTERVAL, self._monitor.poll_rate))

    def run(self) -> int:
        """Run until ``q`` is entered and return the exit status."""
        try:
            self.settle()
            while self.running:
                self.step()
        except KeyboardInterrupt:
            self.stop()
        self._console.print(EXIT_MESSAGE)
        return 0

    def run_once(self) -> int:
        """Draw a single frame without clearing the screen."""
        self.settle()
        render_frame(self._console, self._monitor.sample(), self._max_rows, clear=False)
        self._state = LoopState.STOPPED
        return 0
