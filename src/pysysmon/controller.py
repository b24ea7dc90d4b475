"""The interaction loop: sampling, rendering, input polling and the kill prompt."""

import logging
import re
import signal
from collections.abc import Callable
from enum import Enum
from typing import Protocol

from pysysmon.config import MonitorConfig
from pysysmon.models import SessionState, Tick
from pysysmon.monitor import SystemMonitor
from pysysmon.signals import Signaler
from pysysmon.view import Frame, render

logger = logging.getLogger(__name__)

KILL_PROMPT = "Enter PID to kill: "
CONTINUE = "Press any key to continue..."

QUIT_KEYS = frozenset("qQ")
SORT_KEYS = frozenset("sS")
KILL_KEYS = frozenset("kK")
REFRESH_KEYS = frozenset("rR")

PID_PATTERN = re.compile(r"[+-]?[0-9]+")


class TerminalIO(Protocol):
    """What the controller needs from the terminal."""

    @property
    def height(self) -> int:
        """Terminal height in lines."""

    def read_key(self) -> str | None:
        """Return the next pending key without blocking, or None."""

    def unread_key(self, key: str) -> None:
        """Put ``key`` back at the front of the input queue."""

    def draw(self, frame: Frame) -> None:
        """Clear the screen and draw ``frame``."""

    def begin_prompt(self, label: str) -> None:
        """Switch to echoing line input with ``label`` on the command line.

        Keys already queued are drained by the controller before this call.
        """

    def read_line(self) -> str | None:
        """Return the submitted prompt line, or None while still editing."""

    def show_message(self, text: str) -> None:
        """Replace the command line with ``text``."""

    def end_prompt(self) -> None:
        """Return to single-key input with the help line restored."""


class Phase(Enum):
    """Phases of the interaction loop."""

    SAMPLING = "sampling"
    RENDERING = "rendering"
    SLEEPING = "sleeping"
    KILL_PROMPT = "kill_prompt"
    KILL_RESULT = "kill_result"
    STOPPED = "stopped"


def kill_message(text: str, signaler: Signaler) -> str:
    """Interpret ``text`` as a pid, send it SIGTERM and describe the outcome."""
    text = text.strip()
    pid = int(text) if PID_PATTERN.fullmatch(text) else 0
    if pid <= 0:
        return f"Invalid PID. {CONTINUE}"
    try:
        signaler.send(pid, signal.SIGTERM)
    except OSError as exc:
        return f"Failed to kill {pid} (errno {exc.errno}). {CONTINUE}"
    return f"Sent SIGTERM to {pid}. {CONTINUE}"


class MonitorController:
    """
    Finite-state controller driving one monitor session.

    The terminal calls step() once per poll interval. Sampling and rendering
    happen inside the step that enters them, so a key that changes what is
    shown is reflected on screen within one poll.
    """

    def __init__(
        self,
        monitor: SystemMonitor,
        terminal: TerminalIO,
        signaler: Signaler,
        config: MonitorConfig | None = None,
    ) -> None:
        """Initialize the controller and prime the session from ``monitor``."""
        self._monitor = monitor
        self._terminal = terminal
        self._signaler = signaler
        self._config = config or MonitorConfig()
        self._state = monitor.prime()
        self._phase = Phase.SAMPLING
        self._polls = 0
        self._tick: Tick | None = None
        self._handlers: dict[Phase, Callable[[], Phase]] = {
            Phase.SAMPLING: self._sample,
            Phase.RENDERING: self._render,
            Phase.SLEEPING: self._sleep,
            Phase.KILL_PROMPT: self._kill_prompt,
            Phase.KILL_RESULT: self._kill_result,
            Phase.STOPPED: lambda: Phase.STOPPED,
        }

    @property
    def phase(self) -> Phase:
        """Get the phase the loop is waiting in."""
        return self._phase

    @property
    def state(self) -> SessionState:
        """Get the session state."""
        return self._state

    @property
    def last_tick(self) -> Tick | None:
        """Get the most recently sampled tick."""
        return self._tick

    @property
    def stopped(self) -> bool:
        """Check if the operator has quit."""
        return self._phase is Phase.STOPPED

    def step(self) -> Phase:
        """Advance the loop by one poll and return the phase it waits in."""
        self._phase = self._handlers[self._phase]()
        while self._phase in (Phase.SAMPLING, Phase.RENDERING):
            self._phase = self._handlers[self._phase]()
        return self._phase

    def _sample(self) -> Phase:
        """Handle a pending key, then sample and install a new tick."""
        key = self._terminal.read_key()
        if key in QUIT_KEYS:
            return Phase.STOPPED
        if key in SORT_KEYS:
            self._state.toggle_sort()
        elif key in KILL_KEYS:
            self._state.kill_prompt = True
            # Type-ahead must not dismiss the result of the prompt.
            while self._terminal.read_key() is not None:
                pass
            self._terminal.begin_prompt(KILL_PROMPT)
            return Phase.KILL_PROMPT

        self._tick = self._monitor.sample(self._state)
        self._state.install(self._tick)
        return Phase.RENDERING

    def _render(self) -> Phase:
        """Draw the current tick and start sleeping."""
        frame = render(
            self._tick,
            self._state.sort_key,
            self._terminal.height,
            self._config.refresh_interval,
        )
        self._terminal.draw(frame)
        self._polls = 0
        return Phase.SLEEPING

    def _sleep(self) -> Phase:
        """Count one poll and react to at most one key."""
        self._polls += 1
        key = self._terminal.read_key()
        if key in QUIT_KEYS:
            return Phase.STOPPED
        if key in SORT_KEYS:
            self._state.toggle_sort()
            return Phase.SAMPLING
        if key in KILL_KEYS:
            self._terminal.unread_key(key)
            return Phase.SAMPLING
        if key in REFRESH_KEYS:
            return Phase.SAMPLING
        if self._polls >= self._config.polls_per_refresh:
            return Phase.SAMPLING
        return Phase.SLEEPING

    def _kill_prompt(self) -> Phase:
        """Wait for the PID line, then signal and report."""
        line = self._terminal.read_line()
        if line is None:
            return Phase.KILL_PROMPT
        message = kill_message(line[: self._config.prompt_max_length], self._signaler)
        logger.info("Kill prompt %r: %s", line, message)
        self._terminal.show_message(message)
        return Phase.KILL_RESULT

    def _kill_result(self) -> Phase:
        """Wait for any key, then leave the prompt."""
        if self._terminal.read_key() is None:
            return Phase.KILL_RESULT
        self._terminal.end_prompt()
        self._state.kill_prompt = False
        return Phase.SAMPLING
