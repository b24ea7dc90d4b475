"""pysysmon - Main Textual application."""

import logging
from collections import deque

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.containers import Horizontal
from textual.logging import TextualHandler
from textual.widgets import Input, Static

from pysysmon.config import MonitorConfig
from pysysmon.controller import MonitorController, Phase
from pysysmon.monitor import SystemMonitor
from pysysmon.procfs import ProcFS
from pysysmon.signals import PsutilSignaler, Signaler
from pysysmon.view import HELP, Frame

logger = logging.getLogger(__name__)


class TextualTerminal:
    """
    The controller's view of the screen, backed by a SysmonApp.

    Keys pressed outside the kill prompt are queued here and read one at a
    time; while the prompt is open the Input widget owns the keyboard.
    """

    def __init__(self, app: "SysmonApp") -> None:
        """Initialize TextualTerminal."""
        self._app = app
        self._keys: deque[str] = deque()
        self._line: str | None = None
        self.line_mode = False
        self.last_frame: Frame | None = None

    def push_key(self, key: str) -> None:
        """Queue a key press unless the prompt is taking line input."""
        if not self.line_mode:
            self._keys.append(key)

    def submit_line(self, line: str) -> None:
        """Store the line submitted from the prompt."""
        self._line = line

    @property
    def height(self) -> int:
        """Get the terminal height in lines."""
        return self._app.size.height

    def read_key(self) -> str | None:
        """Pop the oldest queued key, or None when the queue is empty."""
        try:
            return self._keys.popleft()
        except IndexError:
            return None

    def unread_key(self, key: str) -> None:
        """Put a key back at the front of the queue."""
        self._keys.appendleft(key)

    def draw(self, frame: Frame) -> None:
        """Replace the body with ``frame``, title in bold."""
        self.last_frame = frame
        text = Text(no_wrap=True, overflow="crop")
        text.append(frame.title, style="bold")
        for line in frame.body_lines()[1:]:
            text.append("\n")
            text.append(line)
        self._app.query_one("#body", Static).update(text)
        self._app.query_one("#command-line", Static).update(frame.help)

    def begin_prompt(self, label: str) -> None:
        """Show ``label`` on the command line and focus the PID input."""
        self._line = None
        self.line_mode = True
        self._app.query_one("#command-line", Static).update(label)
        pid_input = self._app.query_one("#pid-input", Input)
        pid_input.value = ""
        pid_input.display = True
        pid_input.focus()

    def read_line(self) -> str | None:
        """Return the submitted line once, or None if nothing was submitted."""
        line, self._line = self._line, None
        return line

    def show_message(self, text: str) -> None:
        """Hide the PID input and show ``text`` in its place."""
        self._app.query_one("#pid-input", Input).display = False
        self._app.set_focus(None)
        self._app.query_one("#command-line", Static).update(text)
        self.line_mode = False

    def end_prompt(self) -> None:
        """Restore the help line."""
        self._app.query_one("#command-line", Static).update(HELP)


class SysmonApp(App):
    """Main pysysmon application."""

    TITLE = "pysysmon"
    ENABLE_COMMAND_PALETTE = False
    # The hidden PID input must not take the keyboard until the prompt opens.
    AUTO_FOCUS = None

    CSS = """
    Screen {
        layout: vertical;
    }

    #body {
        height: 1fr;
    }

    #command-row {
        height: 1;
    }

    #command-line {
        width: auto;
    }

    #pid-input {
        width: 1fr;
        height: 1;
        border: none;
        padding: 0;
        display: none;
    }

    #bottom-line {
        height: 1;
    }
    """

    def __init__(
        self,
        config: MonitorConfig | None = None,
        signaler: Signaler | None = None,
    ) -> None:
        """Initialize the SysmonApp."""
        super().__init__()
        self._config = config or MonitorConfig()
        self._terminal = TextualTerminal(self)
        self._controller = MonitorController(
            SystemMonitor(ProcFS(self._config.proc_root)),
            self._terminal,
            signaler or PsutilSignaler(),
            self._config,
        )

    @property
    def controller(self) -> MonitorController:
        """Get the controller driving this app."""
        return self._controller

    @property
    def terminal(self) -> TextualTerminal:
        """Get the terminal adapter the controller draws on."""
        return self._terminal

    def compose(self) -> ComposeResult:
        """Compose the screen: table body, command line, blank last line."""
        yield Static(id="body")
        with Horizontal(id="command-row"):
            yield Static(HELP, id="command-line")
            yield Input(id="pid-input", max_length=self._config.prompt_max_length)
        yield Static("", id="bottom-line")

    def on_mount(self) -> None:
        """Draw the first tick and start polling."""
        self._poll()
        self.set_interval(self._config.poll_interval, self._poll)

    def _poll(self) -> None:
        """Advance the controller by one poll and exit once it stops."""
        if self._controller.stopped:
            return
        if self._controller.step() is Phase.STOPPED:
            self.exit()

    def on_key(self, event: events.Key) -> None:
        """Hand key presses to the controller's input queue."""
        key = event.character if event.is_printable and event.character else event.key
        self._terminal.push_key(key)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Pass the submitted PID line to the controller."""
        self._terminal.submit_line(event.value)


def main(app: SysmonApp | None = None) -> int:
    """
    Entry point for pysysmon; returns the process exit status.

    Args:
        app: Application to run. Defaults to one monitoring /proc.
    """
    logging.basicConfig(level=logging.INFO, handlers=[TextualHandler()])
    try:
        if app is None:
            app = SysmonApp()
        app.run()
    except Exception:
        logger.exception("pysysmon could not run")
        return 1
    return app.return_code or 0


if __name__ == "__main__":
    raise SystemExit(main())
