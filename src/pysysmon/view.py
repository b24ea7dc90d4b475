"""Ranking and fixed-width formatting of the process table."""

from dataclasses import dataclass

from pysysmon.models import ProcessRow, SortKey, Tick

# Title, summary and column header at the top; command line and a blank
# line at the bottom.
RESERVED_LINES = 5

HEADER = "PID     USER       %CPU   %MEM   RSS(kB)   CMD"
HELP = "Commands: (s) toggle sort  (k) kill PID  (r) refresh  (q) quit"
COMMAND_WIDTH = 40


@dataclass(slots=True, frozen=True)
class Frame:
    """One full screen of output."""

    title: str
    summary: str
    header: str
    rows: list[str]
    help: str

    def body_lines(self) -> list[str]:
        """Lines drawn above the command line, top to bottom."""
        return [self.title, self.summary, self.header, *self.rows]


def _sort_key_func(key: SortKey):
    """Return the sort key function for ``key``."""
    if key is SortKey.CPU:
        return lambda row: (-row.cpu_percent, -row.mem_percent, row.pid)
    return lambda row: (-row.mem_percent, -row.cpu_percent, row.pid)


def sort_rows(rows: list[ProcessRow], key: SortKey) -> list[ProcessRow]:
    """Sort rows descending by ``key``, then by the other percentage, then pid."""
    return sorted(rows, key=_sort_key_func(key))


def max_rows(height: int) -> int:
    """Number of process rows that fit a terminal of ``height`` lines."""
    return height - RESERVED_LINES


def visible_rows(rows: list[ProcessRow], key: SortKey, height: int) -> list[ProcessRow]:
    """Return the sorted rows that fit a terminal of ``height`` lines."""
    limit = max_rows(height)
    if limit <= 0:
        return []
    return sort_rows(rows, key)[:limit]


def format_row(row: ProcessRow) -> str:
    """Format a process row into fixed-width columns."""
    return (
        f"{row.pid:<7d} {row.user:<10.10} {row.cpu_percent:6.2f} "
        f"{row.mem_percent:7.2f} {row.rss_kib:10d}  {row.command:.{COMMAND_WIDTH}}"
    )


def format_title(key: SortKey, refresh_interval: float) -> str:
    """Title line showing the refresh interval and sort key."""
    return (
        f"pysysmon - simple system monitor (press q to quit)   "
        f"Refresh: {refresh_interval:g}s   Sort: {key.value.upper()}"
    )


def format_summary(tick: Tick) -> str:
    """Summary line with system CPU and memory usage."""
    return (
        f"CPU Usage: {tick.cpu_percent:.2f}%   "
        f"Mem: {tick.memory.total} kB total   "
        f"Used: {tick.memory.used} kB (approx)"
    )


def render(tick: Tick, key: SortKey, height: int, refresh_interval: float) -> Frame:
    """Build the frame for ``tick`` on a terminal ``height`` lines tall."""
    return Frame(
        title=format_title(key, refresh_interval),
        summary=format_summary(tick),
        header=HEADER,
        rows=[format_row(row) for row in visible_rows(tick.rows, key, height)],
        help=HELP,
    )
