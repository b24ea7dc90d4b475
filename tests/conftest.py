"""Shared fixtures: a fake /proc tree and test doubles."""

import signal
from pathlib import Path

import pytest

from pysysmon.view import Frame

PAGE_SIZE = 4096


def stat_line(pid: int, comm: str, utime: int, stime: int, rss_pages: int) -> str:
    """Build a /proc/<pid>/stat line with the given counters."""
    return (
        f"{pid} ({comm}) S 1 {pid} {pid} 0 -1 4194560 100 0 0 0 "
        f"{utime} {stime} 0 0 20 0 1 0 12345 1000000 {rss_pages} "
        "18446744073709551615 1 1 0 0 0 0 0 0 0 0 0 0 17 0 0 0 0 0 0"
    )


class FakeProc:
    """Writes files laid out like /proc under a temporary directory."""

    def __init__(self, root: Path) -> None:
        """Use ``root`` as the fake /proc."""
        self.root = root

    def set_cpu(self, *counters: int) -> None:
        """Write /proc/stat with the given aggregate counters."""
        values = " ".join(str(c) for c in counters)
        (self.root / "stat").write_text(
            f"cpu  {values}\ncpu0 {values}\nintr 0\nctxt 0\nbtime 0\n"
        )

    def set_memory(self, total: int, available: int | None, free: int) -> None:
        """Write /proc/meminfo; ``available=None`` omits MemAvailable."""
        lines = [f"MemTotal:       {total} kB", f"MemFree:        {free} kB"]
        if available is not None:
            lines.append(f"MemAvailable:   {available} kB")
        lines.append("Buffers:          1024 kB")
        (self.root / "meminfo").write_text("\n".join(lines) + "\n")

    def add_process(
        self,
        pid: int,
        *,
        comm: str = "proc",
        utime: int = 0,
        stime: int = 0,
        rss_kib: int = 0,
        uid: int = 0,
        cmdline: bytes = b"",
    ) -> None:
        """Create or overwrite the files of one process."""
        base = self.root / str(pid)
        base.mkdir(exist_ok=True)
        rss_pages = rss_kib * 1024 // PAGE_SIZE
        stat = stat_line(pid, comm, utime, stime, rss_pages)
        (base / "stat").write_text(stat + "\n", encoding="utf-8")
        (base / "status").write_text(
            f"Name:\t{comm}\nState:\tS (sleeping)\nPid:\t{pid}\n"
            f"Uid:\t{uid}\t{uid}\t{uid}\t{uid}\nGid:\t0\t0\t0\t0\n",
            encoding="utf-8",
        )
        (base / "cmdline").write_bytes(cmdline)
        (base / "comm").write_text(comm + "\n", encoding="utf-8")

    def remove_process(self, pid: int) -> None:
        """Delete a process directory, as if it exited."""
        base = self.root / str(pid)
        for child in base.iterdir():
            child.unlink()
        base.rmdir()


@pytest.fixture
def fake_proc(tmp_path: Path) -> FakeProc:
    """A minimal /proc with idle counters, 1 GB of memory and no processes."""
    proc = FakeProc(tmp_path)
    proc.set_cpu(100, 0, 0, 900, 0, 0, 0, 0, 0, 0)
    proc.set_memory(1_000_000, 600_000, 200_000)
    (tmp_path / "self").mkdir()
    (tmp_path / "sys").mkdir()
    return proc


class FakeSignaler:
    """Records signal requests and optionally fails them with an errno."""

    def __init__(self, errno: int | None = None) -> None:
        """Fail every send with ``errno`` when it is set."""
        self.errno = errno
        self.calls: list[tuple[int, signal.Signals]] = []

    def send(self, pid: int, sig: signal.Signals) -> None:
        """Record the request and fail if an errno was configured."""
        self.calls.append((pid, sig))
        if self.errno is not None:
            raise OSError(self.errno, "failed")


class FakeTerminal:
    """Scripted terminal: keys and prompt lines are fed in by the test."""

    def __init__(self, height: int = 24) -> None:
        """Start with no keys, lines, frames or messages."""
        self.height = height
        self.keys: list[str] = []
        self.lines: list[str] = []
        self.frames: list[Frame] = []
        self.messages: list[str] = []
        self.prompt: str | None = None
        self.prompt_ended = 0

    def press(self, *keys: str) -> None:
        """Queue key presses."""
        self.keys.extend(keys)

    def read_key(self) -> str | None:
        """Pop the oldest queued key."""
        return self.keys.pop(0) if self.keys else None

    def unread_key(self, key: str) -> None:
        """Put a key back at the front."""
        self.keys.insert(0, key)

    def draw(self, frame: Frame) -> None:
        """Record the frame."""
        self.frames.append(frame)

    def begin_prompt(self, label: str) -> None:
        """Record the prompt label."""
        self.prompt = label

    def read_line(self) -> str | None:
        """Pop the next scripted prompt line."""
        return self.lines.pop(0) if self.lines else None

    def show_message(self, text: str) -> None:
        """Record the message."""
        self.messages.append(text)

    def end_prompt(self) -> None:
        """Clear the prompt and count the call."""
        self.prompt = None
        self.prompt_ended += 1


@pytest.fixture
def terminal() -> FakeTerminal:
    """A 24-line scripted terminal."""
    return FakeTerminal()


@pytest.fixture
def signaler() -> FakeSignaler:
    """A signaler that always succeeds."""
    return FakeSignaler()
