"""Access to the kernel's /proc virtual filesystem."""

import os
import pwd
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from pysysmon.config import PROC_ROOT


@dataclass(slots=True, frozen=True)
class ProcessFiles:
    """Raw contents of the pseudo-files describing one process."""

    cmdline: bytes
    stat_line: str
    status_lines: list[str]
    comm: str = ""  # only read when cmdline is empty


@lru_cache(maxsize=1024)
def _lookup_user(uid: int) -> str:
    """Look up a user name, falling back to the decimal uid."""
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return str(uid)


class ProcFS:
    """
    Reader for /proc (or a directory laid out like it).

    All reads raise OSError when the file is missing or unreadable. For
    per-process files this usually means the process exited between the
    directory scan and the read; callers drop such processes.
    """

    def __init__(self, root: Path | str = PROC_ROOT) -> None:
        """Initialize ProcFS."""
        self._root = Path(root)

    def _read_text(self, *parts: str) -> str:
        """Read a text file below the root."""
        return self._root.joinpath(*parts).read_text(encoding="utf-8", errors="replace")

    def read_aggregate_cpu_line(self) -> str:
        """Return the first line of <root>/stat."""
        with self._root.joinpath("stat").open(encoding="utf-8", errors="replace") as f:
            return f.readline()

    def read_memory_summary(self) -> str:
        """Return the text of <root>/meminfo."""
        return self._read_text("meminfo")

    def list_process_ids(self) -> set[int]:
        """Return the pids of all numeric directories under the root."""
        pids: set[int] = set()
        with os.scandir(self._root) as entries:
            for entry in entries:
                if not entry.name.isdigit():
                    continue
                try:
                    if not entry.is_dir():
                        continue
                except OSError:
                    continue  # vanished while scanning
                pid = int(entry.name)
                if pid > 0:
                    pids.add(pid)
        return pids

    def read_process_files(self, pid: int) -> ProcessFiles:
        """Read cmdline, stat and status for ``pid`` (and comm as a fallback)."""
        base = str(pid)
        cmdline = self._root.joinpath(base, "cmdline").read_bytes()
        stat_line = self._read_text(base, "stat").strip()
        status_lines = self._read_text(base, "status").splitlines()
        comm = ""
        if not cmdline.strip(b"\0"):
            try:
                comm = self._read_text(base, "comm").strip()
            except OSError:
                comm = ""  # the parser falls back to the name in stat
        return ProcessFiles(
            cmdline=cmdline,
            stat_line=stat_line,
            status_lines=status_lines,
            comm=comm,
        )

    def user_name(self, uid: int) -> str:
        """Resolve a uid to a user name, or its decimal form when unknown."""
        return _lookup_user(uid)
