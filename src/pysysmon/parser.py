"""Parsers for the /proc pseudo-files used by pysysmon.

Each parser takes raw text (or bytes) and returns a typed record. A missing
or non-numeric required token raises MalformedField so the caller can drop
the affected process (or show zeros for a system figure) for one tick.
"""

from dataclasses import dataclass

from pysysmon.models import CpuSnapshot, MemorySummary

CPU_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)

# 1-based field numbers from proc(5), counted from the pid.
STAT_UTIME = 14
STAT_STIME = 15
STAT_RSS = 24
# Fields after the command start at field 3 (state).
_STAT_TAIL_START = 3


class MalformedField(ValueError):
    """A required field in a /proc file is missing or unparseable."""

    def __init__(self, source: str, field: str, value: str | None = None) -> None:
        """Record where the bad field was found."""
        self.source = source
        self.field = field
        self.value = value
        if value is None:
            message = f"{source}: missing field {field!r}"
        else:
            message = f"{source}: bad value {value!r} for field {field!r}"
        super().__init__(message)


@dataclass(slots=True, frozen=True)
class StatFields:
    """The parts of /proc/<pid>/stat that pysysmon uses."""

    comm: str
    utime: int
    stime: int
    rss_kib: int


def _to_int(source: str, field: str, token: str) -> int:
    """Convert ``token`` or raise MalformedField."""
    try:
        return int(token)
    except ValueError:
        raise MalformedField(source, field, token) from None


def parse_cpu_line(line: str) -> CpuSnapshot:
    """Parse the aggregate ``cpu`` line of /proc/stat.

    Older kernels publish fewer than ten counters; the missing trailing
    ones are zero.
    """
    tokens = line.split()
    if not tokens or tokens[0] != "cpu":
        raise MalformedField("stat", "cpu", tokens[0] if tokens else None)
    values = {
        name: _to_int("stat", name, token)
        for name, token in zip(CPU_FIELDS, tokens[1:])
    }
    return CpuSnapshot(**values)


def parse_meminfo(text: str, total: int | None = None) -> MemorySummary:
    """Parse /proc/meminfo.

    Only MemTotal, MemAvailable and MemFree are read. ``total``, when given,
    replaces the parsed MemTotal: it is captured once at startup.
    """
    wanted = {"MemTotal": None, "MemAvailable": None, "MemFree": None}
    for line in text.splitlines():
        key, sep, rest = line.partition(":")
        if not sep or key not in wanted:
            continue
        parts = rest.split()
        if not parts:
            raise MalformedField("meminfo", key)
        wanted[key] = _to_int("meminfo", key, parts[0])

    mem_total = total if total is not None else wanted["MemTotal"] or 0
    return MemorySummary(
        total=mem_total,
        available=wanted["MemAvailable"],
        free=wanted["MemFree"] or 0,
    )


def parse_stat(line: str, page_size: int) -> StatFields:
    """Parse /proc/<pid>/stat.

    The command (field 2) is wrapped in parentheses and may itself contain
    spaces and ``)``, so it runs to the last ``)`` on the line and the
    remaining fields are split from there.
    """
    open_paren = line.find("(")
    close_paren = line.rfind(")")
    if open_paren < 0 or close_paren < open_paren:
        raise MalformedField("pid/stat", "comm")
    comm = line[open_paren + 1 : close_paren]
    tail = line[close_paren + 1 :].split()

    def field(number: int, name: str) -> int:
        """Return the integer stat field with 1-based ``number``."""
        index = number - _STAT_TAIL_START
        if index >= len(tail):
            raise MalformedField("pid/stat", name)
        return _to_int("pid/stat", name, tail[index])

    utime = field(STAT_UTIME, "utime")
    stime = field(STAT_STIME, "stime")
    rss_pages = max(0, field(STAT_RSS, "rss"))
    return StatFields(
        comm=comm,
        utime=utime,
        stime=stime,
        rss_kib=rss_pages * page_size // 1024,
    )


def parse_status_uid(lines: list[str]) -> int:
    """Return the real uid from the ``Uid:`` line of /proc/<pid>/status."""
    for line in lines:
        if line.startswith("Uid:"):
            parts = line[len("Uid:") :].split()
            if not parts:
                raise MalformedField("pid/status", "Uid")
            return _to_int("pid/status", "Uid", parts[0])
    raise MalformedField("pid/status", "Uid")


def parse_cmdline(data: bytes, fallback: str = "") -> str:
    """Turn NUL-separated argv into a display string.

    Trailing NULs are dropped and each remaining NUL becomes a space. An
    empty command line (kernel threads, zombies) yields ``fallback``.
    """
    command = data.rstrip(b"\0").replace(b"\0", b" ").decode("utf-8", errors="replace")
    if not command:
        return fallback.strip()
    return command
