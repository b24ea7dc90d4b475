"""Data models for pysysmon."""

from dataclasses import dataclass, field
from enum import Enum


class SortKey(Enum):
    """Sort keys for the process table."""

    CPU = "cpu"
    MEM = "mem"

    def toggled(self) -> "SortKey":
        """Return the other sort key."""
        return SortKey.MEM if self is SortKey.CPU else SortKey.CPU


@dataclass(slots=True, frozen=True)
class CpuSnapshot:
    """Aggregate CPU counters from the first line of /proc/stat, in clock ticks."""

    user: int = 0
    nice: int = 0
    system: int = 0
    idle: int = 0
    iowait: int = 0
    irq: int = 0
    softirq: int = 0
    steal: int = 0
    guest: int = 0
    guest_nice: int = 0

    @property
    def total(self) -> int:
        """Sum of all ten counters."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
            + self.guest
            + self.guest_nice
        )

    @property
    def idle_all(self) -> int:
        """Idle time including time waiting on I/O."""
        return self.idle + self.iowait


@dataclass(slots=True, frozen=True)
class MemorySummary:
    """Memory figures in kB. ``available`` is None on kernels without MemAvailable."""

    total: int
    available: int | None
    free: int

    @property
    def used(self) -> int:
        """Approximate used memory, never negative."""
        if self.available is not None:
            return max(0, self.total - self.available)
        return max(0, self.total - self.free)


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Raw per-process counters sampled on one tick."""

    pid: int
    user: str
    command: str
    utime: int  # jiffies
    stime: int  # jiffies
    rss_kib: int

    @property
    def total_time(self) -> int:
        """User plus kernel jiffies."""
        return self.utime + self.stime


@dataclass(slots=True, frozen=True)
class ProcessRow:
    """A process record with the percentages derived for one tick."""

    pid: int
    user: str
    command: str
    rss_kib: int
    cpu_percent: float
    mem_percent: float

    @classmethod
    def from_record(
        cls, record: ProcessRecord, cpu_percent: float, mem_percent: float
    ) -> "ProcessRow":
        """Attach the derived percentages to ``record``."""
        return cls(
            pid=record.pid,
            user=record.user,
            command=record.command,
            rss_kib=record.rss_kib,
            cpu_percent=cpu_percent,
            mem_percent=mem_percent,
        )


@dataclass(slots=True, frozen=True)
class Tick:
    """Everything derived from one sample.

    ``cpu`` and ``processes`` are what the session installs as its previous
    sample once the tick is complete.
    """

    cpu_percent: float
    memory: MemorySummary
    rows: list[ProcessRow]
    cpu: CpuSnapshot | None
    processes: dict[int, ProcessRecord]


@dataclass(slots=True)
class SessionState:
    """State carried across ticks by the interaction loop."""

    cpu: CpuSnapshot | None
    mem_total_kib: int
    processes: dict[int, ProcessRecord] = field(default_factory=dict)
    sort_key: SortKey = SortKey.CPU
    kill_prompt: bool = False

    def install(self, tick: Tick) -> None:
        """Replace the previous sample with the one from ``tick``."""
        if tick.cpu is not None:
            self.cpu = tick.cpu
        self.processes = tick.processes

    def toggle_sort(self) -> SortKey:
        """Flip the sort key and return the new one."""
        self.sort_key = self.sort_key.toggled()
        return self.sort_key
