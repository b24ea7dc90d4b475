"""Sampling and delta accounting for pysysmon."""

import logging
import os

from pysysmon.models import (
    CpuSnapshot,
    MemorySummary,
    ProcessRecord,
    ProcessRow,
    SessionState,
    Tick,
)
from pysysmon.parser import (
    MalformedField,
    parse_cmdline,
    parse_cpu_line,
    parse_meminfo,
    parse_stat,
    parse_status_uid,
)
from pysysmon.procfs import ProcFS

logger = logging.getLogger(__name__)


def cpu_deltas(prev: CpuSnapshot | None, cur: CpuSnapshot | None) -> tuple[int, int]:
    """
    Return ``(tot_diff, idle_diff)`` between two aggregate CPU snapshots.

    A missing snapshot or counters that went backwards give a zero total so
    that every percentage derived from it is zero for the tick.
    """
    if prev is None or cur is None:
        return 0, 0
    tot_diff = cur.total - prev.total
    if tot_diff <= 0:
        return 0, 0
    return tot_diff, cur.idle_all - prev.idle_all


def system_cpu_percent(prev: CpuSnapshot | None, cur: CpuSnapshot | None) -> float:
    """Busy share of all CPU time between two snapshots, 0.0 - 100.0."""
    tot_diff, idle_diff = cpu_deltas(prev, cur)
    if tot_diff <= 0:
        return 0.0
    percent = 100.0 * (tot_diff - idle_diff) / tot_diff
    return min(100.0, max(0.0, percent))


def derive_rows(
    previous: dict[int, ProcessRecord],
    records: list[ProcessRecord],
    tot_diff: int,
    mem_total_kib: int,
) -> tuple[list[ProcessRow], dict[int, ProcessRecord]]:
    """
    Compute per-process percentages against the previous sample.

    Returns the derived rows and the mapping to keep for the next tick. The
    mapping is built from ``records`` alone, so pids that vanished since the
    previous sample are dropped.
    """
    rows: list[ProcessRow] = []
    current: dict[int, ProcessRecord] = {}
    for record in records:
        before = previous.get(record.pid)
        proc_diff = 0
        if before is not None and record.total_time >= before.total_time:
            proc_diff = record.total_time - before.total_time

        cpu_percent = 100.0 * proc_diff / tot_diff if tot_diff > 0 else 0.0
        mem_percent = 100.0 * record.rss_kib / mem_total_kib if mem_total_kib > 0 else 0.0

        rows.append(ProcessRow.from_record(record, cpu_percent, mem_percent))
        current[record.pid] = record
    return rows, current


def advance(
    state: SessionState,
    cur_cpu: CpuSnapshot | None,
    records: list[ProcessRecord],
    memory: MemorySummary,
) -> Tick:
    """Derive one tick from the session's previous sample and a new one."""
    tot_diff, _ = cpu_deltas(state.cpu, cur_cpu)
    rows, processes = derive_rows(state.processes, records, tot_diff, state.mem_total_kib)
    return Tick(
        cpu_percent=system_cpu_percent(state.cpu, cur_cpu),
        memory=memory,
        rows=rows,
        cpu=cur_cpu,
        processes=processes,
    )


class SystemMonitor:
    """
    System monitor that samples CPU, memory and processes from /proc.

    Failed reads never propagate: a process whose files vanish or do not
    parse is left out of the tick, and a failed system-wide read shows up
    as zeros.
    """

    def __init__(self, source: ProcFS, page_size: int | None = None) -> None:
        """
        Initialize the SystemMonitor.

        Args:
            source: Reader for the /proc tree.
            page_size: Memory page size in bytes. Defaults to the system's.
        """
        self._source = source
        self._page_size = page_size or os.sysconf("SC_PAGE_SIZE")

    def prime(self) -> SessionState:
        """Capture total memory and the first CPU snapshot for a new session."""
        total = self.read_memory().total
        return SessionState(cpu=self.read_cpu(), mem_total_kib=total)

    def read_cpu(self) -> CpuSnapshot | None:
        """Read the aggregate CPU counters, or None when /proc/stat fails."""
        try:
            return parse_cpu_line(self._source.read_aggregate_cpu_line())
        except (OSError, MalformedField) as exc:
            logger.warning("Cannot read aggregate CPU counters: %s", exc)
            return None

    def read_memory(self, total: int | None = None) -> MemorySummary:
        """Read /proc/meminfo; on failure report nothing used."""
        try:
            return parse_meminfo(self._source.read_memory_summary(), total=total)
        except (OSError, MalformedField) as exc:
            logger.warning("Cannot read memory summary: %s", exc)
            total = total or 0
            return MemorySummary(total=total, available=None, free=total)

    def read_process(self, pid: int) -> ProcessRecord:
        """
        Read and parse one process.

        Raises:
            OSError: the process is gone or its files are unreadable.
            MalformedField: one of its files did not parse.
        """
        files = self._source.read_process_files(pid)
        stat = parse_stat(files.stat_line, self._page_size)
        uid = parse_status_uid(files.status_lines)
        return ProcessRecord(
            pid=pid,
            user=self._source.user_name(uid),
            command=parse_cmdline(files.cmdline, files.comm or stat.comm),
            utime=stat.utime,
            stime=stat.stime,
            rss_kib=stat.rss_kib,
        )

    def collect_processes(self) -> list[ProcessRecord]:
        """Read every live process, skipping those that vanish mid-scan."""
        try:
            pids = self._source.list_process_ids()
        except OSError as exc:
            logger.warning("Cannot list processes: %s", exc)
            return []

        records: list[ProcessRecord] = []
        for pid in sorted(pids):
            try:
                records.append(self.read_process(pid))
            except (OSError, MalformedField) as exc:
                logger.debug("Skipping pid %d: %s", pid, exc)
                continue
        return records

    def sample(self, state: SessionState) -> Tick:
        """Take a full sample and derive it against ``state``.

        ``state`` is not modified; the caller installs the returned tick.
        """
        cur_cpu = self.read_cpu()
        memory = self.read_memory(total=state.mem_total_kib)
        records = self.collect_processes()
        return advance(state, cur_cpu, records, memory)
