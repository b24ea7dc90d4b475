"""Verification Test: Chaos Monkey - Random process termination resilience.

Processes are started and killed while the monitor scans the live /proc.
Sampling must never raise, and processes that exited must drop out of the
next tick.
"""

import multiprocessing
import random
import sys
import time

import pytest

from pysysmon.monitor import SystemMonitor
from pysysmon.procfs import ProcFS

pytestmark = pytest.mark.skipif(not sys.platform.startswith("linux"), reason="needs /proc")


def dummy_worker(duration: float = 60.0) -> None:
    """A dummy worker process that sleeps for a given duration."""
    try:
        time.sleep(duration)
    except (KeyboardInterrupt, SystemExit):
        pass


def stop_all(processes: list[multiprocessing.Process]) -> None:
    """Terminate and reap all dummy processes."""
    for p in processes:
        if p.is_alive():
            p.terminate()
    for p in processes:
        p.join(timeout=1.0)


class TestChaosMonkey:
    """Chaos Monkey verification suite tests."""

    def test_monitor_survives_process_termination(self):
        """
        Test that sampling doesn't fail when processes die between ticks.

        Half of the dummy processes are killed between two samples; the
        second tick must not contain any of them.
        """
        processes = []
        for _ in range(20):
            p = multiprocessing.Process(target=dummy_worker, args=(60.0,))
            p.start()
            processes.append(p)

        monitor = SystemMonitor(ProcFS())
        state = monitor.prime()

        try:
            tick = monitor.sample(state)
            state.install(tick)
            seen = {row.pid for row in tick.rows}
            assert {p.pid for p in processes} <= seen

            killed = random.sample(processes, 10)
            for p in killed:
                p.terminate()
            for p in killed:
                p.join(timeout=2.0)

            tick = monitor.sample(state)
            state.install(tick)
            pids = {row.pid for row in tick.rows}
            assert not pids & {p.pid for p in killed}
            assert set(state.processes) == pids
        finally:
            stop_all(processes)

    def test_rapid_process_creation_and_termination(self):
        """
        Test monitor stability during rapid process churn.

        Processes are created and destroyed while the monitor samples
        repeatedly, so some vanish in the middle of a scan.
        """
        monitor = SystemMonitor(ProcFS())
        state = monitor.prime()
        processes = []

        try:
            start_time = time.time()
            ticks = 0
            while time.time() - start_time < 2.0:
                for _ in range(3):
                    p = multiprocessing.Process(target=dummy_worker, args=(10.0,))
                    p.start()
                    processes.append(p)

                alive = [p for p in processes if p.is_alive()]
                if len(alive) > 6:
                    for p in random.sample(alive, 3):
                        p.terminate()

                tick = monitor.sample(state)
                state.install(tick)
                ticks += 1
                assert all(0.0 <= row.mem_percent <= 100.0 for row in tick.rows)
                assert 0.0 <= tick.cpu_percent <= 100.0

            assert ticks >= 3
        finally:
            stop_all(processes)

    def test_zombie_process_handling(self):
        """
        Test that an exited but unreaped child does not break sampling.

        Zombies have an empty command line, so the short name is shown.
        """
        p = multiprocessing.Process(target=dummy_worker, args=(0.0,))
        p.start()
        time.sleep(0.3)

        monitor = SystemMonitor(ProcFS())
        state = monitor.prime()
        try:
            tick = monitor.sample(state)
            zombie = [row for row in tick.rows if row.pid == p.pid]
            for row in zombie:
                assert row.command
        finally:
            p.join(timeout=1.0)
