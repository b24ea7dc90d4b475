"""Compiled-in settings for pysysmon."""

from dataclasses import dataclass
from pathlib import Path

REFRESH_INTERVAL = 2.0  # seconds
POLL_INTERVAL = 0.1  # seconds
PROC_ROOT = Path("/proc")
PROMPT_MAX_LENGTH = 31


@dataclass(slots=True, frozen=True)
class MonitorConfig:
    """Settings for one monitor session.

    There are no configuration files or flags; the defaults are the
    program's behaviour and tests construct their own instances.
    """

    refresh_interval: float = REFRESH_INTERVAL
    poll_interval: float = POLL_INTERVAL
    proc_root: Path = PROC_ROOT
    prompt_max_length: int = PROMPT_MAX_LENGTH

    @property
    def polls_per_refresh(self) -> int:
        """Number of input polls that make up one refresh interval."""
        return max(1, round(self.refresh_interval / self.poll_interval))
