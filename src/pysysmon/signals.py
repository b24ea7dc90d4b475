"""Signal delivery to other processes."""

import errno
import logging
import os
import signal
from typing import Protocol

import psutil

logger = logging.getLogger(__name__)


class Signaler(Protocol):
    """Anything that can deliver a signal to a pid.

    Implementations raise OSError with ``errno`` set when delivery fails.
    """

    def send(self, pid: int, sig: signal.Signals) -> None: ...


def _os_error(code: int) -> OSError:
    """Build an OSError for ``code`` with the system message."""
    return OSError(code, os.strerror(code))


class PsutilSignaler:
    """Signaler backed by psutil."""

    def send(self, pid: int, sig: signal.Signals) -> None:
        """Send ``sig`` to ``pid``.

        Raises:
            OSError: ESRCH when the process does not exist, EPERM when the
                caller may not signal it.
        """
        try:
            psutil.Process(pid).send_signal(sig)
        except psutil.NoSuchProcess as exc:
            raise _os_error(errno.ESRCH) from exc
        except psutil.AccessDenied as exc:
            raise _os_error(errno.EPERM) from exc
        except (OverflowError, ValueError) as exc:
            # pid outside the range the kernel can hold
            raise _os_error(errno.ESRCH) from exc
        logger.info("Sent %s to %d", sig.name, pid)
