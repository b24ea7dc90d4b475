"""Tests for psutil-backed signal delivery."""

import errno
import signal
from unittest import mock

import psutil
import pytest

from pysysmon.signals import PsutilSignaler


def test_send_signal_to_process():
    """Test the signal is sent through psutil.Process."""
    with mock.patch("pysysmon.signals.psutil.Process") as process:
        PsutilSignaler().send(1234, signal.SIGTERM)
    process.assert_called_once_with(1234)
    process.return_value.send_signal.assert_called_once_with(signal.SIGTERM)


def test_missing_process_is_esrch():
    """Test NoSuchProcess becomes ESRCH."""
    with mock.patch("pysysmon.signals.psutil.Process", side_effect=psutil.NoSuchProcess(99999)):
        with pytest.raises(OSError) as excinfo:
            PsutilSignaler().send(99999, signal.SIGTERM)
    assert excinfo.value.errno == errno.ESRCH


def test_access_denied_is_eperm():
    """Test AccessDenied becomes EPERM."""
    with mock.patch("pysysmon.signals.psutil.Process") as process:
        process.return_value.send_signal.side_effect = psutil.AccessDenied(1)
        with pytest.raises(OSError) as excinfo:
            PsutilSignaler().send(1, signal.SIGTERM)
    assert excinfo.value.errno == errno.EPERM


def test_out_of_range_pid_is_esrch():
    """Test a pid the kernel cannot hold becomes ESRCH."""
    with mock.patch("pysysmon.signals.psutil.Process", side_effect=OverflowError):
        with pytest.raises(OSError) as excinfo:
            PsutilSignaler().send(2**80, signal.SIGTERM)
    assert excinfo.value.errno == errno.ESRCH
