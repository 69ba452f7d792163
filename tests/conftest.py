"""
Shared pytest fixtures for linux-info tests.

These fixtures provide fake proc trees, loggers and a controllable clock so
collectors can be tested without touching the real /proc.
"""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from linuxinfo.config import CollectorConfig, ProcFiles
from tests.fixtures.mock_logger import MockLogger
from tests.fixtures.sample_data import SAMPLE_DISKSTATS_14


# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def proc_root(tmp_path) -> Path:
    """Return an empty directory used as the proc root."""
    root = tmp_path / "proc"
    root.mkdir()
    return root


@pytest.fixture
def write_proc(proc_root):
    """
    Write files into the fake proc root.

    Usage:
        def test_something(write_proc):
            write_proc(diskstats="   8 0 sda ...")
    """
    def _write(**files: str) -> Path:
        for name, content in files.items():
            (proc_root / name).write_text(content)
        return proc_root
    return _write


@pytest.fixture
def proc_files(proc_root) -> ProcFiles:
    """ProcFiles pointing at the fake proc root."""
    return ProcFiles(path=str(proc_root))


@pytest.fixture
def collector_config(proc_files) -> CollectorConfig:
    """Default configuration reading from the fake proc root."""
    return CollectorConfig(files=proc_files)


@pytest.fixture
def diskstats_root(write_proc):
    """Fake proc root holding a 14-field diskstats file."""
    return write_proc(diskstats=SAMPLE_DISKSTATS_14)


# =============================================================================
# Clock Fixtures
# =============================================================================

class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Logger Fixtures
# =============================================================================

@pytest.fixture
def mock_logger():
    """
    Create a mock logger that captures all log calls.

    Usage:
        def test_something(mock_logger):
            some_function(logger=mock_logger)
            mock_logger.debug.assert_called()
    """
    logger = MagicMock()
    for level in MockLogger.LOG_LEVELS:
        setattr(logger, level, MagicMock())
    return logger


@pytest.fixture
def capturing_logger() -> MockLogger:
    """A MockLogger that records messages per level."""
    return MockLogger()
