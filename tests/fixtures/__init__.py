"""
Test fixtures package for linux-info tests.

This package provides a capturing logger and sample procfs data
for testing parsers, the delta engine and collectors.
"""

from tests.fixtures.mock_logger import MockLogger
from tests.fixtures.sample_data import (
    SAMPLE_DISKSTATS,
    SAMPLE_DISKSTATS_14,
    SAMPLE_PARTITIONS_LEGACY,
    SAMPLE_LOADAVG,
    SAMPLE_VERSION_UBUNTU,
    SAMPLE_VERSION_ALPINE,
)

__all__ = [
    'MockLogger',
    # Sample data
    'SAMPLE_DISKSTATS',
    'SAMPLE_DISKSTATS_14',
    'SAMPLE_PARTITIONS_LEGACY',
    'SAMPLE_LOADAVG',
    'SAMPLE_VERSION_UBUNTU',
    'SAMPLE_VERSION_ALPINE',
]
