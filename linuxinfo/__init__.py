"""
linux-info: collect Linux statistics from procfs.

Disk I/O counters are turned into per-second rates by comparing snapshots
against a baseline; load averages and kernel release information are read
directly.

    from linuxinfo import DiskStats

    stats = DiskStats()
    stats.initialize()
    time.sleep(1)
    rates = stats.collect()
"""

VERSION = "0.1.0"
__version__ = VERSION

from linuxinfo.config import CollectorConfig, ProcFiles, load_config
from linuxinfo.diskstats import DeviceRates, DeviceStat, DiskStats
from linuxinfo.errors import (
    ConfigurationError,
    ErrorCode,
    InvalidCounterValueError,
    KernelReleaseValidationError,
    LinuxInfoException,
    ParseFailureError,
    SchemaMismatchError,
    SourceUnavailableError,
)
from linuxinfo.kernel_release import (
    KernelReleaseDescriptor,
    KernelVariant,
    parse_kernel_release,
    read_kernel_release,
)
from linuxinfo.loadavg import LoadAVG, LoadAverage
from linuxinfo.snapshot import Snapshot, SnapshotStore

__all__ = [
    'VERSION',
    # Configuration
    'CollectorConfig',
    'ProcFiles',
    'load_config',
    # Collectors
    'DiskStats',
    'DeviceStat',
    'DeviceRates',
    'LoadAVG',
    'LoadAverage',
    'KernelReleaseDescriptor',
    'KernelVariant',
    'parse_kernel_release',
    'read_kernel_release',
    'Snapshot',
    'SnapshotStore',
    # Errors
    'LinuxInfoException',
    'ErrorCode',
    'ConfigurationError',
    'SourceUnavailableError',
    'ParseFailureError',
    'SchemaMismatchError',
    'InvalidCounterValueError',
    'KernelReleaseValidationError',
]
