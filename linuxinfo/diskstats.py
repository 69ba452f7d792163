"""
Disk I/O statistics from /proc/diskstats or /proc/partitions.

This module parses the kernel's per-device I/O counters and turns them into
per-second rates with the delta engine.

Statistics per device (rates in collect() output):
    major   - The major number of the disk
    minor   - The minor number of the disk
    rdreq   - Number of read requests that were made to physical disk per second
    rdbyt   - Number of bytes that were read from physical disk per second
    wrtreq  - Number of write requests that were made to physical disk per second
    wrtbyt  - Number of bytes that were written to physical disk per second
    ttreq   - Total number of requests were made from/to physical disk per second
    ttbyt   - Total number of bytes transmitted from/to physical disk per second

Recognized layouts (Documentation/admin-guide/iostats.rst):

    diskstats, 14 fields (2.6+), 18 (4.18+, discards), 20 (5.5+, flushes):
        major minor name F1 F2 F3 F4 F5 F6 F7 F8 F9 F10 F11 [F12..F17]
    diskstats, 7 fields (partition lines of early 2.6 kernels):
        major minor name F1 F2 F3 F4
    partitions, 15 fields (2.4 kernels with statistics):
        major minor #blocks name F1 .. F11
    partitions, 8 fields:
        major minor #blocks name F1 F2 F3 F4

In the 11 field layouts F1 is reads completed, F3 sectors read, F5 writes
completed and F7 sectors written. In the 4 field layouts they are F1 to F4.
"""

import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from linuxinfo.config import CollectorConfig, DEFAULT_BLOCK_SIZE, ProcFiles
from linuxinfo.deltas import check_counter, compute_deltas
from linuxinfo.errors import (
    ErrorCode,
    InvalidCounterValueError,
    ParseFailureError,
    SchemaMismatchError,
    SourceUnavailableError,
)
from linuxinfo.interfaces.collector import StatsCollectorInterface
from linuxinfo.linfo_logging import LinfoLogger, apply_logging_options
from linuxinfo.snapshot import Snapshot, SnapshotStore
from linuxinfo.sources import read_lines

IDENTITY_FIELDS = ('major', 'minor')

# Fields written to the persisted baseline. ttreq/ttbyt are derived on load.
PERSISTED_FIELDS = ('major', 'minor', 'rdreq', 'rdbyt', 'wrtreq', 'wrtbyt')

# Field count -> positions of (reads, sectors read, writes, sectors written)
DISKSTATS_LAYOUTS = {
    14: (3, 5, 7, 9),
    18: (3, 5, 7, 9),
    20: (3, 5, 7, 9),
    7: (3, 4, 5, 6),
}
PARTITIONS_LAYOUTS = {
    15: (4, 6, 8, 10),
    8: (4, 5, 6, 7),
}


# =============================================================================
# Data Classes for Disk Statistics
# =============================================================================

@dataclass(frozen=True)
class DeviceStat:
    """
    Absolute I/O counters of one block device.

    Byte counts are sector counts multiplied by the configured block size.
    ttreq and ttbyt are always recomputed from the read and write values.
    """
    major: int
    minor: int
    rdreq: int
    rdbyt: int
    wrtreq: int
    wrtbyt: int
    ttreq: int = field(init=False)
    ttbyt: int = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, 'ttreq', self.rdreq + self.wrtreq)
        object.__setattr__(self, 'ttbyt', self.rdbyt + self.wrtbyt)

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary."""
        return asdict(self)

    def to_persisted(self) -> Dict[str, int]:
        """Raw fields stored in the persisted baseline."""
        return {name: getattr(self, name) for name in PERSISTED_FIELDS}

    def counters(self) -> Dict[str, int]:
        """Counter fields, without the device identifiers."""
        return {k: v for k, v in asdict(self).items() if k not in IDENTITY_FIELDS}

    @classmethod
    def from_dict(cls, data: Dict[str, Any], name: str = None) -> 'DeviceStat':
        """Create instance from dictionary.

        Derived keys (ttreq, ttbyt) and unknown keys are ignored.

        Raises:
            SchemaMismatchError: If a persisted field is missing.
            InvalidCounterValueError: If a value is not a non-negative integer.
        """
        values = {}
        for key in PERSISTED_FIELDS:
            if key not in data:
                raise SchemaMismatchError(
                    f"Missing key '{key}' in device record",
                    record=name,
                    field_name=key,
                )
            values[key] = check_counter(data[key], name, key)
        return cls(**values)


@dataclass(frozen=True)
class DeviceRates:
    """Per-second I/O rates of one block device, rounded to two decimals."""
    major: int
    minor: int
    rdreq: float
    rdbyt: float
    wrtreq: float
    wrtbyt: float
    ttreq: float
    ttbyt: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DeviceRates':
        """Create instance from dictionary."""
        return cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})


# =============================================================================
# Parsers
# =============================================================================

def _is_number(token: str) -> bool:
    return token.isascii() and token.isdigit()


def _parse_counter(token: str, device: str, column: int) -> int:
    if not _is_number(token):
        raise InvalidCounterValueError(
            f"Invalid counter in column {column} for device '{device}'",
            record=device,
            field_name=f"column {column}",
            value=token,
        )
    return int(token)


def _parse_lines(lines: Iterable[str], layouts: Dict[int, Tuple[int, int, int, int]],
                 name_index: int, blocksize: int) -> Dict[str, DeviceStat]:
    stats: Dict[str, DeviceStat] = {}

    for line in lines:
        parts = line.split()
        positions = layouts.get(len(parts))
        if positions is None or not (_is_number(parts[0]) and _is_number(parts[1])):
            continue

        device = parts[name_index]
        counters = {
            column: _parse_counter(parts[column], device, column)
            for column in range(name_index + 1, len(parts))
        }
        if name_index == 3:
            # #blocks column of the partitions layouts
            _parse_counter(parts[2], device, 2)

        reads, sectors_read, writes, sectors_written = (counters[p] for p in positions)
        stats[device] = DeviceStat(
            major=int(parts[0]),
            minor=int(parts[1]),
            rdreq=reads,
            rdbyt=sectors_read * blocksize,
            wrtreq=writes,
            wrtbyt=sectors_written * blocksize,
        )

    return stats


def parse_diskstats(lines: Iterable[str], blocksize: int = DEFAULT_BLOCK_SIZE) -> Dict[str, DeviceStat]:
    """
    Parse /proc/diskstats lines into DeviceStat objects keyed by device name.

    Args:
        lines: Raw lines of the diskstats file.
        blocksize: Bytes per sector.

    Returns:
        Dictionary of device name to DeviceStat. Lines in no known layout are skipped.

    Raises:
        InvalidCounterValueError: If a recognized line holds a non-numeric counter.

    Example:
        >>> parse_diskstats(["   8       0 sda 100 5 2000 300 50 2 1000 150 0 400 550"])['sda'].rdbyt
        1024000
    """
    return _parse_lines(lines, DISKSTATS_LAYOUTS, 2, blocksize)


def parse_partitions(lines: Iterable[str], blocksize: int = DEFAULT_BLOCK_SIZE) -> Dict[str, DeviceStat]:
    """
    Parse /proc/partitions lines that carry I/O statistics.

    The header line and plain ``major minor #blocks name`` rows are skipped.
    """
    return _parse_lines(lines, PARTITIONS_LAYOUTS, 3, blocksize)


def load_disk_stats(files: ProcFiles, blocksize: int = DEFAULT_BLOCK_SIZE,
                    logger=None) -> Dict[str, DeviceStat]:
    """
    Read disk statistics, trying the diskstats file then the partitions file.

    Args:
        files: Source locations.
        blocksize: Bytes per sector.
        logger: Optional logger instance.

    Returns:
        Dictionary of device name to DeviceStat, never empty.

    Raises:
        SourceUnavailableError: If neither file can be opened.
        ParseFailureError: If the file that opened has no usable line. When
            diskstats exists but is empty of statistics, the kernel was built
            without CONFIG_BLK_STATS.
    """
    diskstats_path = files.resolve('diskstats')
    partitions_path = files.resolve('partitions')

    try:
        lines = read_lines(diskstats_path)
    except SourceUnavailableError as e:
        if logger:
            logger.verbose(f"{diskstats_path} unavailable ({e.context['reason']}), trying {partitions_path}")
        try:
            lines = read_lines(partitions_path)
        except SourceUnavailableError as fallback_error:
            raise SourceUnavailableError(
                f"Unable to open {diskstats_path} or {partitions_path}",
                paths=[diskstats_path, partitions_path],
                reason=fallback_error.context['reason'],
                code=fallback_error.code,
            ) from fallback_error

        stats = parse_partitions(lines, blocksize)
        if not stats:
            raise ParseFailureError(
                f"No disk statistics found in {diskstats_path} or {partitions_path}",
                paths=[diskstats_path, partitions_path],
            )
        return stats

    stats = parse_diskstats(lines, blocksize)
    if not stats:
        raise ParseFailureError(
            "No diskstats found! Your system seems not to be compiled with CONFIG_BLK_STATS=y",
            paths=[diskstats_path, partitions_path],
            code=ErrorCode.PARSE_KERNEL_MISCONFIGURED,
        )
    return stats


# =============================================================================
# Collector
# =============================================================================

def _device_stat_factory(name: str, data: Dict[str, Any]) -> DeviceStat:
    return DeviceStat.from_dict(data, name=name)


class DiskStats(StatsCollectorInterface):
    """Collects disk I/O rates.

    Usage:
        stats = DiskStats()
        stats.initialize()
        time.sleep(1)
        rates = stats.collect()

    With a persisted baseline the sleep is only needed on the very first run:
        stats = DiskStats(CollectorConfig(initfile='/tmp/diskstats.yml'))
        stats.initialize()
        rates = stats.collect()
    """

    def __init__(self, config: Optional[CollectorConfig] = None, logger=None,
                 clock=time.time):
        """Initialize the collector.

        Args:
            config: Collector configuration (default: CollectorConfig()).
            logger: Optional logger instance for debug output. A LinfoLogger
                gets the logging options of ``config`` applied to its stream
                handlers.
            clock: Returns the current time in seconds.
        """
        self.config = (config or CollectorConfig()).validate()
        self.logger = logger
        if isinstance(logger, LinfoLogger):
            apply_logging_options(logger, self.config)
        self._store = SnapshotStore(
            capture_fn=self._load,
            record_factory=_device_stat_factory,
            record_dumper=DeviceStat.to_persisted,
            initfile=self.config.initfile,
            clock=clock,
            logger=logger,
        )

    def _load(self) -> Dict[str, DeviceStat]:
        return load_disk_stats(self.config.files, self.config.blocksize, logger=self.logger)

    @property
    def baseline(self) -> Optional[Snapshot]:
        return self._store.baseline

    def initialize(self) -> Snapshot:
        """Read the baseline, or restore it from the configured initfile."""
        self._store.reset()
        baseline = self._store.restore()
        if self.logger:
            self.logger.debug(f"DiskStats initialized with devices: {', '.join(sorted(baseline.keys()))}")
        return baseline

    def collect(self) -> Dict[str, DeviceRates]:
        """Return per-device rates since the baseline and advance the baseline.

        Raises:
            RuntimeError: If initialize() was not called.
        """
        baseline = self._store.baseline
        if baseline is None:
            raise RuntimeError('DiskStats: there are no initial statistics defined; call initialize() first')

        snapshot = self._store.take()
        rates = compute_deltas(baseline, snapshot, identity_fields=IDENTITY_FIELDS, logger=self.logger)
        self._store.advance(snapshot)
        return {device: DeviceRates.from_dict(values) for device, values in rates.items()}

    def collect_raw(self) -> Snapshot:
        """Return a fresh snapshot of absolute counters; the baseline is not touched."""
        return self._store.take()

    def devices(self) -> List[str]:
        """Device names held in the baseline."""
        if self._store.baseline is None:
            return []
        return sorted(self._store.baseline.keys())
