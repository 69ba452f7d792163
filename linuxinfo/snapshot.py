"""
Snapshots and the baseline store.

A Snapshot is one timestamped, complete read of a source. The SnapshotStore
owns the baseline a collector compares new snapshots against, and optionally
persists it to a YAML file so that a restarted process can compute rates
without a fresh warm-up wait.

Persisted format::

    time: 1718000000.25
    records:
      sda: {major: 8, minor: 0, rdreq: 100, rdbyt: 1024000, wrtreq: 50, wrtbyt: 512000}
"""

import os
import tempfile
import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional

import yaml

from linuxinfo.errors import ErrorCode, ParseFailureError, SourceUnavailableError

RecordFactory = Callable[[str, Dict[str, Any]], Any]
RecordDumper = Callable[[Any], Dict[str, Any]]


def _plain_record(name: str, data: Dict[str, Any]) -> Dict[str, Any]:
    return dict(data)


@dataclass(frozen=True)
class Snapshot:
    """
    One complete, timestamped read of all tracked records of a source.

    Attributes:
        timestamp: Capture time in seconds since the epoch. Wall clock so it
            stays meaningful across a process restart.
        records: Read-only mapping of record key (e.g. device name) to record.
    """
    timestamp: float
    records: Mapping[str, Any]

    def __post_init__(self):
        object.__setattr__(self, 'records', MappingProxyType(dict(self.records)))

    def __len__(self) -> int:
        return len(self.records)

    def keys(self):
        return self.records.keys()

    def to_dict(self, record_dumper: RecordDumper = dict) -> Dict[str, Any]:
        """Convert to a plain dictionary suitable for YAML."""
        return {
            'time': self.timestamp,
            'records': {name: record_dumper(record) for name, record in self.records.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  record_factory: RecordFactory = _plain_record) -> 'Snapshot':
        """Create instance from dictionary.

        Raises:
            ParseFailureError: If the mandatory ``time`` or ``records`` entries are
                missing, or a record is not a mapping.
        """
        if not isinstance(data, dict) or 'time' not in data or not isinstance(data.get('records'), dict):
            raise ParseFailureError(
                "Persisted baseline must contain 'time' and 'records'",
                code=ErrorCode.PARSE_BASELINE_INVALID,
            )
        timestamp = data['time']
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ParseFailureError(
                f"Persisted baseline has an invalid time value: {timestamp!r}",
                code=ErrorCode.PARSE_BASELINE_INVALID,
            )
        records = {}
        for name, values in data['records'].items():
            if not isinstance(values, dict):
                raise ParseFailureError(
                    f"Persisted record '{name}' is not a mapping: {values!r}",
                    code=ErrorCode.PARSE_BASELINE_INVALID,
                )
            records[name] = record_factory(name, values)
        return cls(timestamp=float(timestamp), records=records)


class SnapshotStore:
    """Holds the baseline snapshot of one collector instance.

    ``advance()`` is the only mutator once a baseline exists; it swaps the
    whole snapshot in one assignment, so a reader never sees a half-updated
    baseline. The persistence file is not locked: only one collector may use
    a given ``initfile`` at a time.

    Usage:
        store = SnapshotStore(capture_fn=read_records, initfile='/tmp/base.yml')
        store.restore()
        new = store.take()
        ... compute rates against store.baseline ...
        store.advance(new)
    """

    def __init__(
        self,
        capture_fn: Callable[[], Mapping[str, Any]],
        record_factory: RecordFactory = _plain_record,
        record_dumper: RecordDumper = dict,
        initfile: Optional[str] = None,
        clock: Callable[[], float] = time.time,
        logger=None
    ):
        """Initialize the store with no baseline.

        Args:
            capture_fn: Parses the source and returns a fresh record mapping.
            record_factory: Rebuilds one record from its persisted form.
            record_dumper: Converts one record to its persisted form.
            initfile: Optional path of the persisted baseline.
            clock: Returns the current time in seconds.
            logger: Optional logger instance for debug output.
        """
        self.capture_fn = capture_fn
        self.record_factory = record_factory
        self.record_dumper = record_dumper
        self.initfile = initfile
        self.clock = clock
        self.logger = logger
        self._baseline: Optional[Snapshot] = None

    @property
    def baseline(self) -> Optional[Snapshot]:
        return self._baseline

    def reset(self) -> None:
        """Forget the in-memory baseline. The persisted file is left untouched."""
        self._baseline = None

    def take(self) -> Snapshot:
        """Parse the source and stamp the result, without touching the baseline."""
        records = self.capture_fn()
        return Snapshot(timestamp=self.clock(), records=records)

    def capture(self) -> Snapshot:
        """Take a snapshot and keep it as baseline if none is held yet."""
        snapshot = self.take()
        if self._baseline is None:
            self._baseline = snapshot
            if self.logger:
                self.logger.debug(f"Captured baseline with {len(snapshot)} record(s)")
        return snapshot

    def restore(self) -> Snapshot:
        """Load the persisted baseline if configured and present, else capture one."""
        if self.initfile and os.path.isfile(self.initfile):
            self._baseline = self.load()
            if self.logger:
                self.logger.verbose(
                    f"Restored baseline from {self.initfile} ({len(self._baseline)} record(s))"
                )
            return self._baseline
        return self.capture()

    def advance(self, snapshot: Snapshot) -> None:
        """Replace the baseline by ``snapshot`` and persist it when configured.

        The file is written first; if that fails the old baseline is kept.

        Raises:
            SourceUnavailableError: If the persisted baseline cannot be written.
        """
        if self.initfile:
            self._write(snapshot)
        self._baseline = snapshot

    def _io_error(self, action: str, e: OSError) -> SourceUnavailableError:
        return SourceUnavailableError(
            f"Unable to {action} persisted baseline {self.initfile}",
            paths=[self.initfile],
            reason=str(e),
            code=ErrorCode.SOURCE_PERMISSION_DENIED if isinstance(e, PermissionError)
            else ErrorCode.SOURCE_UNREADABLE,
        )

    def load(self) -> Snapshot:
        """Read the persisted baseline from ``initfile``.

        Raises:
            SourceUnavailableError: If the file cannot be read.
            ParseFailureError: If it is not valid YAML or lacks the expected structure.
        """
        try:
            with open(self.initfile, 'r') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise self._io_error('read', e) from e
        except yaml.YAMLError as e:
            raise ParseFailureError(
                f"Persisted baseline {self.initfile} is not valid YAML: {e}",
                paths=[self.initfile],
                code=ErrorCode.PARSE_BASELINE_INVALID,
            ) from e

        return Snapshot.from_dict(data, record_factory=self.record_factory)

    def save(self) -> None:
        """Write the baseline to ``initfile``.

        Raises:
            RuntimeError: If no baseline is held or no initfile is configured.
            SourceUnavailableError: If the file cannot be written.
        """
        if self._baseline is None:
            raise RuntimeError('SnapshotStore has no baseline to save')
        if not self.initfile:
            raise RuntimeError('SnapshotStore has no initfile configured')
        self._write(self._baseline)

    def _write(self, snapshot: Snapshot) -> None:
        # Temporary file in the same directory, renamed over the target, so the
        # file on disk is always complete.
        directory = os.path.dirname(os.path.abspath(self.initfile))
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(prefix='.baseline-', suffix='.yml', dir=directory)
            with os.fdopen(fd, 'w') as f:
                yaml.safe_dump(snapshot.to_dict(self.record_dumper), f, default_flow_style=False)
            os.replace(tmp_path, self.initfile)
        except OSError as e:
            raise self._io_error('write', e) from e
        finally:
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        if self.logger:
            self.logger.debug(f"Saved baseline to {self.initfile}")
