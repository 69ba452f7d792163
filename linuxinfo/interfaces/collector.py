"""
Collector interface definitions for linux-info.

This module defines the abstract interface for collectors that turn absolute
procfs counters into rates. Implementations own one baseline each and never
schedule their own waits: the caller decides when to collect.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class StatsCollectorInterface(ABC):
    """Interface for snapshot/delta based statistics collectors.

    Lifecycle:
        collector.initialize()     # read or restore the baseline
        time.sleep(interval)       # caller controlled
        rates = collector.collect()

    Example:
        class NetStats(StatsCollectorInterface):
            def initialize(self):
                return self._store.restore()

            def collect(self):
                snapshot = self._store.take()
                rates = compute_deltas(self._store.baseline, snapshot)
                self._store.advance(snapshot)
                return rates

            def collect_raw(self):
                return self._store.take()
    """

    @abstractmethod
    def initialize(self) -> Any:
        """Establish the baseline, restoring a persisted one when configured.

        Returns:
            The baseline snapshot.
        """
        pass

    @abstractmethod
    def collect(self) -> Dict[str, Any]:
        """Return rates since the baseline and advance the baseline.

        Raises:
            RuntimeError: If called before initialize().
        """
        pass

    @abstractmethod
    def collect_raw(self) -> Any:
        """Return a fresh snapshot of absolute counters, bypassing the delta engine.

        Useful for diagnostics; the baseline is not touched.
        """
        pass
