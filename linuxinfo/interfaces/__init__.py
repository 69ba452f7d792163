"""
Interface definitions for linux-info.

Collectors that compare snapshots against a baseline implement
StatsCollectorInterface, so callers can drive any of them with the same
initialize/collect cycle.

Example Usage:
    from linuxinfo.interfaces import StatsCollectorInterface

    class NetStats(StatsCollectorInterface):
        def initialize(self):
            ...
        # ... implement other abstract methods
"""

from linuxinfo.interfaces.collector import StatsCollectorInterface

__all__ = [
    'StatsCollectorInterface',
]
