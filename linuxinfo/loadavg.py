"""
Load average statistics from /proc/loadavg.

Statistics:
    avg_1   - The average processor workload of the last minute
    avg_5   - The average processor workload of the last five minutes
    avg_15  - The average processor workload of the last fifteen minutes
"""

from dataclasses import asdict, dataclass
from typing import Dict, Optional

from linuxinfo.config import ProcFiles
from linuxinfo.errors import ParseFailureError
from linuxinfo.sources import read_source_lines


@dataclass(frozen=True)
class LoadAverage:
    avg_1: float
    avg_5: float
    avg_15: float

    def to_dict(self) -> Dict[str, float]:
        """Convert to dictionary."""
        return asdict(self)


def parse_loadavg(content: str, path: str = None) -> LoadAverage:
    """
    Parse /proc/loadavg content.

    Example:
        >>> parse_loadavg("0.50 0.75 0.80 2/500 12345")
        LoadAverage(avg_1=0.5, avg_5=0.75, avg_15=0.8)

    Raises:
        ParseFailureError: If the first three fields are not numbers.
    """
    parts = content.split()
    if len(parts) >= 3:
        try:
            return LoadAverage(float(parts[0]), float(parts[1]), float(parts[2]))
        except ValueError:
            pass

    raise ParseFailureError(
        f"Unable to parse load averages from {content.strip()!r}",
        paths=[path] if path else [],
    )


class LoadAVG:
    """Reads the load average. No baseline and no deltas are involved.

    Usage:
        lxs = LoadAVG()
        stat = lxs.get()
        stat.avg_1
    """

    def __init__(self, files: Optional[ProcFiles] = None):
        self.files = files or ProcFiles()

    def get(self) -> LoadAverage:
        """Read the current load averages.

        Raises:
            SourceUnavailableError: If the loadavg file cannot be read.
            ParseFailureError: If it does not start with three numbers.
        """
        lines = read_source_lines(self.files, 'loadavg')
        return parse_loadavg(lines[0] if lines else '', path=self.files.resolve('loadavg'))
