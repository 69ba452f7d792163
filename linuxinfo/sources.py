"""
Source reader for procfs text files.

Resolves a configured source under the proc root and returns its lines. Errors
are mapped to SourceUnavailableError with a code telling apart a missing file,
a permission problem and any other OS error. Nothing is retried here; callers
decide whether to try an alternate source.
"""

import errno
from typing import List

from linuxinfo.config import ProcFiles
from linuxinfo.errors import ErrorCode, SourceUnavailableError


def _error_code(e: OSError) -> ErrorCode:
    if isinstance(e, FileNotFoundError) or e.errno == errno.ENOENT:
        return ErrorCode.SOURCE_NOT_FOUND
    if isinstance(e, PermissionError):
        return ErrorCode.SOURCE_PERMISSION_DENIED
    return ErrorCode.SOURCE_UNREADABLE


def read_lines(path: str) -> List[str]:
    """Return the lines of ``path`` without trailing newlines.

    Raises:
        SourceUnavailableError: If the file cannot be opened or read.
    """
    try:
        with open(path, 'r') as f:
            return f.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        code = _error_code(e) if isinstance(e, OSError) else ErrorCode.SOURCE_UNREADABLE
        raise SourceUnavailableError(
            f"Unable to read {path}",
            paths=[path],
            reason=str(e),
            code=code,
        ) from e


def read_source_lines(files: ProcFiles, name: str) -> List[str]:
    """Read the source configured as ``name`` (e.g. 'diskstats') under ``files.path``.

    Example:
        >>> read_source_lines(ProcFiles(), 'loadavg')
        ['0.50 0.75 0.80 2/500 12345']
    """
    return read_lines(files.resolve(name))
