"""
Exceptions raised by the linux-info collectors.

Every exception carries an ErrorCode, a message, a details line built from its
keyword arguments and a suggestion. The keyword arguments are also kept in
``context`` for programmatic access (e.g. the paths that were tried).

Nothing is retried or defaulted inside the library: a missing source, an
unparsable line or a mismatching kernel banner always reaches the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Sequence


class ErrorCode(Enum):
    """Machine-readable error codes for linux-info errors."""
    # Configuration errors (1xx)
    CONFIG_INVALID_VALUE = "E101"
    CONFIG_FILE_NOT_FOUND = "E102"
    CONFIG_PARSE_ERROR = "E103"

    # Source errors (2xx)
    SOURCE_NOT_FOUND = "E201"
    SOURCE_PERMISSION_DENIED = "E202"
    SOURCE_UNREADABLE = "E203"

    # Parse errors (3xx)
    PARSE_NO_MATCH = "E301"
    PARSE_KERNEL_MISCONFIGURED = "E302"
    PARSE_INVALID_COUNTER = "E303"
    PARSE_BASELINE_INVALID = "E304"

    # Delta engine errors (4xx)
    SCHEMA_MISMATCH = "E401"

    # Kernel release errors (5xx)
    KERNEL_RELEASE_INVALID = "E501"

    # Internal errors (9xx)
    INTERNAL_ERROR = "E901"


@dataclass
class LinuxInfoError:
    """
    Structured error information.

    Attributes:
        code: Machine-readable error code.
        message: What went wrong.
        details: Values involved, e.g. "Path: /proc/diskstats; Reason: ...".
        suggestion: What the caller can do about it.
        context: Keyword arguments the exception was raised with.
    """
    code: ErrorCode
    message: str
    details: str = ""
    suggestion: str = ""
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"[{self.code.value}] {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class LinuxInfoException(Exception):
    """Base class of all linux-info exceptions."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: str = "", suggestion: str = "", **context):
        self.error = LinuxInfoError(
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            context=context
        )
        super().__init__(str(self.error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def suggestion(self) -> str:
        return self.error.suggestion

    @property
    def context(self) -> dict:
        return self.error.context


def _details(**labelled) -> str:
    """Join the non-None values as "Label: value" pairs, in argument order."""
    return "; ".join(f"{label.replace('_', ' ').capitalize()}: {value}"
                     for label, value in labelled.items() if value is not None)


def _paths_detail(paths: Sequence[str]) -> Optional[str]:
    if not paths:
        return None
    return ", ".join(paths)


class ConfigurationError(LinuxInfoException):
    """
    Raised when configuration is invalid or missing.

    Examples:
        - Non-positive block size
        - Unknown log level or source name
        - Configuration file not found or not valid YAML
    """

    SUGGESTIONS = {
        ErrorCode.CONFIG_INVALID_VALUE: "Correct the value of the named parameter",
        ErrorCode.CONFIG_FILE_NOT_FOUND: "Check the path of the configuration file",
        ErrorCode.CONFIG_PARSE_ERROR: "The configuration file must be a YAML mapping",
    }

    def __init__(self, message: str, parameter: str = None,
                 expected: Any = None, actual: Any = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE):
        super().__init__(
            message=message,
            code=code,
            details=_details(parameter=parameter, expected=expected, actual=actual),
            suggestion=suggestion or self.SUGGESTIONS.get(code, ""),
            parameter=parameter,
            expected=expected,
            actual=actual
        )


class SourceUnavailableError(LinuxInfoException):
    """
    Raised when no configured source file could be opened.

    ``paths`` lists every file that was tried, in order.
    """

    SUGGESTIONS = {
        ErrorCode.SOURCE_NOT_FOUND: "Verify procfs is mounted and the configured root path is correct",
        ErrorCode.SOURCE_PERMISSION_DENIED: "Check file permissions for the running user",
        ErrorCode.SOURCE_UNREADABLE: "Check that the source is a readable text file",
    }

    def __init__(self, message: str, paths: Sequence[str] = (),
                 reason: str = None, suggestion: str = None,
                 code: ErrorCode = ErrorCode.SOURCE_NOT_FOUND):
        paths = list(paths)
        super().__init__(
            message=message,
            code=code,
            details=_details(paths=_paths_detail(paths), reason=reason),
            suggestion=suggestion or self.SUGGESTIONS.get(code, ""),
            paths=paths,
            reason=reason
        )

    @property
    def paths(self) -> List[str]:
        return self.context['paths']


class ParseFailureError(LinuxInfoException):
    """
    Raised when a source opened but its content could not be used.

    Examples:
        - No line matched any known disk statistics layout
        - Statistics support compiled out of the kernel
        - Load average file with fewer than three values
        - Persisted baseline without 'time' or 'records'
    """

    SUGGESTIONS = {
        ErrorCode.PARSE_NO_MATCH: "Check that the file holds procfs statistics in a supported layout",
        ErrorCode.PARSE_KERNEL_MISCONFIGURED: "Rebuild the kernel with CONFIG_BLK_STATS=y",
        ErrorCode.PARSE_BASELINE_INVALID: "Remove the persisted baseline file and initialize again",
    }

    def __init__(self, message: str, paths: Sequence[str] = (),
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.PARSE_NO_MATCH):
        paths = list(paths)
        super().__init__(
            message=message,
            code=code,
            details=_details(paths=_paths_detail(paths)),
            suggestion=suggestion or self.SUGGESTIONS.get(code, ""),
            paths=paths
        )

    @property
    def paths(self) -> List[str]:
        return self.context['paths']


class InvalidCounterValueError(LinuxInfoException):
    """Raised when a counter is not a non-negative integer."""

    def __init__(self, message: str, record: str = None, field_name: str = None,
                 value: Any = None, suggestion: str = None):
        super().__init__(
            message=message,
            code=ErrorCode.PARSE_INVALID_COUNTER,
            details=_details(record=record, field=field_name, value=repr(value)),
            suggestion=suggestion or "Counters must be non-negative integers",
            record=record,
            field_name=field_name,
            value=value
        )


class SchemaMismatchError(LinuxInfoException):
    """
    Raised when a new record carries a field the baseline does not have,
    or a persisted record lacks one of the stored fields.
    """

    def __init__(self, message: str, record: str = None, field_name: str = None,
                 suggestion: str = None):
        super().__init__(
            message=message,
            code=ErrorCode.SCHEMA_MISMATCH,
            details=_details(record=record, field=field_name),
            suggestion=suggestion or "Discard the persisted baseline and initialize again",
            record=record,
            field_name=field_name
        )


class KernelReleaseValidationError(LinuxInfoException):
    """Raised when a kernel banner does not match the selected variant's grammar."""

    def __init__(self, message: str, banner: str = None, variant: str = None,
                 suggestion: str = None):
        if banner is not None and len(banner) > 200:
            banner_display = banner[:200] + "..."
        else:
            banner_display = banner
        super().__init__(
            message=message,
            code=ErrorCode.KERNEL_RELEASE_INVALID,
            details=_details(variant=variant, banner=banner_display),
            suggestion=suggestion or "Select the kernel variant matching the running distribution",
            banner=banner,
            variant=variant
        )
