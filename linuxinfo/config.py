"""
Configuration for linux-info collectors.

Collectors receive an explicit configuration object at construction; there is
no module level mutable state. Defaults match a standard Linux host with procfs
mounted at /proc.

Classes:
    ProcFiles: Root path and file names of the procfs sources.
    CollectorConfig: Per-collector settings (sources, baseline file, block size, logging).

Functions:
    load_config: Build a CollectorConfig from a YAML file.
"""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

import yaml

from linuxinfo.errors import ConfigurationError, ErrorCode

DEFAULT_PROC_PATH = "/proc"

# Sectors have been 512 bytes since the 2.4 kernels, whatever the device's
# physical block size.
DEFAULT_BLOCK_SIZE = 512

LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'STATUS', 'INFO', 'VERBOSE',
              'VERBOSER', 'DEBUG', 'RIDICULOUS')


@dataclass
class ProcFiles:
    """
    Location of the procfs sources read by the collectors.

    Attributes:
        path: Root directory. An empty value means the file names are used as given.
        diskstats: Disk statistics file (2.6+ kernels).
        partitions: Partitions file, used when diskstats is unavailable (2.4 kernels).
        loadavg: Load average file.
        version: Kernel version banner file.
    """
    path: str = DEFAULT_PROC_PATH
    diskstats: str = "diskstats"
    partitions: str = "partitions"
    loadavg: str = "loadavg"
    version: str = "version"

    def resolve(self, name: str) -> str:
        """Return the full path of the source configured under ``name``.

        Example:
            >>> ProcFiles(path='/host/proc').resolve('diskstats')
            '/host/proc/diskstats'
        """
        try:
            file_name = getattr(self, name)
        except AttributeError:
            raise ConfigurationError(
                f"Unknown source name '{name}'",
                parameter="files",
                expected=[f.name for f in fields(self) if f.name != 'path'],
                actual=name,
            )
        if self.path:
            return os.path.join(self.path, file_name)
        return file_name

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcFiles':
        """Create instance from dictionary, rejecting unknown keys."""
        unknown = set(data) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigurationError(
                "Unknown source file key(s) in configuration",
                parameter="files",
                expected=sorted(cls.__dataclass_fields__),
                actual=sorted(unknown),
            )
        return cls(**data)


@dataclass
class CollectorConfig:
    """
    Settings for one collector instance.

    Attributes:
        files: Source locations.
        initfile: Optional path of the persisted baseline. When it exists,
            initialization restores it instead of reading the sources, so no
            warm-up wait is needed before the first collection.
        blocksize: Bytes per sector used to convert sector counts to bytes.
        stream_log_level: Optional log level name for stream handlers.
        verbose: Lower stream handlers to VERBOSE.
        debug: Lower stream handlers to DEBUG and use the debug formatter.

    The three logging fields are applied by DiskStats to a LinfoLogger it is
    given. For any other logger, pass the config to
    linfo_logging.apply_logging_options() yourself.
    """
    files: ProcFiles = field(default_factory=ProcFiles)
    initfile: Optional[str] = None
    blocksize: int = DEFAULT_BLOCK_SIZE
    stream_log_level: Optional[str] = None
    verbose: bool = False
    debug: bool = False

    def validate(self) -> 'CollectorConfig':
        """Check the configuration, raising ConfigurationError on the first problem.

        Returns:
            The configuration itself, so calls can be chained.
        """
        if isinstance(self.blocksize, bool) or not isinstance(self.blocksize, int) or self.blocksize <= 0:
            raise ConfigurationError(
                "Block size must be a positive integer",
                parameter="blocksize",
                expected="integer > 0",
                actual=self.blocksize,
            )
        if self.stream_log_level and self.stream_log_level.upper() not in LOG_LEVELS:
            raise ConfigurationError(
                "Invalid log level",
                parameter="stream_log_level",
                expected=", ".join(LOG_LEVELS),
                actual=self.stream_log_level,
            )
        return self


def load_config(config_path: str, logger=None) -> CollectorConfig:
    """Load a CollectorConfig from a YAML file.

    Keys present in the file override the defaults. Unknown top-level keys are
    skipped with a warning.

    Args:
        config_path: Path to the YAML file.
        logger: Optional logger for warnings.

    Returns:
        A validated CollectorConfig.

    Raises:
        ConfigurationError: If the file is missing, not valid YAML, or holds invalid values.

    Example:
        >>> # files: {path: /host/proc}
        >>> # blocksize: 4096
        >>> config = load_config("/etc/linux-info.yaml")
        >>> config.files.resolve('diskstats')
        '/host/proc/diskstats'
    """
    if not os.path.isfile(config_path):
        raise ConfigurationError(
            f"Configuration file not found: {config_path}",
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
        )

    try:
        with open(config_path, 'r') as f:
            yaml_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Error parsing YAML config file {config_path}: {e}",
            code=ErrorCode.CONFIG_PARSE_ERROR,
        )

    config = CollectorConfig()
    if not yaml_config:
        if logger:
            logger.warning(f"Config file {config_path} is empty, using defaults")
        return config
    if not isinstance(yaml_config, dict):
        raise ConfigurationError(
            f"Config file {config_path} must contain a mapping",
            code=ErrorCode.CONFIG_PARSE_ERROR,
            actual=type(yaml_config).__name__,
        )

    known = {f.name for f in fields(CollectorConfig)}
    for key, value in yaml_config.items():
        if key not in known:
            if logger:
                logger.warning(f"Config file contains unknown parameter '{key}', skipping")
            continue

        # Skip None so an empty key does not wipe out a default
        if value is None:
            continue

        if key == 'files':
            if not isinstance(value, dict):
                raise ConfigurationError(
                    "The 'files' entry must be a mapping",
                    parameter="files",
                    actual=value,
                )
            value = ProcFiles.from_dict(value)
        setattr(config, key, value)

    return config.validate()
