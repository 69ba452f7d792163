"""
Logging for linux-info.

The collectors accept any object with the usual logger methods. Loggers built
by setup_logging() additionally have status(), verbose(), verboser() and
ridiculous() for the levels between the standard ones, and print colored
``time|LEVEL: message`` lines to stderr.
"""

import datetime
import enum
import logging

CRITICAL = logging.CRITICAL
ERROR = logging.ERROR
WARNING = logging.WARNING   # 30
STATUS = 25
INFO = logging.INFO         # 20
VERBOSE = 19
VERBOSER = 18
DEBUG = logging.DEBUG       # 10
RIDICULOUS = 7

DEFAULT_STREAM_LOG_LEVEL = INFO

custom_levels = {
    'STATUS': STATUS,
    'VERBOSE': VERBOSE,
    'VERBOSER': VERBOSER,
    'RIDICULOUS': RIDICULOUS,
}


class COLORS(enum.Enum):
    yellow = "\033[0;33m"
    bred = "\033[1;31m"
    bblue = "\033[1;34m"
    bipurple = "\033[1;95m"
    normal = "\033[0m"


level_to_color_map = {
    CRITICAL: COLORS.bred,
    ERROR: COLORS.bred,
    WARNING: COLORS.yellow,
    STATUS: COLORS.bblue,
    RIDICULOUS: COLORS.bipurple,
}


def get_level_color(level):
    return level_to_color_map.get(level, COLORS.normal).value


def log_level_factory(level_num):
    def log_func(self, message, *args, **kwargs):
        if self.isEnabledFor(level_num):
            # One extra frame (this function) between the caller and _log
            kwargs['stacklevel'] = kwargs.get('stacklevel', 1) + 1
            self._log(level_num, message, args, **kwargs)
    return log_func


class LinfoLogger(logging.Logger):
    """Logger with the linux-info custom level methods."""


for custom_name, custom_num in custom_levels.items():
    logging.addLevelName(custom_num, custom_name)
    setattr(LinfoLogger, custom_name.lower(), log_level_factory(custom_num))


class ColoredFormatter(logging.Formatter):
    """Formats records as ``time|LEVEL: message`` in the color of the level."""
    show_location = False

    def format(self, record):
        timestamp = datetime.datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S')
        location = f":{record.module}:{record.lineno}" if self.show_location else ""
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{get_level_color(record.levelno)}{timestamp}|{record.levelname}{location}: " \
               f"{message}{COLORS.normal.value}"


class ColoredStandardFormatter(ColoredFormatter):
    pass


class ColoredDebugFormatter(ColoredFormatter):
    show_location = True


def setup_logging(name='linuxinfo', stream_log_level=DEFAULT_STREAM_LOG_LEVEL):
    """Create a LinfoLogger with one colored stderr handler.

    The logger itself passes everything down to RIDICULOUS; the handler level
    decides what is printed.
    """
    if isinstance(stream_log_level, str):
        stream_log_level = logging.getLevelName(stream_log_level.upper())

    _logger = LinfoLogger(name)
    _logger.setLevel(RIDICULOUS)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ColoredStandardFormatter())
    stream_handler.setLevel(stream_log_level)
    _logger.addHandler(stream_handler)

    return _logger


def _stream_handlers(_logger):
    return [h for h in _logger.handlers
            if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)]


def apply_logging_options(_logger, options):
    """Adjust the stream handlers from an options object.

    ``options`` may be an argparse namespace or a CollectorConfig; only the
    ``verbose``, ``debug`` and ``stream_log_level`` attributes are read. An
    explicit ``stream_log_level`` takes precedence over the two flags.
    """
    if options is None:
        return

    debug = getattr(options, 'debug', False)
    stream_log_level = getattr(options, 'stream_log_level', None)
    if debug:
        flag_level = DEBUG
    elif getattr(options, 'verbose', False):
        flag_level = VERBOSE
    else:
        flag_level = None

    for stream_handler in _stream_handlers(_logger):
        if debug:
            stream_handler.setFormatter(ColoredDebugFormatter())
        if stream_log_level:
            stream_handler.setLevel(stream_log_level.upper())
        elif flag_level is not None and stream_handler.level > flag_level:
            stream_handler.setLevel(flag_level)
