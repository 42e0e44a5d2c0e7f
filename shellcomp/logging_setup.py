"""Logging setup and utilities.

Everything is written to stderr (or a file): stdout belongs to the
completion protocol and must only carry candidates.
"""

import logging

from .ansi import level_styles, should_colorize
from .debug import is_debug, set_debug

__all__ = [
    "LogObjects",
    "get_logger",
    "init_logger",
]


class LogObjects:
    """Reusable objects for loggers."""

    handlers: list[logging.Handler] = []


def init_logger(filename: str | None = None, force_debug: bool = False) -> None:
    """Initialize the logging system.

    Args:
        filename: Optional filename to log to
        force_debug: If True, force debug level
    """
    if force_debug:
        set_debug(True)

    class ScreenLogFormatter(logging.Formatter):
        """A custom formatter, adding colors based on log level.

        Respects NO_COLOR environment variable and TTY detection.
        """

        LOG_FORMAT = r"%(name)25s - %(message)s // %(filename)s:%(lineno)d" if is_debug() else r"%(message)s"

        def __init__(self) -> None:
            super().__init__()
            self._formatters = {
                level: logging.Formatter(prefix + self.LOG_FORMAT + suffix)
                for level, (prefix, suffix) in level_styles(should_colorize()).items()
            }

        def format(self, record: logging.LogRecord) -> str:
            return self._formatters[record.levelno].format(record)

    LogObjects.handlers.clear()
    if filename:
        file_handler = logging.FileHandler(filename)
        file_handler.setFormatter(logging.Formatter(fmt=r"%(asctime)s [%(levelname)s] %(name)s :: %(message)s :: %(filename)s:%(lineno)d"))
        LogObjects.handlers.append(file_handler)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(ScreenLogFormatter())
    LogObjects.handlers.append(stream_handler)


def get_logger(name: str = "shellcomp", level: int | None = None) -> logging.Logger:
    """Return a named logger.

    Loggers requested before `init_logger` have no handler of their own and
    fall back to the standard library's last-resort handler (warnings only).

    Args:
        name (str): logger's name
        level (int): logger's level (auto if not set)

    Returns:
        The logger instance
    """
    logger = logging.getLogger(name)
    if level is None:
        logger.setLevel(logging.DEBUG if is_debug() else logging.WARNING)
    else:
        logger.setLevel(level)
    if LogObjects.handlers:
        logger.propagate = False
        for handler in LogObjects.handlers:
            if handler not in logger.handlers:
                logger.addHandler(handler)
    logger.debug('Logger "%s" initialized', name)
    return logger
