"""Terminal colors for log output.

Colors are only used on a terminal: the shell reads completions through a
pipe. `NO_COLOR` and `FORCE_COLOR` override the detection.
"""

import logging
import os
import sys
from typing import TextIO

__all__ = ["LEVEL_CODES", "RESET", "level_styles", "should_colorize"]

RESET = "\x1b[0m"

# SGR codes per level: dim yellow, dim red, bold red
LEVEL_CODES = {
    logging.WARNING: ("33", "2"),
    logging.ERROR: ("31", "2"),
    logging.CRITICAL: ("31", "1"),
}


def should_colorize(stream: TextIO | None = None) -> bool:
    """Whether lines written to `stream` (stderr by default) get colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    stream = sys.stderr if stream is None else stream
    return hasattr(stream, "isatty") and stream.isatty()


def level_styles(enabled: bool) -> dict[int, tuple[str, str]]:
    """Prefix and suffix wrapping the log lines of each level.

    Args:
        enabled: When False every level gets empty affixes

    Returns:
        (prefix, suffix) for DEBUG through CRITICAL
    """
    styles = {logging.DEBUG: ("", ""), logging.INFO: ("", "")}
    for level, codes in LEVEL_CODES.items():
        styles[level] = (f"\x1b[{';'.join(codes)}m", RESET) if enabled else ("", "")
    return styles
