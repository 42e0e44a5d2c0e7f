"""Shared enums and exceptions.

- ShellType: supported target shells
- Directive: flags of the dynamic completion protocol
- ExitCode: CLI exit codes
- ShellCompError and subclasses: errors raised by the engine
"""

from enum import IntEnum, IntFlag, StrEnum

__all__ = [
    "Directive",
    "ExitCode",
    "ShellCompError",
    "ShellType",
    "TreeLoadError",
    "UnsupportedShellError",
]


class ShellType(StrEnum):
    """Shells with a completion backend."""

    BASH = "bash"
    ZSH = "zsh"
    FISH = "fish"


class Directive(IntFlag):
    """Shell behavior flags sent as the last line of `__complete` output.

    The integer values are part of the wire protocol read by installed
    scripts and must never change.
    """

    DEFAULT = 0
    NO_SPACE = 1  # don't append a space after the completion
    NO_FILE_COMPLETION = 2  # never fall back to file completion
    FILTER_PREFIX = 4  # candidates should be filtered by the current word
    KEEP_ORDER = 8  # keep candidates in the given order
    FILE_COMPLETION = 16  # use the shell's file completion
    DIRECTORY_COMPLETION = 32  # use the shell's directory completion
    ERROR = 64  # completion failed


class ExitCode(IntEnum):
    """Standard exit codes for the shellcomp CLI."""

    SUCCESS = 0
    USAGE_ERROR = 1  # No command provided, invalid arguments
    ENV_ERROR = 2  # Shell could not be detected
    LOAD_ERROR = 3  # Command tree file missing or invalid
    COMMAND_ERROR = 4  # Command execution failed


class ShellCompError(Exception):
    """Base class for errors raised by shellcomp."""


class UnsupportedShellError(ShellCompError, ValueError):
    """Raised when asked for a shell outside SUPPORTED_SHELLS."""

    def __init__(self, shell: str) -> None:
        super().__init__(f"Unsupported shell: {shell}")
        self.shell = shell


class TreeLoadError(ShellCompError):
    """Raised when a command tree file can't be read."""
