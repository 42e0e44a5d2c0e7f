"""Data models for the command tree."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "Choices",
    "CommandCompletion",
    "CommandNode",
    "DirectoryCompletion",
    "FileCompletion",
    "LazyCommand",
    "NoCompletion",
    "OptionMeta",
    "OptionType",
    "PositionalMeta",
    "ValueCompletion",
    "to_kebab_case",
]

_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")


def to_kebab_case(name: str) -> str:
    """Convert a field name to its command line spelling.

    E.g., "dryRun" -> "dry-run", "output_dir" -> "output-dir"
    """
    return _CAMEL_BOUNDARY.sub(r"\1-\2", name).replace("_", "-").lower()


class OptionType(StrEnum):
    """Value type of an option."""

    BOOLEAN = "boolean"
    STRING = "string"
    NUMBER = "number"
    ARRAY = "array"
    ENUM = "enum"


@dataclass(frozen=True)
class Choices:
    """Complete from a fixed list of values."""

    kind: ClassVar[str] = "choices"
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class FileCompletion:
    """Complete file paths, optionally filtered by extension or glob pattern.

    Attributes:
        extensions: Allowed extensions, without the leading dot
        matcher: Glob patterns the file names must match
    """

    kind: ClassVar[str] = "file"
    extensions: tuple[str, ...] | None = None
    matcher: tuple[str, ...] | None = None

    def __post_init__(self) -> None:
        if self.extensions and self.matcher:
            msg = "FileCompletion accepts either extensions or matcher, not both"
            raise ValueError(msg)
        if self.extensions:
            object.__setattr__(self, "extensions", tuple(ext.lstrip(".") for ext in self.extensions))


@dataclass(frozen=True)
class DirectoryCompletion:
    """Complete directory paths."""

    kind: ClassVar[str] = "directory"


@dataclass(frozen=True)
class CommandCompletion:
    """Complete from the output lines of a shell command run at completion time."""

    kind: ClassVar[str] = "command"
    shell_command: str = ""


@dataclass(frozen=True)
class NoCompletion:
    """Offer nothing, not even files."""

    kind: ClassVar[str] = "none"


ValueCompletion = Choices | FileCompletion | DirectoryCompletion | CommandCompletion | NoCompletion


@dataclass(frozen=True)
class OptionMeta:
    """A named option of a command.

    `cli_name` defaults to the kebab-case spelling of `name`.
    """

    name: str
    cli_name: str = ""
    alias: str | None = None
    type: OptionType = OptionType.STRING
    env: str | None = None
    description: str | None = None
    required: bool = False
    value_completion: ValueCompletion | None = None

    def __post_init__(self) -> None:
        if not self.cli_name:
            object.__setattr__(self, "cli_name", to_kebab_case(self.name))
        object.__setattr__(self, "type", OptionType(self.type))

    @property
    def takes_value(self) -> bool:
        """Whether the option consumes a value (every type but boolean)."""
        return self.type != OptionType.BOOLEAN

    @property
    def is_array(self) -> bool:
        """Whether the option may be repeated."""
        return self.type == OptionType.ARRAY

    @property
    def flags(self) -> tuple[str, ...]:
        """Every spelling of the option on the command line."""
        if self.alias:
            return (f"--{self.cli_name}", f"-{self.alias}")
        return (f"--{self.cli_name}",)


@dataclass(frozen=True)
class PositionalMeta:
    """A positional argument of a command.

    A variadic positional keeps consuming words once reached.
    """

    name: str
    cli_name: str = ""
    required: bool = True
    description: str | None = None
    variadic: bool = False
    value_completion: ValueCompletion | None = None

    def __post_init__(self) -> None:
        if not self.cli_name:
            object.__setattr__(self, "cli_name", to_kebab_case(self.name))


@dataclass(frozen=True)
class CommandNode:
    """A node in the command hierarchy.

    The tree is built once and never mutated: use `dataclasses.replace` to derive variants.
    """

    name: str
    description: str = ""
    version: str | None = None
    options: tuple[OptionMeta, ...] = ()
    positionals: tuple[PositionalMeta, ...] = ()
    subcommands: dict[str, CommandNode | LazyCommand] = field(default_factory=dict)


@dataclass(frozen=True)
class LazyCommand:
    """A subcommand whose definition is only known once loaded.

    Attributes:
        loader: Returns the real CommandNode, called when the dynamic path traverses it
        description: Shown in listings without loading
        meta: Definition known ahead of time, used by static generation
    """

    loader: Callable[[], CommandNode]
    description: str = ""
    meta: CommandNode | None = None
