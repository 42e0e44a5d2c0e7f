"""Helpers shared by the static script generators."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...commands.tree import iter_static_tree, subcommand_description, visible_subcommands
from ...constants import HELP_DESCRIPTION
from ..formatter import clean_description

if TYPE_CHECKING:
    from ...commands.models import CommandNode, OptionMeta

__all__ = [
    "OptionSpec",
    "Scope",
    "collect_scopes",
    "dq",
    "escape_double_quoted",
    "escape_fish",
    "function_name",
    "option_specs",
    "shell_word",
    "subcommand_entries",
]

_NON_IDENTIFIER = re.compile(r"[^a-zA-Z0-9_]")
_PLAIN_WORD = re.compile(r"^[a-zA-Z0-9_.+-]+$")


def function_name(program_name: str) -> str:
    """Turn a program name into a shell function name fragment."""
    return _NON_IDENTIFIER.sub("_", program_name)


def escape_double_quoted(text: str) -> str:
    """Escape text for a bash or zsh double-quoted string."""
    for char in ("\\", '"', "$", "`"):
        text = text.replace(char, "\\" + char)
    return text


def escape_fish(text: str) -> str:
    """Escape text for a fish double-quoted string (backquotes are literal there)."""
    for char in ("\\", '"', "$"):
        text = text.replace(char, "\\" + char)
    return text


def dq(text: str, *, fish: bool = False) -> str:
    """Quote text as a double-quoted shell string."""
    return f'"{escape_fish(text) if fish else escape_double_quoted(text)}"'


def shell_word(text: str, *, fish: bool = False) -> str:
    """Quote text for use as a single command word, leaving plain names bare."""
    return text if _PLAIN_WORD.match(text) else dq(text, fish=fish)


@dataclass(frozen=True)
class OptionSpec:
    """An option as seen by the generated scripts.

    Attributes:
        flag: Long flag, e.g. `--format`
        short: Short flag, e.g. `-f`, if any
        kind: `flag`, `value` or `array`
        description: Single-line description
        option: The option, None for the implicit `--help`
    """

    flag: str
    short: str | None
    kind: str
    description: str
    option: OptionMeta | None = None

    @property
    def flags(self) -> tuple[str, ...]:
        """Every spelling of the option."""
        return (self.flag, self.short) if self.short else (self.flag,)


@dataclass(frozen=True)
class Scope:
    """A command reachable in the static tree.

    `key` is the path the scripts track while scanning words: empty for the
    root, `/remote/add` for `prog remote add`.
    """

    key: str
    path: tuple[str, ...]
    node: CommandNode
    function: str


def option_specs(node: CommandNode) -> list[OptionSpec]:
    """Options of a command, plus `--help` unless the command defines its own."""
    specs = []
    for option in node.options:
        if option.is_array:
            kind = "array"
        elif option.takes_value:
            kind = "value"
        else:
            kind = "flag"
        short = f"-{option.alias}" if option.alias else None
        specs.append(OptionSpec(f"--{option.cli_name}", short, kind, clean_description(option.description), option))
    if all(option.cli_name != "help" for option in node.options):
        specs.append(OptionSpec("--help", None, "flag", HELP_DESCRIPTION))
    return specs


def subcommand_entries(node: CommandNode) -> list[tuple[str, str]]:
    """(name, description) of the visible subcommands."""
    return [(name, clean_description(subcommand_description(node, name))) for name in visible_subcommands(node)]


def collect_scopes(root: CommandNode, program_name: str) -> list[Scope]:
    """Every command of the static tree, the root first.

    Args:
        root: The root command
        program_name: Used to derive the per-scope function names

    Returns:
        The scopes in depth-first order
    """
    prefix = function_name(program_name)
    scopes = []
    seen: set[str] = set()
    for path, node in iter_static_tree(root):
        suffix = "_".join(function_name(part) for part in path) or "root"
        if suffix in seen:
            suffix = f"{suffix}_{len(scopes)}"
        seen.add(suffix)
        key = "".join(f"/{part}" for part in path)
        scopes.append(Scope(key, path, node, f"__{prefix}_scope_{suffix}"))
    return scopes
