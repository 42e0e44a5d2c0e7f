"""Completion context parsing.

Works out, from the words typed so far, which command is active and what kind
of word is being completed. The static scripts replay the same scan in shell
code, so both paths must stay in sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

from ..commands.tree import find_option, is_hidden, resolve_subcommand, visible_subcommands

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ..commands.models import CommandNode, OptionMeta, PositionalMeta

__all__ = ["CompletionContext", "CompletionType", "parse_completion_context", "positional_at"]


class CompletionType(StrEnum):
    """Kind of word under the cursor."""

    SUBCOMMAND = "subcommand"
    OPTION_NAME = "option-name"
    OPTION_VALUE = "option-value"
    POSITIONAL = "positional"


@dataclass
class CompletionContext:
    """Where the cursor stands in the command line.

    `used_options` holds the bare cli names and aliases of the non-array
    options already given in the current scope.
    """

    command: CommandNode
    completion_type: CompletionType
    current_word: str = ""
    subcommand_path: list[str] = field(default_factory=list)
    used_options: set[str] = field(default_factory=set)
    target_option: OptionMeta | None = None
    positional_index: int | None = None
    inline_prefix: str | None = None
    after_double_dash: bool = False

    @property
    def options(self) -> tuple[OptionMeta, ...]:
        """Options visible at the current scope."""
        return self.command.options

    @property
    def positionals(self) -> tuple[PositionalMeta, ...]:
        """Positionals of the current command."""
        return self.command.positionals

    @property
    def subcommands(self) -> list[str]:
        """Visible subcommand names of the current command."""
        return visible_subcommands(self.command)

    @property
    def target_positional(self) -> PositionalMeta | None:
        """The positional under the cursor, if any."""
        if self.positional_index is None:
            return None
        return self.positionals[self.positional_index]


def positional_at(positionals: Sequence[PositionalMeta], count: int) -> int | None:
    """Index of the positional receiving the word after `count` positional words.

    A variadic last positional keeps matching past its own index.
    """
    if count < len(positionals):
        return count
    if positionals and positionals[-1].variadic:
        return len(positionals) - 1
    return None


def _is_option_token(token: str) -> bool:
    return token.startswith("-") and len(token) > 1


def _has_inline_value(token: str) -> bool:
    if token.startswith("--"):
        return "=" in token
    return len(token) > 2  # -ovalue


def parse_completion_context(argv: Sequence[str], root: CommandNode) -> CompletionContext:  # noqa: C901
    """Parse the words typed so far.

    Args:
        argv: Words after the program name, the last one being the word under the cursor
            (possibly empty)
        root: The root command

    Returns:
        The completion context. Never raises: unknown words are taken as positionals
        and unknown options are ignored.
    """
    tokens = list(argv) or [""]
    node = root
    path: list[str] = []
    used: set[str] = set()
    count = 0
    pending: OptionMeta | None = None
    after_dd = False

    for token in tokens[:-1]:
        if pending is not None:
            pending = None
            continue
        if not after_dd and token in node.subcommands and not is_hidden(token):
            child = resolve_subcommand(node, token)
            if child is not None:
                node = child
                path.append(token)
                used = set()
                count = 0
                continue
        elif token == "--" and not after_dd:
            after_dd = True
            continue
        elif not after_dd and _is_option_token(token):
            option = find_option(node, token)
            if option is None and token == "--help":
                used.add("help")
            elif option is not None:
                if not option.is_array:
                    used.add(option.cli_name)
                    if option.alias:
                        used.add(option.alias)
                if option.takes_value and not _has_inline_value(token):
                    pending = option
            continue
        count += 1

    current = tokens[-1]
    context = CompletionContext(
        command=node,
        completion_type=CompletionType.POSITIONAL,
        current_word=current,
        subcommand_path=path,
        used_options=used,
        positional_index=positional_at(node.positionals, count),
        after_double_dash=after_dd,
    )

    if pending is not None:
        context.completion_type = CompletionType.OPTION_VALUE
        context.target_option = pending
    elif not after_dd and current.startswith("-"):
        context.completion_type = CompletionType.OPTION_NAME
        option = find_option(node, current) if current.startswith("--") and "=" in current else None
        if option is not None and option.takes_value:
            context.completion_type = CompletionType.OPTION_VALUE
            context.target_option = option
            context.inline_prefix = current.split("=", 1)[0] + "="
    elif not after_dd and count == 0 and visible_subcommands(node):
        context.completion_type = CompletionType.SUBCOMMAND
    return context
