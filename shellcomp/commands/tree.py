"""Command tree traversal: lazy resolution, visibility and option lookup."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from ..constants import HIDDEN_PREFIX, LAZY_DESCRIPTION
from ..logging_setup import get_logger
from .models import CommandNode, LazyCommand

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .models import OptionMeta

__all__ = [
    "find_option",
    "is_hidden",
    "iter_static_tree",
    "resolve_subcommand",
    "static_node",
    "subcommand_description",
    "visible_subcommands",
    "with_subcommands",
]


def is_hidden(name: str) -> bool:
    """Whether a subcommand is kept out of every listing (`__complete` and friends)."""
    return name.startswith(HIDDEN_PREFIX)


def visible_subcommands(node: CommandNode) -> list[str]:
    """Names of the subcommands offered to the user, in declaration order."""
    return [name for name in node.subcommands if not is_hidden(name)]


def subcommand_description(node: CommandNode, name: str) -> str:
    """Description of a subcommand without loading it."""
    entry = node.subcommands[name]
    if isinstance(entry, LazyCommand):
        if entry.meta is not None and entry.meta.description:
            return entry.meta.description
        return entry.description or LAZY_DESCRIPTION
    return entry.description


def resolve_subcommand(node: CommandNode, name: str) -> CommandNode | None:
    """Get a visible subcommand, loading it if it is lazy.

    Args:
        node: The parent command
        name: The subcommand name

    Returns:
        The subcommand, or None if unknown, hidden or failing to load
    """
    if is_hidden(name):
        return None
    entry = node.subcommands.get(name)
    if entry is None or isinstance(entry, CommandNode):
        return entry
    try:
        loaded = entry.loader()
    except Exception as e:  # noqa: BLE001  # pylint: disable=broad-exception-caught
        get_logger("shellcomp.tree").debug("Failed to load subcommand %s: %s", name, e)
        return None
    if not isinstance(loaded, CommandNode):
        get_logger("shellcomp.tree").debug("Loader for %s returned %r", name, type(loaded).__name__)
        return None
    return loaded


def static_node(name: str, entry: CommandNode | LazyCommand) -> CommandNode:
    """View of a subcommand usable without running any loader.

    Lazy commands use their `meta` when provided, otherwise they become a
    placeholder leaf: name and description only.
    """
    if isinstance(entry, CommandNode):
        return entry
    if entry.meta is not None:
        return entry.meta
    return CommandNode(name=name, description=entry.description or LAZY_DESCRIPTION)


def iter_static_tree(root: CommandNode) -> Iterator[tuple[tuple[str, ...], CommandNode]]:
    """Walk the visible tree depth-first without loading lazy commands.

    Yields:
        (subcommand path, node) pairs, the root first with an empty path
    """
    stack: list[tuple[tuple[str, ...], CommandNode]] = [((), root)]
    while stack:
        path, node = stack.pop()
        yield path, node
        children = [(path + (name,), static_node(name, node.subcommands[name])) for name in visible_subcommands(node)]
        stack.extend(reversed(children))


def find_option(node: CommandNode, token: str) -> OptionMeta | None:
    """Find the option a command line token refers to.

    Accepts `--name`, `--name=value` and `-x` (only the first character after the dash counts).

    Args:
        node: The command owning the options
        token: The raw token

    Returns:
        The matching option, or None
    """
    if token.startswith("--"):
        cli_name = token[2:].split("=", 1)[0]
        for option in node.options:
            if option.cli_name == cli_name:
                return option
        return None
    if token.startswith("-") and len(token) > 1:
        alias = token[1]
        for option in node.options:
            if option.alias == alias:
                return option
    return None


def with_subcommands(node: CommandNode, extra: dict[str, CommandNode | LazyCommand]) -> CommandNode:
    """Copy of a node with more subcommands; existing names are kept."""
    merged = dict(node.subcommands)
    for name, entry in extra.items():
        merged.setdefault(name, entry)
    return replace(node, subcommands=merged)
