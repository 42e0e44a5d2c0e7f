"""Command tree validation.

Generation never fails on inconsistent metadata: the affected feature is
dropped from the scripts. The problems are reported here instead, as
human-readable messages, with fuzzy suggestions for misspelled keys.
"""

from __future__ import annotations

import difflib
import re
from collections import Counter
from typing import TYPE_CHECKING

from .commands.models import Choices, CommandCompletion
from .commands.tree import iter_static_tree

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .commands.models import CommandNode

__all__ = ["check_unknown_keys", "validate_command_tree"]

_CLI_NAME = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_-]*$")
_ALIAS = re.compile(r"^[a-zA-Z0-9]$")
_SUBCOMMAND_NAME = re.compile(r"^[^\s:/\"'`$\\*?\[\]]+$")


def _find_similar_key(unknown_key: str, known_keys: list[str]) -> str | None:
    """Find a similar key using fuzzy matching.

    Args:
        unknown_key: The unknown key to find a match for
        known_keys: List of valid keys to search

    Returns:
        The closest matching key, or None if no close match found
    """
    matches = difflib.get_close_matches(unknown_key, known_keys, n=1)
    if matches:
        return matches[0]
    return None


def check_unknown_keys(keys: Iterable[str], known_keys: Iterable[str], where: str) -> list[str]:
    """Report keys that are not part of a table's schema.

    Args:
        keys: Keys found in the table
        known_keys: Keys the table accepts
        where: Location shown in the messages

    Returns:
        One message per unknown key, with a suggestion when one is close enough
    """
    known = sorted(known_keys)
    errors = []
    for key in keys:
        if key in known:
            continue
        suggestion = _find_similar_key(key, known)
        if suggestion:
            errors.append(f"[{where}] Unknown key '{key}' -> did you mean '{suggestion}'?")
        else:
            errors.append(f"[{where}] Unknown key '{key}'")
    return errors


def _check_options(node: CommandNode, where: str) -> list[str]:
    errors = []
    for name, count in Counter(option.cli_name for option in node.options).items():
        if count > 1:
            errors.append(f"[{where}] Option '--{name}' is defined {count} times")
    aliases = Counter(option.alias for option in node.options if option.alias)
    for alias, count in aliases.items():
        if count > 1:
            errors.append(f"[{where}] Alias '-{alias}' is used by {count} options")

    for option in node.options:
        if not _CLI_NAME.match(option.cli_name):
            errors.append(f"[{where}] Invalid option name '{option.cli_name}'")
        if option.alias and not _ALIAS.match(option.alias):
            errors.append(f"[{where}] Alias '{option.alias}' of '--{option.cli_name}' must be a single character")
        if isinstance(option.value_completion, Choices) and not option.value_completion.values:
            errors.append(f"[{where}] Option '--{option.cli_name}' has an empty choice list")
        if isinstance(option.value_completion, CommandCompletion) and not option.value_completion.shell_command.strip():
            errors.append(f"[{where}] Option '--{option.cli_name}' has an empty completion command")
        if not option.takes_value and option.value_completion is not None:
            errors.append(f"[{where}] Boolean option '--{option.cli_name}' takes no value, its completion is ignored")
    return errors


def _check_positionals(node: CommandNode, where: str) -> list[str]:
    errors = []
    for index, positional in enumerate(node.positionals):
        if positional.variadic and index != len(node.positionals) - 1:
            errors.append(f"[{where}] Variadic positional '{positional.cli_name}' must be the last one")
        if isinstance(positional.value_completion, Choices) and not positional.value_completion.values:
            errors.append(f"[{where}] Positional '{positional.cli_name}' has an empty choice list")
    seen_optional = False
    for positional in node.positionals:
        if not positional.required:
            seen_optional = True
        elif seen_optional:
            errors.append(f"[{where}] Required positional '{positional.cli_name}' follows an optional one")
    return errors


def validate_command_tree(root: CommandNode) -> list[str]:
    """Check a command tree for problems the completion scripts cannot express.

    Lazy subcommands are checked through their metadata only: loaders are never called.

    Args:
        root: The root command

    Returns:
        List of error messages (empty if the tree is consistent)
    """
    errors: list[str] = []
    for path, node in iter_static_tree(root):
        where = " ".join((root.name, *path))
        errors.extend(_check_options(node, where))
        errors.extend(_check_positionals(node, where))
        errors.extend(
            f"[{where}] Invalid subcommand name '{name}'" for name in node.subcommands if not _SUBCOMMAND_NAME.match(name)
        )
    return errors
