"""Command tree loading from TOML (or JSON) files.

Tree file layout::

    name = "mycli"
    description = "My CLI"

    [[options]]
    name = "verbose"
    alias = "v"
    type = "boolean"

    [subcommands.build]
    description = "Build the project"

    [[subcommands.build.options]]
    name = "format"
    choices = ["json", "yaml"]

A subcommand table with `lazy = true` is only read when traversed: its
definition comes from the file named by `file`, and any options or
subcommands written inline are used as metadata for the static scripts.
"""

from __future__ import annotations

import json
import os
import tomllib
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .commands.fields import CompletionMeta, ResolvedFieldMeta, build_option, build_positional
from .commands.models import CommandNode, LazyCommand, OptionType
from .logging_setup import get_logger
from .models import TreeLoadError
from .validation import check_unknown_keys

if TYPE_CHECKING:
    import logging

__all__ = ["TreeLoader", "load_command_tree"]

COMMAND_KEYS = ("name", "description", "version", "options", "positionals", "subcommands", "lazy", "file")
OPTION_KEYS = (
    "name",
    "cli_name",
    "alias",
    "type",
    "description",
    "required",
    "env",
    "choices",
    "completion",
    "extensions",
    "matcher",
    "command",
)
POSITIONAL_KEYS = (
    "name",
    "cli_name",
    "type",
    "description",
    "required",
    "variadic",
    "choices",
    "completion",
    "extensions",
    "matcher",
    "command",
)
COMPLETION_TYPES = ("file", "directory", "none")


def _as_strings(value: Any, where: str, key: str) -> tuple[str, ...] | None:  # noqa: ANN401
    if value is None:
        return None
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        msg = f"[{where}] '{key}' must be a string or a list of strings"
        raise TreeLoadError(msg)
    return tuple(value)


class TreeLoader:
    """Builds a CommandNode tree from tree files."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        """Initialize the tree loader.

        Args:
            log: Logger for warnings about unknown or conflicting keys
        """
        self.log = log or get_logger("shellcomp.loader")

    def load(self, path: str | Path) -> CommandNode:
        """Load a tree file.

        Args:
            path: TOML file, or JSON when the name ends with `.json`

        Returns:
            The root command

        Raises:
            TreeLoadError: If the file is missing, unreadable or malformed
        """
        fname = Path(os.path.expandvars(str(path))).expanduser()
        data = self._read(fname)
        name = data.get("name") or fname.stem
        return self.build(data, str(name), base_dir=fname.parent)

    def _read(self, fname: Path) -> dict[str, Any]:
        if not fname.exists():
            msg = f"Tree file not found: {fname}"
            raise TreeLoadError(msg)
        self.log.debug("Loading %s", fname)
        try:
            if fname.suffix == ".json":
                with fname.open(encoding="utf-8") as f:
                    data = json.load(f)
            else:
                with fname.open("rb") as f:
                    data = tomllib.load(f)
        except (tomllib.TOMLDecodeError, json.JSONDecodeError) as e:
            msg = f"Problem reading {fname}: {e}"
            raise TreeLoadError(msg) from e
        except OSError as e:
            msg = f"Cannot open {fname}: {e}"
            raise TreeLoadError(msg) from e
        if not isinstance(data, dict):
            msg = f"{fname}: the top level must be a table"
            raise TreeLoadError(msg)
        return data

    def _warn_unknown(self, data: dict[str, Any], known: tuple[str, ...], where: str) -> None:
        for problem in check_unknown_keys(data, known, where):
            self.log.warning("%s", problem)

    def build(self, data: dict[str, Any], name: str, *, base_dir: Path | None = None, where: str = "") -> CommandNode:
        """Build a command from its table.

        Args:
            data: The command table
            name: The command name
            base_dir: Directory lazy `file` references are relative to
            where: Location shown in messages

        Returns:
            The command node
        """
        where = where or name
        self._warn_unknown(data, COMMAND_KEYS, where)

        options = data.get("options", [])
        positionals = data.get("positionals", [])
        subcommands = data.get("subcommands", {})
        if not isinstance(options, list) or not isinstance(positionals, list) or not isinstance(subcommands, dict):
            msg = f"[{where}] 'options' and 'positionals' must be arrays of tables, 'subcommands' a table"
            raise TreeLoadError(msg)

        children: dict[str, CommandNode | LazyCommand] = {}
        for child_name, child in subcommands.items():
            if not isinstance(child, dict):
                msg = f"[{where}] subcommand '{child_name}' must be a table"
                raise TreeLoadError(msg)
            child_where = f"{where} {child_name}"
            if child.get("lazy"):
                children[child_name] = self._build_lazy(child, child_name, base_dir=base_dir, where=child_where)
            else:
                children[child_name] = self.build(child, child_name, base_dir=base_dir, where=child_where)

        return CommandNode(
            name=name,
            description=str(data.get("description", "")),
            version=str(data["version"]) if "version" in data else None,
            options=tuple(build_option(self._field(item, where, positional=False)) for item in options),
            positionals=tuple(build_positional(self._field(item, where, positional=True)) for item in positionals),
            subcommands=children,
        )

    def _build_lazy(self, data: dict[str, Any], name: str, *, base_dir: Path | None, where: str) -> LazyCommand:
        has_meta = any(key in data for key in ("options", "positionals", "subcommands"))
        meta = self.build(data, name, base_dir=base_dir, where=where) if has_meta else None
        description = str(data.get("description", ""))

        target = data.get("file")
        if target:
            path = Path(os.path.expandvars(str(target))).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            return LazyCommand(loader=partial(self._load_child, path, name), description=description, meta=meta)
        return LazyCommand(loader=partial(self._missing, where), description=description, meta=meta)

    def _load_child(self, path: Path, name: str) -> CommandNode:
        data = self._read(path)
        return self.build(data, name, base_dir=path.parent)

    @staticmethod
    def _missing(where: str) -> CommandNode:
        msg = f"[{where}] lazy subcommand has no 'file' to load"
        raise TreeLoadError(msg)

    def _field(self, item: Any, where: str, *, positional: bool) -> ResolvedFieldMeta:  # noqa: ANN401
        """Convert an option or positional table to field metadata."""
        kind = "positional" if positional else "option"
        if not isinstance(item, dict) or not isinstance(item.get("name"), str) or not item["name"]:
            msg = f"[{where}] every {kind} needs a 'name'"
            raise TreeLoadError(msg)
        field_where = f"{where} {kind} {item['name']}"
        self._warn_unknown(item, POSITIONAL_KEYS if positional else OPTION_KEYS, field_where)

        default_type = OptionType.STRING
        if item.get("choices") is not None:
            default_type = OptionType.ENUM
        try:
            field_type = OptionType(item.get("type", default_type))
        except ValueError as e:
            allowed = ", ".join(t.value for t in OptionType)
            msg = f"[{field_where}] invalid type {item.get('type')!r}, expected one of: {allowed}"
            raise TreeLoadError(msg) from e
        if positional and item.get("variadic"):
            field_type = OptionType.ARRAY

        completion_type = item.get("completion")
        if completion_type is not None and completion_type not in COMPLETION_TYPES:
            msg = f"[{field_where}] invalid completion {completion_type!r}, expected one of: {', '.join(COMPLETION_TYPES)}"
            raise TreeLoadError(msg)
        extensions = _as_strings(item.get("extensions"), field_where, "extensions")
        matcher = _as_strings(item.get("matcher"), field_where, "matcher")
        if extensions and matcher:
            self.log.warning("[%s] 'extensions' and 'matcher' are exclusive, 'matcher' is ignored", field_where)
        if (extensions or matcher) and completion_type is None:
            completion_type = "file"

        completion = CompletionMeta(
            type=completion_type,
            extensions=extensions,
            matcher=matcher,
            choices=_as_strings(item.get("choices"), field_where, "choices"),
            shell_command=item.get("command"),
        )
        return ResolvedFieldMeta(
            name=item["name"],
            type=field_type,
            cli_name=str(item.get("cli_name", "")),
            alias=item.get("alias"),
            required=bool(item.get("required", positional)),
            env=item.get("env"),
            positional=positional,
            description=item.get("description"),
            completion=completion,
        )


def load_command_tree(path: str | Path, log: logging.Logger | None = None) -> CommandNode:
    """Load a command tree from a TOML or JSON file.

    Args:
        path: The tree file
        log: Logger for warnings, defaults to the `shellcomp.loader` logger

    Returns:
        The root command

    Raises:
        TreeLoadError: If the file is missing, unreadable or malformed
    """
    return TreeLoader(log).load(path)
