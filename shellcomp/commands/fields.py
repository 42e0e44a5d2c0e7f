"""Build options and positionals from resolved field metadata.

Schema extractors hand over one `ResolvedFieldMeta` per field; this module turns
them into the `OptionMeta` / `PositionalMeta` entries of a `CommandNode`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

from .models import (
    Choices,
    CommandCompletion,
    CommandNode,
    DirectoryCompletion,
    FileCompletion,
    NoCompletion,
    OptionMeta,
    OptionType,
    PositionalMeta,
    ValueCompletion,
    to_kebab_case,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .models import LazyCommand

__all__ = [
    "CompletionMeta",
    "ResolvedFieldMeta",
    "build_command",
    "build_option",
    "build_positional",
    "resolve_value_completion",
]


@dataclass(frozen=True)
class CompletionMeta:
    """Completion hints attached to a field by the program author."""

    type: Literal["file", "directory", "none"] | None = None
    extensions: tuple[str, ...] | None = None
    matcher: tuple[str, ...] | None = None
    choices: tuple[str, ...] | None = None
    shell_command: str | None = None


@dataclass(frozen=True)
class ResolvedFieldMeta:
    """A field of a command's argument schema, already resolved."""

    name: str
    type: OptionType = OptionType.STRING
    cli_name: str = ""
    alias: str | None = None
    required: bool = False
    default_value: Any = None
    env: str | None = None
    positional: bool = False
    description: str | None = None
    enum_values: tuple[str, ...] | None = None
    completion: CompletionMeta | None = None


def resolve_value_completion(meta: ResolvedFieldMeta) -> ValueCompletion | None:
    """Pick the value completion of a field.

    Priority: custom choices, custom shell command, explicit type, then enum values.

    Args:
        meta: The field metadata

    Returns:
        The value completion, or None when the field has nothing to offer
    """
    completion = meta.completion
    if completion is not None:
        if completion.choices:
            return Choices(tuple(completion.choices))
        if completion.shell_command:
            return CommandCompletion(completion.shell_command)
        if completion.type == "file":
            return FileCompletion(
                extensions=tuple(completion.extensions) if completion.extensions else None,
                matcher=tuple(completion.matcher) if completion.matcher and not completion.extensions else None,
            )
        if completion.type == "directory":
            return DirectoryCompletion()
        if completion.type == "none":
            return NoCompletion()
    if meta.enum_values:
        return Choices(tuple(meta.enum_values))
    return None


def build_option(meta: ResolvedFieldMeta) -> OptionMeta:
    """Convert a non-positional field to an option."""
    return OptionMeta(
        name=meta.name,
        cli_name=meta.cli_name or to_kebab_case(meta.name),
        alias=meta.alias,
        type=meta.type,
        env=meta.env,
        description=meta.description,
        required=meta.required,
        value_completion=resolve_value_completion(meta),
    )


def build_positional(meta: ResolvedFieldMeta) -> PositionalMeta:
    """Convert a positional field; array-typed positionals are variadic."""
    return PositionalMeta(
        name=meta.name,
        cli_name=meta.cli_name or to_kebab_case(meta.name),
        required=meta.required,
        description=meta.description,
        variadic=meta.type == OptionType.ARRAY,
        value_completion=resolve_value_completion(meta),
    )


def build_command(
    name: str,
    fields: Iterable[ResolvedFieldMeta] = (),
    *,
    description: str = "",
    version: str | None = None,
    subcommands: Mapping[str, CommandNode | LazyCommand] | None = None,
) -> CommandNode:
    """Assemble a command node from its schema fields.

    Args:
        name: The command name
        fields: Resolved fields, options and positionals mixed, in declaration order
        description: Short description
        version: Program version, usually only on the root
        subcommands: Child commands by name

    Returns:
        The command node
    """
    fields = list(fields)
    return CommandNode(
        name=name,
        description=description,
        version=version,
        options=tuple(build_option(meta) for meta in fields if not meta.positional),
        positionals=tuple(build_positional(meta) for meta in fields if meta.positional),
        subcommands=dict(subcommands or {}),
    )
