"""Static completion script generators.

Provides one generator function per supported shell, plus the entry point
building a script together with its install instructions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...constants import DEFAULT_PATHS, SHELL_RC_FILES, SUPPORTED_SHELLS
from ...logging_setup import get_logger
from ...models import ShellType, UnsupportedShellError
from ...validation import validate_command_tree
from .bash import generate_bash
from .dynamic import generate_dynamic_script
from .fish import generate_fish
from .zsh import generate_zsh

if TYPE_CHECKING:
    from collections.abc import Callable

    from ...commands.models import CommandNode

__all__ = [
    "GENERATORS",
    "CompletionOptions",
    "CompletionResult",
    "generate_bash",
    "generate_completion",
    "generate_dynamic_script",
    "generate_fish",
    "generate_zsh",
    "get_install_instructions",
    "get_supported_shells",
]

GENERATORS: dict[str, Callable[..., str]] = {
    "bash": generate_bash,
    "zsh": generate_zsh,
    "fish": generate_fish,
}


@dataclass(frozen=True)
class CompletionOptions:
    """What to generate."""

    shell: str
    program_name: str
    include_descriptions: bool = True


@dataclass(frozen=True)
class CompletionResult:
    """A generated script and how to install it."""

    script: str
    shell: ShellType
    install_instructions: str


def get_supported_shells() -> list[str]:
    """Shells with a generator."""
    return list(SUPPORTED_SHELLS)


def get_install_instructions(shell: str, program_name: str) -> str:
    """Explain how to install the completion script of a program.

    Args:
        shell: Target shell
        program_name: The program name

    Returns:
        Human-readable instructions

    Raises:
        UnsupportedShellError: if the shell is not bash, zsh or fish
    """
    if shell not in GENERATORS:
        raise UnsupportedShellError(shell)
    rc_file = SHELL_RC_FILES[shell]
    target = DEFAULT_PATHS[shell].format(prog=program_name)
    command = f"{program_name} completion {shell}"

    if shell == ShellType.FISH:
        return (
            f"# Add to {rc_file}:\n"
            f"{command} | source\n"
            "\n"
            "# Or save to a file:\n"
            f"{command} > {target}"
        )
    if shell == ShellType.ZSH:
        return (
            f"# Add to {rc_file} (after compinit):\n"
            f'eval "$({command})"\n'
            "\n"
            "# Or save to a file in your fpath:\n"
            f"{command} > {target}\n"
            f"# and make sure {rc_file} contains:\n"
            "#   fpath=(~/.zsh/completions $fpath)\n"
            "#   autoload -Uz compinit && compinit"
        )
    return (
        f"# Add to {rc_file}:\n"
        f'eval "$({command})"\n'
        "\n"
        "# Or save to a file:\n"
        f"{command} > {target}"
    )


def generate_completion(root: CommandNode, options: CompletionOptions) -> CompletionResult:
    """Generate the static completion script of a command tree.

    Problems found in the tree are logged as warnings: the script is still
    produced, without the broken parts.

    Args:
        root: The command tree
        options: Target shell and program name

    Returns:
        The script and its install instructions

    Raises:
        UnsupportedShellError: if the shell is not bash, zsh or fish
    """
    if options.shell not in GENERATORS:
        raise UnsupportedShellError(options.shell)

    log = get_logger("shellcomp.generators")
    for problem in validate_command_tree(root):
        log.warning("%s", problem)

    log.debug("Generating %s completion for %s", options.shell, options.program_name)
    script = GENERATORS[options.shell](
        root,
        options.program_name,
        include_descriptions=options.include_descriptions,
    )
    return CompletionResult(
        script=script,
        shell=ShellType(options.shell),
        install_instructions=get_install_instructions(options.shell, options.program_name),
    )
