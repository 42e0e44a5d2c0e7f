"""Handlers of the `completion` and `__complete` commands.

Both return an (exit code, text) pair; printing is left to the caller.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from ..commands.models import Choices, CommandNode, FileCompletion, OptionMeta, OptionType, PositionalMeta
from ..commands.tree import with_subcommands
from ..constants import COMPLETE_COMMAND, COMPLETION_COMMAND, DEFAULT_PATHS, SHELL_RC_FILES, SUPPORTED_SHELLS
from ..logging_setup import get_logger
from ..models import ExitCode, UnsupportedShellError
from .candidates import generate_candidates
from .context import parse_completion_context
from .formatter import ShellFormatOptions, format_for_shell
from .generators import CompletionOptions, generate_completion, generate_dynamic_script, get_install_instructions

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = [
    "add_completion_commands",
    "detect_shell",
    "get_default_path",
    "handle_complete",
    "handle_completion",
]

_SHELL_CHOICES = Choices(tuple(SUPPORTED_SHELLS))


def get_default_path(shell: str, program_name: str) -> str:
    """Get the default user-level completion path for a shell.

    Args:
        shell: Shell type ("bash", "zsh", or "fish")
        program_name: The program the completion is for

    Returns:
        Expanded absolute path to the default completion file
    """
    return os.path.expanduser(DEFAULT_PATHS[shell].format(prog=program_name))


def detect_shell(environ: Mapping[str, str] | None = None) -> str | None:
    """Guess the user's shell from `$SHELL`.

    Returns:
        The shell name, or None when `$SHELL` is unset or not supported
    """
    if environ is None:
        environ = os.environ
    name = os.path.basename(environ.get("SHELL", "").rstrip("/"))
    return name if name in SUPPORTED_SHELLS else None


def add_completion_commands(root: CommandNode, program_name: str) -> CommandNode:
    """Return a copy of the tree with the `completion` and `__complete` subcommands.

    Subcommands already defined under those names are kept.
    """
    completion = CommandNode(
        name=COMPLETION_COMMAND,
        description=f"Generate the shell completion script of {program_name}",
        options=(
            OptionMeta("instructions", alias="i", type=OptionType.BOOLEAN, description="Print installation instructions"),
            OptionMeta("dynamic", type=OptionType.BOOLEAN, description="Generate the dynamic completion script"),
        ),
        positionals=(
            PositionalMeta("shell", required=False, description="Target shell", value_completion=_SHELL_CHOICES),
            PositionalMeta(
                "path", required=False, description="'default' or an absolute path", value_completion=FileCompletion()
            ),
        ),
    )
    complete = CommandNode(
        name=COMPLETE_COMMAND,
        description="Answer a completion request",
        options=(OptionMeta("shell", description="Target shell", value_completion=_SHELL_CHOICES),),
    )
    return with_subcommands(root, {COMPLETION_COMMAND: completion, COMPLETE_COMMAND: complete})


def _parse_complete_args(argv: Sequence[str]) -> tuple[str | None, list[str]]:
    """Split `--shell <s> -- <words...>` into the shell and the words."""
    shell = None
    args = list(argv)
    index = 0
    while index < len(args):
        arg = args[index]
        if arg == "--":
            return shell, args[index + 1 :]
        if arg == "--shell" and index + 1 < len(args):
            shell = args[index + 1]
            index += 2
            continue
        if arg.startswith("--shell="):
            shell = arg.split("=", 1)[1]
        else:
            return shell, args[index:]
        index += 1
    return shell, []


def handle_complete(root: CommandNode, argv: Sequence[str], *, timeout: float | None = None) -> tuple[ExitCode, str]:
    """Answer a dynamic completion request.

    Args:
        root: The command tree
        argv: Arguments after `__complete`, e.g. ["--shell", "zsh", "--", "build", "--f"]
        timeout: Seconds allowed to `command` value completions

    Returns:
        Tuple of (exit code, protocol text or error message)
    """
    shell, words = _parse_complete_args(argv)
    if shell is None:
        return (ExitCode.USAGE_ERROR, f"Usage: {COMPLETE_COMMAND} --shell <{'|'.join(SUPPORTED_SHELLS)}> -- <words...>")
    if shell not in SUPPORTED_SHELLS:
        return (ExitCode.USAGE_ERROR, str(UnsupportedShellError(shell)))

    context = parse_completion_context(words, root)
    log = get_logger("shellcomp.complete")
    log.debug(
        "Completing %s at %r (path=%s)", context.completion_type, context.current_word, context.subcommand_path
    )
    result = generate_candidates(context, timeout=timeout)
    options = ShellFormatOptions(shell=shell, current_word=context.current_word, inline_prefix=context.inline_prefix)
    return (ExitCode.SUCCESS, format_for_shell(result, options))


def _get_success_message(shell: str, output_path: str, used_default: bool) -> str:
    """Generate a friendly success message after installing completions.

    Args:
        shell: Shell type
        output_path: Path where completions were written
        used_default: Whether the default path was used

    Returns:
        User-friendly success message
    """
    display_path = output_path.replace(os.path.expanduser("~"), "~")

    if not used_default:
        return f"Completions written to {display_path}"

    if shell == "zsh":
        return (
            f"Completions installed to {display_path}\n"
            f"Ensure ~/.zsh/completions is in your fpath. Add to {SHELL_RC_FILES['zsh']}:\n"
            "  fpath=(~/.zsh/completions $fpath)\n"
            "  autoload -Uz compinit && compinit\n"
            "Then reload your shell."
        )
    return f"Completions installed to {display_path}\nReload your shell or run: source {SHELL_RC_FILES[shell]}"


def _parse_completion_args(
    args: Sequence[str], environ: Mapping[str, str] | None
) -> tuple[str | None, str | None, set[str], str | None]:
    """Parse and validate `completion` command arguments.

    Returns:
        Tuple of (shell, path_arg, flags, error); error is None on success
    """
    flags: set[str] = set()
    positionals: list[str] = []
    for arg in args:
        if arg in ("-i", "--instructions"):
            flags.add("instructions")
        elif arg == "--dynamic":
            flags.add("dynamic")
        elif arg.startswith("-"):
            return (None, None, flags, f"Unknown option: {arg}")
        else:
            positionals.append(arg)

    shells = "|".join(SUPPORTED_SHELLS)
    if len(positionals) > 2:  # noqa: PLR2004
        return (None, None, flags, f"Usage: {COMPLETION_COMMAND} <{shells}> [default|path]")
    shell = positionals[0] if positionals else detect_shell(environ)
    if shell is None:
        return (None, None, flags, f"Usage: {COMPLETION_COMMAND} <{shells}> [default|path]")
    if shell not in SUPPORTED_SHELLS:
        return (None, None, flags, f"Unsupported shell: {shell}. Supported: {', '.join(SUPPORTED_SHELLS)}")

    path_arg = positionals[1] if len(positionals) > 1 else None
    if path_arg is not None and path_arg != "default" and not path_arg.startswith(("/", "~")):
        return (None, None, flags, "Relative paths not supported. Use absolute path, ~/path, or 'default'.")
    return (shell, path_arg, flags, None)


def handle_completion(
    root: CommandNode,
    args: Sequence[str],
    program_name: str,
    *,
    include_descriptions: bool = True,
    environ: Mapping[str, str] | None = None,
) -> tuple[ExitCode, str]:
    """Handle the `completion` command with path semantics.

    Args:
        root: The command tree
        args: Arguments after "completion" (e.g., ["zsh"], ["zsh", "default"], ["-i", "fish"])
        program_name: The program the completion is for
        include_descriptions: Embed descriptions in the script
        environ: Environment used to detect the shell when none is given

    Returns:
        Tuple of (exit code, result):
        - No path arg: result is the script content (or the instructions with -i)
        - With path arg: result is success/error message
    """
    shell, path_arg, flags, error = _parse_completion_args(args, environ)
    if error is not None or shell is None:
        return (ExitCode.USAGE_ERROR, error or "")

    if "instructions" in flags:
        return (ExitCode.SUCCESS, get_install_instructions(shell, program_name))

    if "dynamic" in flags:
        content = generate_dynamic_script(shell, program_name)
    else:
        options = CompletionOptions(shell=shell, program_name=program_name, include_descriptions=include_descriptions)
        content = generate_completion(add_completion_commands(root, program_name), options).script

    if path_arg is None:
        return (ExitCode.SUCCESS, content)

    if path_arg == "default":
        output_path = get_default_path(shell, program_name)
        used_default = True
    else:
        output_path = os.path.expanduser(path_arg)
        used_default = False

    get_logger("shellcomp.completion").debug("Writing completions to: %s", output_path)

    try:
        parent_dir = Path(output_path).parent
        parent_dir.mkdir(parents=True, exist_ok=True)
        Path(output_path).write_text(content, encoding="utf-8")
    except OSError as e:
        return (ExitCode.ENV_ERROR, f"Failed to write completion file: {e}")

    return (ExitCode.SUCCESS, _get_success_message(shell, output_path, used_default))
