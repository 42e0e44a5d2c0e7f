"""Candidate generation for a completion context."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING

from ..commands.models import Choices, CommandCompletion, DirectoryCompletion, FileCompletion
from ..commands.tree import subcommand_description, visible_subcommands
from ..constants import DEFAULT_COMMAND_TIMEOUT, HELP_DESCRIPTION
from ..logging_setup import get_logger
from ..models import Directive
from .context import CompletionType

if TYPE_CHECKING:
    from ..commands.models import ValueCompletion
    from .context import CompletionContext

__all__ = ["Candidate", "CandidateResult", "generate_candidates", "run_shell_command"]


@dataclass(frozen=True)
class Candidate:
    """One completion suggestion."""

    value: str
    description: str | None = None
    type: str | None = None


@dataclass
class CandidateResult:
    """Candidates plus the directive telling the shell what to do with them.

    File filters are left to the shell: `file_extensions` and `file_matchers`
    are forwarded instead of listing the matching files here.
    """

    candidates: list[Candidate] = field(default_factory=list)
    directive: Directive = Directive.DEFAULT
    file_extensions: list[str] | None = None
    file_matchers: list[str] | None = None


def run_shell_command(command: str, timeout: float = DEFAULT_COMMAND_TIMEOUT) -> list[str]:
    """Run a completion command and return its non-blank output lines.

    Args:
        command: Shell command line, written by the program author
        timeout: Seconds to wait before giving up

    Returns:
        The stripped output lines; empty on any failure
    """
    log = get_logger("shellcomp.candidates")
    try:
        proc = subprocess.run(  # noqa: S602
            command,
            shell=True,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        log.debug("Completion command timed out after %ss: %s", timeout, command)
        return []
    except OSError as e:
        log.debug("Completion command failed to start: %s (%s)", command, e)
        return []
    if proc.returncode != 0:
        log.debug("Completion command exited with %d: %s", proc.returncode, command)
        return []
    return [line.strip() for line in proc.stdout.splitlines() if line.strip()]


def _complete_value(completion: ValueCompletion | None, timeout: float) -> CandidateResult:
    match completion:
        case Choices(values=values):
            return CandidateResult(
                candidates=[Candidate(value, type="value") for value in values],
                directive=Directive.FILTER_PREFIX | Directive.NO_FILE_COMPLETION,
            )
        case FileCompletion(extensions=extensions, matcher=matcher) if extensions or matcher:
            return CandidateResult(
                file_extensions=list(extensions) if extensions else None,
                file_matchers=list(matcher) if matcher else None,
            )
        case FileCompletion():
            return CandidateResult(directive=Directive.FILE_COMPLETION)
        case DirectoryCompletion():
            return CandidateResult(directive=Directive.DIRECTORY_COMPLETION)
        case CommandCompletion(shell_command=command):
            values = run_shell_command(command, timeout) if command else []
            return CandidateResult(
                candidates=[Candidate(value, type="value") for value in values],
                directive=Directive.FILTER_PREFIX | Directive.NO_FILE_COMPLETION,
            )
    return CandidateResult()


def _complete_positional(context: CompletionContext, timeout: float) -> CandidateResult:
    positional = context.target_positional
    return _complete_value(positional.value_completion if positional else None, timeout)


def _complete_option_names(context: CompletionContext) -> CandidateResult:
    candidates = [
        Candidate(f"--{option.cli_name}", option.description, "option")
        for option in context.options
        if option.is_array or option.cli_name not in context.used_options
    ]
    if "help" not in context.used_options and all(option.cli_name != "help" for option in context.options):
        candidates.append(Candidate("--help", HELP_DESCRIPTION, "option"))
    return CandidateResult(candidates=candidates, directive=Directive.FILTER_PREFIX)


def _complete_subcommands(context: CompletionContext, timeout: float) -> CandidateResult:
    names = visible_subcommands(context.command)
    if context.target_positional is not None and not any(name.startswith(context.current_word) for name in names):
        return _complete_positional(context, timeout)
    return CandidateResult(
        candidates=[Candidate(name, subcommand_description(context.command, name), "subcommand") for name in names],
        directive=Directive.FILTER_PREFIX,
    )


def generate_candidates(context: CompletionContext, *, timeout: float | None = None) -> CandidateResult:
    """Compute the candidates for a completion context.

    Args:
        context: The parsed context
        timeout: Seconds allowed to a `command` value completion

    Returns:
        The candidates and directive
    """
    if timeout is None:
        timeout = DEFAULT_COMMAND_TIMEOUT

    if context.completion_type == CompletionType.SUBCOMMAND:
        return _complete_subcommands(context, timeout)
    if context.completion_type == CompletionType.OPTION_NAME:
        return _complete_option_names(context)
    if context.completion_type == CompletionType.POSITIONAL:
        return _complete_positional(context, timeout)

    option = context.target_option
    result = _complete_value(option.value_completion if option else None, timeout)
    if context.inline_prefix:
        result.candidates = [replace(c, value=context.inline_prefix + c.value) for c in result.candidates]
    return result
