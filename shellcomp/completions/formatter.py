"""Wire format of the dynamic completion protocol.

Output is one candidate per line, then optional `@ext:`/`@matcher:` metadata
lines, then a single `:<directive>` trailer.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..models import Directive, ShellType, UnsupportedShellError

if TYPE_CHECKING:
    from .candidates import Candidate, CandidateResult

__all__ = ["ShellFormatOptions", "clean_description", "format_for_shell"]


@dataclass(frozen=True)
class ShellFormatOptions:
    """Formatting parameters.

    Attributes:
        shell: Target shell
        current_word: Word under the cursor, used by bash for prefix filtering
        inline_prefix: `--name=` part of an inline option value
    """

    shell: str
    current_word: str = ""
    inline_prefix: str | None = None


def clean_description(text: str | None) -> str:
    """Collapse a description to a single line."""
    return " ".join(text.split()) if text else ""


def _zsh_escape(text: str) -> str:
    return text.replace(":", "\\:")


def _format_bash(candidates: list[Candidate], directive: Directive, options: ShellFormatOptions) -> list[str]:
    values = [c.value for c in candidates]
    prefix = options.inline_prefix
    if prefix:
        values = [value if value.startswith(prefix) else prefix + value for value in values]
    if directive & Directive.FILTER_PREFIX:
        values = [value for value in values if value.startswith(options.current_word)]
    return values


def _format_zsh(candidates: list[Candidate]) -> list[str]:
    lines = []
    for c in candidates:
        description = clean_description(c.description)
        if description:
            lines.append(f"{_zsh_escape(c.value)}:{_zsh_escape(description)}")
        else:
            lines.append(_zsh_escape(c.value))
    return lines


def _format_fish(candidates: list[Candidate]) -> list[str]:
    lines = []
    for c in candidates:
        description = clean_description(c.description)
        lines.append(f"{c.value}\t{description}" if description else c.value)
    return lines


def format_for_shell(result: CandidateResult, options: ShellFormatOptions) -> str:
    """Render a candidate result for the shell glue.

    Args:
        result: Candidates and directive
        options: Target shell and cursor information

    Returns:
        The protocol text, newline separated, ending with the directive trailer

    Raises:
        UnsupportedShellError: if the shell is not bash, zsh or fish
    """
    if options.shell not in tuple(ShellType):
        raise UnsupportedShellError(options.shell)

    if options.shell == ShellType.BASH:
        lines = _format_bash(result.candidates, result.directive, options)
    elif options.shell == ShellType.ZSH:
        lines = _format_zsh(result.candidates)
    else:
        lines = _format_fish(result.candidates)

    lines.extend(f"@ext:{ext}" for ext in result.file_extensions or ())
    lines.extend(f"@matcher:{pattern}" for pattern in result.file_matchers or ())
    lines.append(f":{int(result.directive)}")
    return "\n".join(lines)
