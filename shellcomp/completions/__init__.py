"""Shell completion engine.

This package provides:
- context: Parsing the words typed so far into a completion context
- candidates: Computing the candidates of a context
- formatter: The dynamic wire protocol
- generators: Static bash, zsh and fish scripts, and the dynamic glue
- handlers: The `completion` and `__complete` commands
"""

from __future__ import annotations

from .candidates import Candidate, CandidateResult, generate_candidates
from .context import CompletionContext, CompletionType, parse_completion_context
from .formatter import ShellFormatOptions, format_for_shell
from .generators import (
    GENERATORS,
    CompletionOptions,
    CompletionResult,
    generate_completion,
    generate_dynamic_script,
    get_install_instructions,
    get_supported_shells,
)
from .handlers import add_completion_commands, detect_shell, get_default_path, handle_complete, handle_completion

__all__ = [
    "GENERATORS",
    "Candidate",
    "CandidateResult",
    "CompletionContext",
    "CompletionOptions",
    "CompletionResult",
    "CompletionType",
    "ShellFormatOptions",
    "add_completion_commands",
    "detect_shell",
    "format_for_shell",
    "generate_candidates",
    "generate_completion",
    "generate_dynamic_script",
    "get_default_path",
    "get_install_instructions",
    "get_supported_shells",
    "handle_complete",
    "handle_completion",
    "parse_completion_context",
]
