"""Shared constants for shellcomp."""

__all__ = [
    "COMPLETE_COMMAND",
    "COMPLETION_COMMAND",
    "DEFAULT_COMMAND_TIMEOUT",
    "DEFAULT_PATHS",
    "HELP_DESCRIPTION",
    "HIDDEN_PREFIX",
    "LAZY_DESCRIPTION",
    "SHELL_RC_FILES",
    "SUPPORTED_SHELLS",
]

# Supported shells for completion generation
SUPPORTED_SHELLS = ("bash", "zsh", "fish")

# Default user-level completion paths ("{prog}" is the program name)
DEFAULT_PATHS = {
    "bash": "~/.local/share/bash-completion/completions/{prog}",
    "zsh": "~/.zsh/completions/_{prog}",
    "fish": "~/.config/fish/completions/{prog}.fish",
}

# Startup files mentioned in install instructions
SHELL_RC_FILES = {
    "bash": "~/.bashrc",
    "zsh": "~/.zshrc",
    "fish": "~/.config/fish/config.fish",
}

# Hidden command answering the dynamic protocol
COMPLETE_COMMAND = "__complete"

# User-facing command printing the static scripts
COMPLETION_COMMAND = "completion"

# Subcommands starting with this prefix never show up in completions
HIDDEN_PREFIX = "__"

# Description used for deferred subcommands without metadata
LAZY_DESCRIPTION = "(lazy loaded)"

HELP_DESCRIPTION = "Show help information"

# Seconds allowed to a `command` value completion
DEFAULT_COMMAND_TIMEOUT = 2.0
