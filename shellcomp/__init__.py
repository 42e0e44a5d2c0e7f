"""shellcomp - shell completion engine for declarative command trees.

Turns a command tree (options, positionals, subcommands and completion
metadata) into a dynamic completion protocol answered by the running program,
and into static bash, zsh and fish scripts reproducing the same logic natively.
"""

VERSION = "0.4.0"
